"""Texts shown by the bot."""

from typing import TYPE_CHECKING

from aiogram import html

from franchise_bot.api.models import ConsultationStatus
from franchise_bot.api.utils import (
    format_date,
    format_datetime,
    format_money,
    format_phone,
)
from franchise_bot.utils.consultations import (
    STATUS_ICONS,
    STATUS_LABELS,
    TAB_LABELS,
    filter_by_tab,
)

if TYPE_CHECKING:
    from datetime import date

    from franchise_bot.api.models import Brand, Category, Consultation, PageInfo
    from franchise_bot.db.models.accounts import Account

WELCOME_TEXT = """
👋 <b>안녕하세요, {first_name}님!</b>

<b>프랜차이즈 탐색 봇</b>에 오신 것을 환영합니다.

🏢 업종별 프랜차이즈 브랜드를 둘러보고
❤️ 관심 있는 브랜드를 찜하고
💬 본사 담당자와 창업 상담을 신청할 수 있습니다.

아래 메뉴를 이용하거나 /help 로 사용법을 확인하세요.
"""

HELP_TEXT = """
<b>ℹ️ 도움말</b>

<b>🏢 브랜드</b> - 전체 브랜드 목록, 업종별 보기, 검색
<b>❤️ 찜한 브랜드</b> - 찜한 브랜드 모아보기
<b>💬 상담 이력</b> - 상담 신청 현황과 일정 조정 응답
<b>💼 상담 관리</b> - 매니저 전용 상담 처리 메뉴
<b>👤 내 정보</b> - 로그인 정보 확인

찜하기와 상담 신청은 로그인 후 이용할 수 있습니다. /login
"""

LOADING_TEXT = "🔄 <b>불러오는 중...</b>"
CANCELLED_TEXT = "❌ 입력을 취소했습니다."


def _or_dash(value: object) -> str:
    return "-" if value in (None, "") else html.quote(str(value))


def get_brand_card_text(brand: "Brand") -> str:
    """Detailed card of the brand."""
    lines = [f"🏢 <b>{html.quote(brand.name)}</b>"]
    if brand.category_name:
        lines.append(f"🏷 {html.quote(brand.category_name)}")
    if brand.description:
        lines.append(f"\n{html.quote(brand.description)}")

    lines.extend(
        [
            "",
            f"💰 창업 비용: {format_money(brand.initial_cost)}",
            f"💼 총 투자금: {format_money(brand.total_investment)}",
            f"📈 월 평균 매출: {format_money(brand.avg_monthly_revenue)}",
            f"🏪 가맹점 수: {_or_dash(brand.store_count)}",
        ],
    )
    if brand.manager_name:
        lines.append(f"🧑‍💼 담당 매니저: {html.quote(brand.manager_name)}")
    if brand.contact_info:
        lines.append(f"📞 연락처: {html.quote(brand.contact_info)}")
    if brand.website_url:
        lines.append(f"🌐 {html.quote(brand.website_url)}")

    lines.append(
        f"\n👀 {brand.view_count}  ❤️ {brand.save_count}  "
        f"💬 {brand.consultation_count}",
    )
    return "\n".join(lines)


def get_brand_list_text(
    title: str,
    brands: "list[Brand]",
    page_info: "PageInfo",
) -> str:
    """Header of a brand list page."""
    if not brands:
        return f"{title}\n\n등록된 브랜드가 없습니다."
    total_pages = max(page_info.total_pages, 1)
    return (
        f"{title}\n\n"
        f"총 {page_info.total_elements}개 브랜드 "
        f"({page_info.page + 1}/{total_pages} 페이지)\n"
        "브랜드를 선택하면 상세 정보를 볼 수 있습니다."
    )


def get_brands_title(
    action: str,
    *,
    category_name: str | None = None,
    keyword: str | None = None,
) -> str:
    """Title of a brand list: all brands, one category or search results."""
    if action == "found":
        return f"🔍 <b>'{html.quote(keyword or '')}' 검색 결과</b>"
    if action == "category":
        if category_name:
            return f"🏷 <b>{html.quote(category_name)}</b>"
        return "🏷 <b>업종별 브랜드</b>"
    return "🏢 <b>프랜차이즈 브랜드</b>"


def get_categories_text(categories: "list[Category]") -> str:
    if not categories:
        return "🏷 등록된 업종이 없습니다."
    return "🏷 <b>업종을 선택하세요</b>"


def get_status_text(status: ConsultationStatus) -> str:
    return f"{STATUS_ICONS[status]} {STATUS_LABELS[status]}"


def get_schedule_text(day: "date | None", time: str | None) -> str:
    if day is None:
        return "-"
    return f"{format_date(day)} {html.quote(time or '')}".strip()


def get_consultation_card_text(
    consultation: "Consultation",
    *,
    for_manager: bool = False,
) -> str:
    """Detailed card of the consultation."""
    lines = [
        f"💬 <b>상담 #{consultation.id}</b>",
        f"🏢 {_or_dash(consultation.brand_name)}",
        f"📌 상태: {get_status_text(consultation.status)}",
    ]
    if for_manager and consultation.user:
        applicant = consultation.user.name or consultation.user.email or "-"
        lines.append(f"👤 신청자: {html.quote(applicant)}")
        if consultation.user.phone:
            lines.append(f"📞 {html.quote(format_phone(consultation.user.phone))}")

    lines.append(
        "📅 희망 일정: "
        f"{get_schedule_text(consultation.preferred_date, consultation.preferred_time)}",
    )
    if consultation.message:
        lines.append(f"\n📝 {html.quote(consultation.message)}")

    if consultation.adjusted_date:
        lines.append(
            "\n🔁 <b>조정 제안 일정:</b> "
            f"{get_schedule_text(consultation.adjusted_date, consultation.adjusted_time)}",
        )
        if consultation.adjustment_reason:
            lines.append(f"사유: {html.quote(consultation.adjustment_reason)}")
    if consultation.manager_note:
        lines.append(f"🗒 매니저 메모: {html.quote(consultation.manager_note)}")
    if consultation.created_at:
        lines.append(f"\n신청일: {format_datetime(consultation.created_at)}")
    if consultation.confirmed_at:
        lines.append(f"확정일: {format_datetime(consultation.confirmed_at)}")
    return "\n".join(lines)


def get_consultation_button_text(consultation: "Consultation") -> str:
    day = consultation.preferred_date.strftime("%m/%d") if consultation.preferred_date else ""
    return (
        f"{STATUS_ICONS[consultation.status]} {consultation.brand_name or '-'} "
        f"{day} {consultation.preferred_time or ''}"
    ).strip()


def get_history_text(
    consultations: "list[Consultation]",
    tab: str,
    *,
    truncated: bool = False,
) -> str:
    """
    Header of the consultation history with a counter per tab.

    Args:
        consultations: Loaded consultations of the user
        tab: Tab shown below the header
        truncated: Whether the backend has more consultations than were loaded
    """
    counts = " · ".join(
        f"{label} {len(filter_by_tab(consultations, key))}"
        for key, label in TAB_LABELS.items()
    )
    text = f"💬 <b>상담 이력</b>\n{counts}\n\n"
    if truncated:
        text += f"ℹ️ 최근 상담 {len(consultations)}건만 표시합니다.\n\n"
    if filter_by_tab(consultations, tab):
        return text + "상담을 선택하면 상세 내용을 볼 수 있습니다."
    return text + f"'{TAB_LABELS[tab]}' 상태의 상담이 없습니다."


def get_manager_summary_text(counts: dict[ConsultationStatus, int]) -> str:
    """Counters shown above the manager consultation list."""
    lines = ["💼 <b>상담 관리</b>", ""]
    for status, count in counts.items():
        lines.append(f"{get_status_text(status)}: <b>{count}</b>건")
    return "\n".join(lines)


def get_consultation_form_text(data: dict) -> str:
    """Already filled fields of the consultation request form."""
    text = f"🏢 <b>{html.quote(data.get('brand_name', ''))}</b> 상담 신청\n"
    if data.get("preferred_date"):
        text += f"📅 날짜: {data['preferred_date']}\n"
    if data.get("preferred_time"):
        text += f"⏰ 시간: {html.quote(data['preferred_time'])}\n"
    return text + "\n" + "─" * 20 + "\n\n"


def get_profile_text(account: "Account") -> str:
    role = "매니저" if account.is_manager else "일반 회원"
    return (
        "👤 <b>내 정보</b>\n\n"
        f"구분: {role}\n"
        f"이름: {_or_dash(account.name)}\n"
        f"이메일: {html.quote(account.email)}\n"
        f"연락처: {_or_dash(format_phone(account.phone) if account.phone else None)}\n"
        f"로그인: {format_datetime(account.logged_in_at)}"
    )


def get_reschedule_form_text(data: dict) -> str:
    """Already filled fields of the reschedule form."""
    text = f"🔁 <b>상담 #{data.get('consultation_id')} 일정 조정</b>\n"
    if data.get("current_schedule"):
        text += f"현재 희망 일정: {html.quote(data['current_schedule'])}\n"
    if data.get("adjusted_date"):
        text += f"📅 조정 날짜: {data['adjusted_date']}\n"
    if data.get("adjusted_time"):
        text += f"⏰ 조정 시간: {html.quote(data['adjusted_time'])}\n"
    if data.get("adjustment_reason"):
        text += f"💬 사유: {html.quote(data['adjustment_reason'])}\n"
    return text + "\n" + "─" * 20 + "\n\n"
