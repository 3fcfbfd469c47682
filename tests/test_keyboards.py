from datetime import datetime

import pytest

from franchise_bot.api.models import (
    AccountRole,
    Brand,
    ConsultationStatus,
    PageInfo,
)
from franchise_bot.db.models.accounts import Account
from franchise_bot.settings import settings
from franchise_bot.utils.callbacks import (
    BrandsMenuFactory,
    ConsultationsMenuFactory,
    FormFactory,
    ManagerMenuFactory,
)
from franchise_bot.utils.keyboards import (
    get_brand_view_keyboard,
    get_brands_keyboard,
    get_commands_reply_keyboard,
    get_manager_consultation_keyboard,
    get_manager_consultations_keyboard,
    get_time_slots_keyboard,
    get_user_consultation_keyboard,
)
from franchise_bot.utils.texts import (
    get_brand_card_text,
    get_brands_title,
    get_consultation_card_text,
    get_consultation_form_text,
    get_history_text,
    get_profile_text,
    get_reschedule_form_text,
)


def callbacks(markup) -> list[str]:
    return [button.callback_data for row in markup.inline_keyboard for button in row]


def texts(markup) -> list[str]:
    return [button.text for row in markup.inline_keyboard for button in row]


def test_reply_keyboard_depends_on_role():
    anonymous = get_commands_reply_keyboard(None)
    user = get_commands_reply_keyboard(
        Account(id=1, account_id=7, role=AccountRole.USER, email="a@example.com"),
    )
    manager = get_commands_reply_keyboard(
        Account(id=2, account_id=3, role=AccountRole.MANAGER, email="m@example.com"),
    )

    def labels(markup) -> set[str]:
        return {button.text for row in markup.keyboard for button in row}

    assert "🔑 로그인" in labels(anonymous)
    assert "❤️ 찜한 브랜드" in labels(user)
    assert "💼 상담 관리" not in labels(user)
    assert "💼 상담 관리" in labels(manager)
    assert "❤️ 찜한 브랜드" not in labels(manager)


def test_time_slots_keyboard_packs_indexes():
    markup = get_time_slots_keyboard("consult")
    data = [FormFactory.unpack(item) for item in callbacks(markup)]
    slots = [item for item in data if item.action == "slot"]

    assert [settings.CONSULTATION_TIME_SLOTS[item.slot] for item in slots] == (
        settings.CONSULTATION_TIME_SLOTS
    )
    assert data[-1].action == "cancel"


def test_brands_keyboard_paging():
    brand = Brand.model_validate({"brandId": 42, "brandName": "맛있는 치킨"})
    page_info = PageInfo.model_validate(
        {"page": 1, "size": 12, "hasNext": True, "hasPrevious": True},
    )

    markup = get_brands_keyboard([brand], page_info, list_action="category", category_id=5)
    data = [BrandsMenuFactory.unpack(item) for item in callbacks(markup)]

    assert data[0].action == "view"
    assert data[0].brand_id == 42
    assert (data[1].action, data[1].page, data[1].category_id) == ("category", 0, 5)
    assert (data[2].action, data[2].page, data[2].category_id) == ("category", 2, 5)


def test_brand_view_keyboard_save_label():
    saved = get_brand_view_keyboard(42, is_saved=True, can_save=True)
    unsaved = get_brand_view_keyboard(42, is_saved=False, can_save=True)
    anonymous = get_brand_view_keyboard(42, is_saved=False, can_save=False)

    assert "❤️ 찜 해제" in texts(saved)
    assert "🤍 찜하기" in texts(unsaved)
    assert texts(anonymous) == ["⬅️ 목록으로"]


def test_user_actions_follow_status(make_consultation):
    pending = make_consultation(status=ConsultationStatus.PENDING)
    proposed = make_consultation(status=ConsultationStatus.RESCHEDULE_REQUEST)
    cancelled = make_consultation(status=ConsultationStatus.CANCELLED)

    def actions(consultation) -> list[str]:
        markup = get_user_consultation_keyboard(consultation, "active")
        return [ConsultationsMenuFactory.unpack(item).action for item in callbacks(markup)]

    assert actions(pending) == ["cancel", "list"]
    assert actions(proposed) == ["accept", "reject", "cancel", "list"]
    assert actions(cancelled) == ["list"]


def test_manager_actions_follow_status(make_consultation):
    pending = make_consultation(status=ConsultationStatus.PENDING)
    confirmed = make_consultation(status=ConsultationStatus.CONFIRMED)

    def actions(consultation) -> list[str]:
        markup = get_manager_consultation_keyboard(consultation, 0)
        return [ManagerMenuFactory.unpack(item).action for item in callbacks(markup)]

    assert actions(pending) == ["confirm", "reschedule", "cancel", "list"]
    assert actions(confirmed) == ["cancel", "list"]


def test_manager_list_load_more(make_consultation):
    consultations = [make_consultation(consultation_id=i) for i in (1, 2)]

    more = get_manager_consultations_keyboard(consultations, page=0, has_more=True)
    data = [ManagerMenuFactory.unpack(item) for item in callbacks(more)]
    assert "⬇️ 더 보기" in texts(more)
    assert any(item.action == "list" and item.page == 1 for item in data)

    last = get_manager_consultations_keyboard(consultations, page=1, has_more=False)
    assert "⬇️ 더 보기" not in texts(last)


def test_cards():
    brand = Brand.model_validate(
        {
            "brandId": 42,
            "brandName": "맛있는 치킨",
            "categoryName": "치킨",
            "initialCost": 12000,
            "storeCount": 120,
        },
    )
    card = get_brand_card_text(brand)
    assert "맛있는 치킨" in card
    assert "1억 2,000만원" in card
    assert "120" in card


def test_consultation_card(make_consultation):
    consultation = make_consultation(
        status=ConsultationStatus.RESCHEDULE_REQUEST,
        adjustedDate="2030-05-03",
        adjustedTime="16:00",
        adjustmentReason="매니저 출장",
    )
    card = get_consultation_card_text(consultation, for_manager=True)
    assert "일정 조정 중" in card
    assert "2030년 5월 3일" in card
    assert "매니저 출장" in card
    assert "홍길동" in card


MARKUP = "예산 <5000만원 & 매장 <b>2개"


@pytest.mark.parametrize("for_manager", [False, True])
def test_consultation_card_escapes_free_text(make_consultation, for_manager):
    consultation = make_consultation(
        status=ConsultationStatus.RESCHEDULE_REQUEST,
        brand={"brandId": 42, "brandName": "A&B <치킨>"},
        user={"userId": 7, "name": "<홍길동>", "email": "hong@example.com"},
        message=MARKUP,
        adjustedDate="2030-05-03",
        adjustedTime="16:00",
        adjustmentReason="출장 <급함>",
        managerNote="a<b",
    )

    card = get_consultation_card_text(consultation, for_manager=for_manager)

    assert "예산 &lt;5000만원 &amp; 매장 &lt;b&gt;2개" in card
    assert "A&amp;B &lt;치킨&gt;" in card
    assert "출장 &lt;급함&gt;" in card
    assert "a&lt;b" in card
    assert MARKUP not in card
    assert ("&lt;홍길동&gt;" in card) is for_manager
    assert "<b>상담 #1</b>" in card


def test_brand_card_escapes_backend_text():
    brand = Brand.model_validate(
        {
            "brandId": 42,
            "brandName": "A&B <치킨>",
            "brandDescription": MARKUP,
            "managerName": "<김>",
        },
    )
    card = get_brand_card_text(brand)

    assert "<b>A&amp;B &lt;치킨&gt;</b>" in card
    assert "&lt;5000" in card
    assert "&lt;김&gt;" in card


def test_form_texts_escape_free_text():
    consultation_form = get_consultation_form_text(
        {"brand_name": "A&B <치킨>", "preferred_date": "2030-05-01"},
    )
    reschedule_form = get_reschedule_form_text(
        {
            "consultation_id": 9,
            "current_schedule": "2030-05-01 14:00",
            "adjusted_date": "2030-05-03",
            "adjusted_time": "16:00",
            "adjustment_reason": MARKUP,
        },
    )

    assert "<b>A&amp;B &lt;치킨&gt;</b>" in consultation_form
    assert "💬 사유: 예산 &lt;5000만원 &amp; 매장 &lt;b&gt;2개" in reschedule_form
    assert "<b>상담 #9 일정 조정</b>" in reschedule_form


def test_search_title_escapes_keyword():
    assert get_brands_title("found", keyword="<치킨> & 피자") == (
        "🔍 <b>'&lt;치킨&gt; &amp; 피자' 검색 결과</b>"
    )
    assert get_brands_title("category", category_name="한식<") == "🏷 <b>한식&lt;</b>"
    assert get_brands_title("list") == "🏢 <b>프랜차이즈 브랜드</b>"


def test_profile_escapes_account_fields():
    account = Account(
        id=1,
        account_id=7,
        role=AccountRole.USER,
        email="a&b@example.com",
        name="<홍길동>",
        logged_in_at=datetime(2030, 4, 25, 12, 30),
    )
    profile = get_profile_text(account)

    assert "이름: &lt;홍길동&gt;" in profile
    assert "이메일: a&amp;b@example.com" in profile


@pytest.mark.parametrize(
    ("source", "category_id", "expected"),
    [
        ("found", None, "found"),
        ("category", 5, "category"),
        ("list", 5, "category"),
        ("list", None, "list"),
    ],
)
def test_brand_back_button_returns_to_source(source, category_id, expected):
    markup = get_brand_view_keyboard(
        42,
        is_saved=False,
        can_save=True,
        category_id=category_id,
        page=2,
        source=source,
    )
    data = [BrandsMenuFactory.unpack(item) for item in callbacks(markup)]

    back = data[-1]
    assert (back.action, back.page, back.category_id) == (expected, 2, category_id)
    save = next(item for item in data if item.action == "save")
    assert save.source == source


def test_found_list_opens_brand_with_source():
    brand = Brand.model_validate({"brandId": 42, "brandName": "맛있는 치킨"})
    page_info = PageInfo.model_validate({"page": 1, "size": 12})

    markup = get_brands_keyboard([brand], page_info, list_action="found")
    view = BrandsMenuFactory.unpack(callbacks(markup)[0])

    assert (view.action, view.source, view.page) == ("view", "found", 1)


def test_history_text_counts_and_truncation(make_consultation):
    consultations = [
        make_consultation(consultation_id=1, status=ConsultationStatus.PENDING),
        make_consultation(consultation_id=2, status=ConsultationStatus.CONFIRMED),
        make_consultation(consultation_id=3, status=ConsultationStatus.CANCELLED),
    ]

    full = get_history_text(consultations, "active")
    truncated = get_history_text(consultations, "done", truncated=True)
    empty = get_history_text([], "cancelled")

    assert "진행 중 1 · 완료 1 · 취소 1" in full
    assert "최근 상담" not in full
    assert "ℹ️ 최근 상담 3건만 표시합니다." in truncated
    assert "'취소' 상태의 상담이 없습니다." in empty
