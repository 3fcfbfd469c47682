from typing import TYPE_CHECKING

from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
)

from franchise_bot.api.models import AccountRole
from franchise_bot.settings.settings import settings
from franchise_bot.utils.callbacks import (
    AuthFactory,
    BrandsMenuFactory,
    ConsultationsMenuFactory,
    FormFactory,
    ManagerMenuFactory,
    SavedMenuFactory,
    StartCallback,
)
from franchise_bot.utils.consultations import (
    TAB_LABELS,
    ConsultationAction,
    available_actions,
)
from franchise_bot.utils.texts import get_consultation_button_text

if TYPE_CHECKING:
    from franchise_bot.api.models import Brand, Category, Consultation, PageInfo
    from franchise_bot.db.models.accounts import Account

BRANDS_BUTTON = "🏢 브랜드"
SAVED_BUTTON = "❤️ 찜한 브랜드"
CONSULTATIONS_BUTTON = "💬 상담 이력"
MANAGE_BUTTON = "💼 상담 관리"
PROFILE_BUTTON = "👤 내 정보"
LOGIN_BUTTON = "🔑 로그인"
HELP_BUTTON = "ℹ️ 도움말"

USER_ACTION_LABELS = {
    ConsultationAction.ACCEPT: "✅ 조정 일정 수락",
    ConsultationAction.REJECT: "🙅 조정 일정 거절",
    ConsultationAction.CANCEL: "❌ 상담 취소",
}

MANAGER_ACTION_LABELS = {
    ConsultationAction.CONFIRM: "✅ 확정",
    ConsultationAction.RESCHEDULE: "🔁 일정 조정",
    ConsultationAction.CANCEL: "❌ 취소",
}

SLOTS_PER_ROW = 3


def get_start_keyboard(account: "Account | None") -> InlineKeyboardMarkup:
    """Get the start keyboard."""
    keyboard = [
        [
            InlineKeyboardButton(
                text=HELP_BUTTON,
                callback_data=StartCallback.START_HELP,
            ),
        ],
    ]
    if account is None:
        keyboard.append(
            [
                InlineKeyboardButton(
                    text=LOGIN_BUTTON,
                    callback_data=AuthFactory(action="start").pack(),
                ),
            ],
        )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def get_commands_reply_keyboard(account: "Account | None") -> ReplyKeyboardMarkup:
    """Get the reply keyboard with the menu of the account's role."""
    if account is None:
        keyboard = [
            [KeyboardButton(text=BRANDS_BUTTON), KeyboardButton(text=LOGIN_BUTTON)],
            [KeyboardButton(text=HELP_BUTTON)],
        ]
    elif account.role == AccountRole.MANAGER:
        keyboard = [
            [KeyboardButton(text=BRANDS_BUTTON), KeyboardButton(text=MANAGE_BUTTON)],
            [KeyboardButton(text=PROFILE_BUTTON), KeyboardButton(text=HELP_BUTTON)],
        ]
    else:
        keyboard = [
            [KeyboardButton(text=BRANDS_BUTTON), KeyboardButton(text=SAVED_BUTTON)],
            [
                KeyboardButton(text=CONSULTATIONS_BUTTON),
                KeyboardButton(text=PROFILE_BUTTON),
            ],
            [KeyboardButton(text=HELP_BUTTON)],
        ]
    return ReplyKeyboardMarkup(
        keyboard=keyboard,
        resize_keyboard=True,
        one_time_keyboard=False,
        input_field_placeholder="메뉴를 선택하세요",
    )


def get_login_keyboard() -> InlineKeyboardMarkup:
    """Get an inline keyboard with a login button."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text=LOGIN_BUTTON,
                    callback_data=AuthFactory(action="start").pack(),
                ),
            ],
        ],
    )


def get_login_role_keyboard() -> InlineKeyboardMarkup:
    """Get an inline keyboard to choose the account type."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="🙋 일반 회원",
                    callback_data=AuthFactory(
                        action="role",
                        role=AccountRole.USER,
                    ).pack(),
                ),
                InlineKeyboardButton(
                    text="🧑‍💼 매니저",
                    callback_data=AuthFactory(
                        action="role",
                        role=AccountRole.MANAGER,
                    ).pack(),
                ),
            ],
            [
                InlineKeyboardButton(
                    text="❌ 취소",
                    callback_data=FormFactory(form="login", action="cancel").pack(),
                ),
            ],
        ],
    )


def get_profile_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="🚪 로그아웃",
                    callback_data=AuthFactory(action="logout").pack(),
                ),
            ],
        ],
    )


def get_form_cancel_keyboard(form: str) -> InlineKeyboardMarkup:
    """Get an inline keyboard with a cancel button for the form."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="❌ 취소",
                    callback_data=FormFactory(form=form, action="cancel").pack(),
                ),
            ],
        ],
    )


def get_form_skip_keyboard(form: str) -> InlineKeyboardMarkup:
    """Get an inline keyboard with skip and cancel buttons for the form."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="⏭ 건너뛰기",
                    callback_data=FormFactory(form=form, action="skip").pack(),
                ),
                InlineKeyboardButton(
                    text="❌ 취소",
                    callback_data=FormFactory(form=form, action="cancel").pack(),
                ),
            ],
        ],
    )


def get_time_slots_keyboard(form: str) -> InlineKeyboardMarkup:
    """Get an inline keyboard with the consultation time slots."""
    keyboard: list[list[InlineKeyboardButton]] = []
    row: list[InlineKeyboardButton] = []
    for index, slot in enumerate(settings.CONSULTATION_TIME_SLOTS):
        row.append(
            InlineKeyboardButton(
                text=slot,
                callback_data=FormFactory(form=form, action="slot", slot=index).pack(),
            ),
        )
        if len(row) == SLOTS_PER_ROW:
            keyboard.append(row)
            row = []
    if row:
        keyboard.append(row)

    keyboard.append(
        [
            InlineKeyboardButton(
                text="❌ 취소",
                callback_data=FormFactory(form=form, action="cancel").pack(),
            ),
        ],
    )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def get_brands_keyboard(
    brands: list["Brand"],
    page_info: "PageInfo",
    *,
    list_action: str = "list",
    category_id: int | None = None,
) -> InlineKeyboardMarkup:
    """
    Create an inline keyboard with a page of brands.

    Args:
        brands: Brands of the current page
        page_info: Paging of the current page
        list_action: Action that reloads this list ("list", "category" or "found")
        category_id: Category of the list, if filtered

    Returns:
        InlineKeyboardMarkup with brand buttons, paging and filters
    """
    keyboard: list[list[InlineKeyboardButton]] = [
        [
            InlineKeyboardButton(
                text=f"{brand.name} · {brand.category_name or '-'}",
                callback_data=BrandsMenuFactory(
                    action="view",
                    brand_id=brand.id,
                    category_id=category_id,
                    page=page_info.page,
                    source=list_action,
                ).pack(),
            ),
        ]
        for brand in brands
    ]

    paging: list[InlineKeyboardButton] = []
    if page_info.has_previous:
        paging.append(
            InlineKeyboardButton(
                text="◀️ 이전",
                callback_data=BrandsMenuFactory(
                    action=list_action,
                    category_id=category_id,
                    page=page_info.page - 1,
                ).pack(),
            ),
        )
    if page_info.has_next:
        paging.append(
            InlineKeyboardButton(
                text="다음 ▶️",
                callback_data=BrandsMenuFactory(
                    action=list_action,
                    category_id=category_id,
                    page=page_info.page + 1,
                ).pack(),
            ),
        )
    if paging:
        keyboard.append(paging)

    keyboard.append(
        [
            InlineKeyboardButton(
                text="🏷 업종별 보기",
                callback_data=BrandsMenuFactory(action="categories").pack(),
            ),
            InlineKeyboardButton(
                text="🔍 검색",
                callback_data=BrandsMenuFactory(action="search").pack(),
            ),
        ],
    )
    if list_action != "list":
        keyboard.append(
            [
                InlineKeyboardButton(
                    text="📋 전체 브랜드",
                    callback_data=BrandsMenuFactory(action="list").pack(),
                ),
            ],
        )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def get_categories_keyboard(categories: list["Category"]) -> InlineKeyboardMarkup:
    keyboard = [
        [
            InlineKeyboardButton(
                text=(
                    f"{category.name} ({category.brand_count})"
                    if category.brand_count is not None
                    else category.name
                ),
                callback_data=BrandsMenuFactory(
                    action="category",
                    category_id=category.id,
                ).pack(),
            ),
        ]
        for category in categories
    ]
    keyboard.append(
        [
            InlineKeyboardButton(
                text="📋 전체 브랜드",
                callback_data=BrandsMenuFactory(action="list").pack(),
            ),
        ],
    )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def get_brand_back_button(
    category_id: int | None,
    page: int,
    source: str = "list",
) -> InlineKeyboardButton:
    """Button back to the brand list the card was opened from."""
    if source == "list" and category_id is not None:
        source = "category"
    return InlineKeyboardButton(
        text="⬅️ 목록으로",
        callback_data=BrandsMenuFactory(
            action=source,
            category_id=category_id,
            page=page,
        ).pack(),
    )


def get_brand_view_keyboard(
    brand_id: int,
    *,
    is_saved: bool,
    can_save: bool,
    category_id: int | None = None,
    page: int = 0,
    source: str = "list",
) -> InlineKeyboardMarkup:
    """
    Create an inline keyboard for the brand detail page.

    Args:
        brand_id: Brand shown on the page
        is_saved: Current saved flag of the brand
        can_save: Whether the account may save brands and request consultations
        category_id: Category of the list the brand was opened from
        page: Page of the list the brand was opened from
        source: List action the brand was opened from ("list", "category" or "found")

    Returns:
        InlineKeyboardMarkup with save, consultation and back buttons
    """
    keyboard: list[list[InlineKeyboardButton]] = []
    if can_save:
        keyboard.append(
            [
                InlineKeyboardButton(
                    text="❤️ 찜 해제" if is_saved else "🤍 찜하기",
                    callback_data=BrandsMenuFactory(
                        action="save",
                        brand_id=brand_id,
                        category_id=category_id,
                        page=page,
                        source=source,
                    ).pack(),
                ),
                InlineKeyboardButton(
                    text="💬 상담 신청",
                    callback_data=BrandsMenuFactory(
                        action="consult",
                        brand_id=brand_id,
                    ).pack(),
                ),
            ],
        )
    keyboard.append([get_brand_back_button(category_id, page, source)])
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def get_saved_keyboard(brands: list["Brand"]) -> InlineKeyboardMarkup:
    """Create an inline keyboard with saved brands and unsave buttons."""
    keyboard = [
        [
            InlineKeyboardButton(
                text=brand.name,
                callback_data=BrandsMenuFactory(
                    action="view",
                    brand_id=brand.id,
                ).pack(),
            ),
            InlineKeyboardButton(
                text="💔 해제",
                callback_data=SavedMenuFactory(
                    action="unsave",
                    brand_id=brand.id,
                ).pack(),
            ),
        ]
        for brand in brands
    ]
    keyboard.append(
        [
            InlineKeyboardButton(
                text="🔄 새로고침",
                callback_data=SavedMenuFactory(action="list").pack(),
            ),
        ],
    )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def get_consultation_tabs_keyboard(
    consultations: list["Consultation"],
    tab: str,
) -> InlineKeyboardMarkup:
    """Create an inline keyboard with history tabs and consultations of a tab."""
    keyboard = [
        [
            InlineKeyboardButton(
                text=f"✅ {label}" if key == tab else label,
                callback_data=ConsultationsMenuFactory(action="list", tab=key).pack(),
            )
            for key, label in TAB_LABELS.items()
        ],
    ]
    keyboard.extend(
        [
            InlineKeyboardButton(
                text=get_consultation_button_text(consultation),
                callback_data=ConsultationsMenuFactory(
                    action="view",
                    consultation_id=consultation.id,
                    tab=tab,
                ).pack(),
            ),
        ]
        for consultation in consultations
    )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def get_user_consultation_keyboard(
    consultation: "Consultation",
    tab: str,
) -> InlineKeyboardMarkup:
    """Create an inline keyboard with the actions a user may take."""
    keyboard = [
        [
            InlineKeyboardButton(
                text=USER_ACTION_LABELS[action],
                callback_data=ConsultationsMenuFactory(
                    action=action.lower(),
                    consultation_id=consultation.id,
                    tab=tab,
                ).pack(),
            ),
        ]
        for action in available_actions(consultation.status, AccountRole.USER)
    ]
    keyboard.append(
        [
            InlineKeyboardButton(
                text="⬅️ 목록으로",
                callback_data=ConsultationsMenuFactory(action="list", tab=tab).pack(),
            ),
        ],
    )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def get_user_cancel_confirm_keyboard(
    consultation_id: int,
    tab: str,
) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="✅ 예, 취소합니다",
                    callback_data=ConsultationsMenuFactory(
                        action="cancel_confirm",
                        consultation_id=consultation_id,
                        tab=tab,
                    ).pack(),
                ),
                InlineKeyboardButton(
                    text="↩️ 아니요",
                    callback_data=ConsultationsMenuFactory(
                        action="view",
                        consultation_id=consultation_id,
                        tab=tab,
                    ).pack(),
                ),
            ],
        ],
    )


def get_manager_consultations_keyboard(
    consultations: list["Consultation"],
    *,
    page: int,
    has_more: bool,
) -> InlineKeyboardMarkup:
    """
    Create an inline keyboard with loaded consultations and a load more button.

    ``page`` is the last loaded page, pages 0..page are shown together.
    """
    keyboard = [
        [
            InlineKeyboardButton(
                text=get_consultation_button_text(consultation),
                callback_data=ManagerMenuFactory(
                    action="view",
                    consultation_id=consultation.id,
                    page=page,
                ).pack(),
            ),
        ]
        for consultation in consultations
    ]
    if has_more:
        keyboard.append(
            [
                InlineKeyboardButton(
                    text="⬇️ 더 보기",
                    callback_data=ManagerMenuFactory(
                        action="list",
                        page=page + 1,
                    ).pack(),
                ),
            ],
        )
    keyboard.append(
        [
            InlineKeyboardButton(
                text="🔄 새로고침",
                callback_data=ManagerMenuFactory(action="list").pack(),
            ),
        ],
    )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def get_manager_consultation_keyboard(
    consultation: "Consultation",
    page: int,
) -> InlineKeyboardMarkup:
    """Create an inline keyboard with the actions a manager may take."""
    actions = available_actions(consultation.status, AccountRole.MANAGER)
    keyboard = []
    if actions:
        keyboard.append(
            [
                InlineKeyboardButton(
                    text=MANAGER_ACTION_LABELS[action],
                    callback_data=ManagerMenuFactory(
                        action=action.lower(),
                        consultation_id=consultation.id,
                        page=page,
                    ).pack(),
                )
                for action in actions
            ],
        )
    keyboard.append(
        [
            InlineKeyboardButton(
                text="⬅️ 목록으로",
                callback_data=ManagerMenuFactory(action="list", page=page).pack(),
            ),
        ],
    )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def get_manager_cancel_confirm_keyboard(
    consultation_id: int,
    page: int,
) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="✅ 예, 취소합니다",
                    callback_data=ManagerMenuFactory(
                        action="cancel_confirm",
                        consultation_id=consultation_id,
                        page=page,
                    ).pack(),
                ),
                InlineKeyboardButton(
                    text="↩️ 아니요",
                    callback_data=ManagerMenuFactory(
                        action="view",
                        consultation_id=consultation_id,
                        page=page,
                    ).pack(),
                ),
            ],
        ],
    )
