"""Router for the brand catalogue, save toggle and consultation requests."""

import contextlib
from functools import partial

from aiogram import F, Router, html
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InaccessibleMessage, Message
from loguru import logger

from franchise_bot.api.client import FranchiseAPIClient
from franchise_bot.api.constants import ERROR_CONSULTATION_DUPLICATE
from franchise_bot.api.models import AccountRole, Brand, BrandPageResponse
from franchise_bot.db.models.accounts import Account
from franchise_bot.settings.settings import settings
from franchise_bot.utils.auth import USER_ONLY_TEXT, get_current_account
from franchise_bot.utils.callbacks import BrandsMenuFactory, FormFactory
from franchise_bot.utils.consultations import (
    DuplicateConsultationError,
    ensure_no_active_consultation,
)
from franchise_bot.utils.errors import ERROR_CODE_TEXTS, LOGIN_REQUIRED, describe_error
from franchise_bot.utils.forms import edit_form_message
from franchise_bot.utils.keyboards import (
    BRANDS_BUTTON,
    get_brand_view_keyboard,
    get_brands_keyboard,
    get_categories_keyboard,
    get_form_cancel_keyboard,
    get_time_slots_keyboard,
)
from franchise_bot.utils.saved import SaveToggle
from franchise_bot.utils.states import ConsultationFormStates, SearchFormStates
from franchise_bot.utils.texts import (
    CANCELLED_TEXT,
    LOADING_TEXT,
    get_brand_card_text,
    get_brand_list_text,
    get_brands_title,
    get_categories_text,
    get_consultation_card_text,
    get_consultation_form_text,
)
from franchise_bot.utils.validation import (
    FormValidationError,
    parse_form_date,
    parse_positive_int,
    validate_consultation_form,
)

router = Router(name="brands")

BRANDS_LOAD_FAILED = "브랜드 목록을 불러오지 못했습니다."
BRAND_LOAD_FAILED = "브랜드 정보를 불러오지 못했습니다."
SAVE_FAILED = "찜하기에 실패했습니다. 다시 시도해주세요."
CONSULTATION_FAILED = "상담 신청에 실패했습니다. 다시 시도해주세요."
DUPLICATE_TEXT = ERROR_CODE_TEXTS[ERROR_CONSULTATION_DUPLICATE]
HISTORY_PAGE_SIZE = 100


async def check_no_active_consultation(
    api_client: FranchiseAPIClient,
    account: Account,
    brand_id: int,
) -> None:
    """
    Walk every page of the user's consultations looking for a live one.

    Raises:
        DuplicateConsultationError: If one exists for the brand.
    """
    page = 0
    while True:
        response = await api_client.get_user_consultations(
            account.account_id,
            page=page,
            size=HISTORY_PAGE_SIZE,
        )
        ensure_no_active_consultation(response.data.content, brand_id)
        if not response.data.page_info.has_next:
            return
        page += 1


async def fetch_brands(
    action: str,
    page: int,
    *,
    category_id: int | None = None,
    keyword: str | None = None,
) -> tuple[str, BrandPageResponse]:
    """Load a brand list page and its title."""
    size = settings.BRANDS_PAGE_SIZE
    async with FranchiseAPIClient() as api_client:
        if action == "category" and category_id is not None:
            response = await api_client.get_brands_by_category(category_id, page, size)
            content = response.data.content
            title = get_brands_title(
                "category",
                category_name=content[0].category_name if content else None,
            )
        elif action == "found" and keyword:
            response = await api_client.search_brands(keyword, page, size)
            title = get_brands_title("found", keyword=keyword)
        else:
            response = await api_client.get_brands(page, size)
            title = get_brands_title("list")
    return title, response


async def show_brands(
    target: Message,
    action: str,
    page: int,
    *,
    category_id: int | None = None,
    keyword: str | None = None,
) -> None:
    """Render a brand list page into the target message."""
    try:
        title, response = await fetch_brands(
            action,
            page,
            category_id=category_id,
            keyword=keyword,
        )
    except Exception as e:
        logger.error(f"Error loading brands ({action}, page={page}): {e}")
        await target.edit_text(
            f"❌ {html.quote(describe_error(e, BRANDS_LOAD_FAILED))}",
        )
        return

    brands = response.data.content
    await target.edit_text(
        get_brand_list_text(title, brands, response.data.page_info),
        reply_markup=get_brands_keyboard(
            brands,
            response.data.page_info,
            list_action=action,
            category_id=category_id,
        ),
    )


@router.message(Command("brands"))
@router.message(F.text == BRANDS_BUTTON)
async def brands_handler(
    message: Message,
    state: FSMContext,
    command: CommandObject | None = None,
) -> None:
    """Shows the first page of brands, or the page given as /brands N."""
    await state.clear()

    page = 0
    if command and command.args:
        try:
            page = parse_positive_int(command.args) - 1
        except FormValidationError as e:
            await message.answer(f"❌ {e.message}")
            return

    loading_message = await message.answer(LOADING_TEXT)
    await show_brands(loading_message, "list", page)


@router.callback_query(BrandsMenuFactory.filter(F.action.in_({"list", "category"})))
async def brands_page_callback(
    callback: CallbackQuery,
    callback_data: BrandsMenuFactory,
    state: FSMContext,
) -> None:
    """Shows a page of all brands or of one category."""
    await callback.answer()
    await state.clear()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return

    await show_brands(
        callback.message,
        callback_data.action,
        callback_data.page,
        category_id=callback_data.category_id,
    )


@router.callback_query(BrandsMenuFactory.filter(F.action == "categories"))
async def categories_callback(callback: CallbackQuery) -> None:
    """Shows the category filter."""
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return

    try:
        async with FranchiseAPIClient() as api_client:
            response = await api_client.get_categories()
    except Exception as e:
        logger.error(f"Error loading categories: {e}")
        await callback.message.edit_text(
            f"❌ {html.quote(describe_error(e, '업종 목록을 불러오지 못했습니다.'))}",
        )
        return

    await callback.message.edit_text(
        get_categories_text(response.data),
        reply_markup=get_categories_keyboard(response.data),
    )


# Search
@router.callback_query(BrandsMenuFactory.filter(F.action == "search"))
async def search_callback(callback: CallbackQuery, state: FSMContext) -> None:
    """Asks for a search keyword."""
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return

    await state.set_state(SearchFormStates.waiting_for_keyword)
    await state.update_data(message_id=callback.message.message_id)
    await callback.message.edit_text(
        "🔍 <b>검색어를 입력하세요</b>\n\n💡 <i>브랜드 이름이나 업종으로 검색할 수 있습니다</i>",
        reply_markup=get_form_cancel_keyboard("search"),
    )


@router.message(SearchFormStates.waiting_for_keyword)
async def search_keyword_handler(message: Message, state: FSMContext) -> None:
    """Runs the search and shows the first page of results."""
    keyword = (message.text or "").strip()
    if not keyword:
        await edit_form_message(
            message,
            state,
            "❌ <b>검색어를 입력해주세요.</b>",
            get_form_cancel_keyboard("search"),
        )
        return

    form_message_id = (await state.get_data()).get("message_id")
    # Keep the keyword for paging through the results
    await state.set_state(None)
    await state.update_data(keyword=keyword, message_id=None)

    with contextlib.suppress(TelegramBadRequest):
        await message.delete()
    if form_message_id and message.bot:
        with contextlib.suppress(TelegramBadRequest):
            await message.bot.delete_message(message.chat.id, form_message_id)

    results_message = await message.answer(LOADING_TEXT)
    await show_brands(results_message, "found", 0, keyword=keyword)


@router.callback_query(BrandsMenuFactory.filter(F.action == "found"))
async def search_page_callback(
    callback: CallbackQuery,
    callback_data: BrandsMenuFactory,
    state: FSMContext,
) -> None:
    """Shows another page of search results."""
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return

    keyword = (await state.get_data()).get("keyword")
    if not keyword:
        await show_brands(callback.message, "list", 0)
        return
    await show_brands(callback.message, "found", callback_data.page, keyword=keyword)


@router.callback_query(
    FormFactory.filter(F.form.in_({"search", "consult"}) & (F.action == "cancel")),
)
async def form_cancel_callback(callback: CallbackQuery, state: FSMContext) -> None:
    """Cancels the search or consultation form."""
    await callback.answer()
    await state.clear()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return
    await callback.message.edit_text(CANCELLED_TEXT)


# Brand card
def can_save(account: Account | None) -> bool:
    return account is not None and account.role == AccountRole.USER


async def load_saved_toggle(account: Account | None, brand_id: int) -> SaveToggle:
    """Saved flag of the brand as the backend knows it now."""
    toggle = SaveToggle()
    if account is None or account.role != AccountRole.USER:
        return toggle
    async with FranchiseAPIClient() as api_client:
        await toggle.refresh(
            [brand_id],
            partial(api_client.get_brand_save_status, account.account_id),
        )
    return toggle


async def show_brand(
    target: Message,
    user_id: int,
    brand_id: int,
    *,
    category_id: int | None = None,
    page: int = 0,
    source: str = "list",
) -> None:
    """Render the brand card into the target message."""
    try:
        account = await get_current_account(user_id)
        async with FranchiseAPIClient() as api_client:
            brand: Brand = (await api_client.get_brand_detail(brand_id)).data
        toggle = await load_saved_toggle(account, brand_id)
    except Exception as e:
        logger.error(f"Error loading brand {brand_id} for user {user_id}: {e}")
        await target.edit_text(
            f"❌ {html.quote(describe_error(e, BRAND_LOAD_FAILED))}",
        )
        return

    await target.edit_text(
        get_brand_card_text(brand),
        reply_markup=get_brand_view_keyboard(
            brand.id,
            is_saved=toggle.is_saved(brand.id),
            can_save=can_save(account),
            category_id=category_id,
            page=page,
            source=source,
        ),
        disable_web_page_preview=True,
    )


@router.message(Command("brand"))
async def brand_handler(
    message: Message,
    state: FSMContext,
    command: CommandObject,
) -> None:
    """Opens a brand by the ID typed after /brand."""
    await state.clear()
    if not message.from_user:
        return

    try:
        brand_id = parse_positive_int(command.args)
    except FormValidationError as e:
        await message.answer(f"❌ {e.message}\n\n💡 <i>예: /brand 12</i>")
        return

    loading_message = await message.answer(LOADING_TEXT)
    await show_brand(loading_message, message.from_user.id, brand_id)


@router.callback_query(BrandsMenuFactory.filter(F.action == "view"))
async def view_brand_callback(
    callback: CallbackQuery,
    callback_data: BrandsMenuFactory,
) -> None:
    """Shows the brand card."""
    await callback.answer()
    if (
        not callback.message
        or isinstance(callback.message, InaccessibleMessage)
        or callback_data.brand_id is None
    ):
        return

    await show_brand(
        callback.message,
        callback.from_user.id,
        callback_data.brand_id,
        category_id=callback_data.category_id,
        page=callback_data.page,
        source=callback_data.source,
    )


@router.callback_query(BrandsMenuFactory.filter(F.action == "save"))
async def save_brand_callback(
    callback: CallbackQuery,
    callback_data: BrandsMenuFactory,
) -> None:
    """Toggles the saved flag, updating the button before the backend answers."""
    message = callback.message
    brand_id = callback_data.brand_id
    if not message or isinstance(message, InaccessibleMessage) or brand_id is None:
        await callback.answer()
        return

    account = await get_current_account(callback.from_user.id)
    if account is None or account.role != AccountRole.USER:
        await callback.answer(
            LOGIN_REQUIRED if account is None else USER_ONLY_TEXT,
            show_alert=True,
        )
        return

    async def redraw(_: int, is_saved: bool) -> None:
        with contextlib.suppress(TelegramBadRequest):
            await message.edit_reply_markup(
                reply_markup=get_brand_view_keyboard(
                    brand_id,
                    is_saved=is_saved,
                    can_save=True,
                    category_id=callback_data.category_id,
                    page=callback_data.page,
                    source=callback_data.source,
                ),
            )

    try:
        async with FranchiseAPIClient() as api_client:
            toggle = SaveToggle()
            await toggle.refresh(
                [brand_id],
                partial(api_client.get_brand_save_status, account.account_id),
            )
            is_saved = await toggle.toggle(
                brand_id,
                partial(api_client.toggle_saved_brand, account.account_id),
                on_change=redraw,
            )
    except Exception as e:
        logger.warning(
            f"Save toggle of brand {brand_id} for user {callback.from_user.id} "
            f"failed: {e}",
        )
        await callback.answer(describe_error(e, SAVE_FAILED), show_alert=True)
        return

    await redraw(brand_id, is_saved)
    await callback.answer("❤️ 찜 목록에 추가했습니다" if is_saved else "찜을 해제했습니다")


# Consultation request
@router.callback_query(BrandsMenuFactory.filter(F.action == "consult"))
async def consult_callback(
    callback: CallbackQuery,
    callback_data: BrandsMenuFactory,
    state: FSMContext,
) -> None:
    """Starts the consultation request form after the duplicate check."""
    brand_id = callback_data.brand_id
    if (
        not callback.message
        or isinstance(callback.message, InaccessibleMessage)
        or brand_id is None
    ):
        await callback.answer()
        return

    account = await get_current_account(callback.from_user.id)
    if account is None or account.role != AccountRole.USER:
        await callback.answer(
            LOGIN_REQUIRED if account is None else USER_ONLY_TEXT,
            show_alert=True,
        )
        return

    try:
        async with FranchiseAPIClient() as api_client:
            await check_no_active_consultation(api_client, account, brand_id)
            brand = (await api_client.get_brand_detail(brand_id)).data
    except DuplicateConsultationError as e:
        logger.info(
            f"User {callback.from_user.id} already has consultation "
            f"{e.existing.id} for brand {brand_id}",
        )
        await callback.answer(DUPLICATE_TEXT, show_alert=True)
        return
    except Exception as e:
        logger.error(f"Error preparing consultation for brand {brand_id}: {e}")
        await callback.answer(describe_error(e, CONSULTATION_FAILED), show_alert=True)
        return

    await callback.answer()
    await state.clear()
    await state.set_state(ConsultationFormStates.waiting_for_date)
    data = {"brand_id": brand.id, "brand_name": brand.name}
    form_message = await callback.message.answer(
        get_consultation_form_text(data)
        + "📅 <b>희망 날짜를 입력하세요</b>\n\n💡 <i>예: 2025-01-20</i>",
        reply_markup=get_form_cancel_keyboard("consult"),
    )
    await state.update_data(message_id=form_message.message_id, **data)


@router.message(ConsultationFormStates.waiting_for_date)
async def consult_date_handler(message: Message, state: FSMContext) -> None:
    """Processes the preferred date."""
    data = await state.get_data()
    try:
        day = parse_form_date(message.text)
    except FormValidationError as e:
        await edit_form_message(
            message,
            state,
            get_consultation_form_text(data)
            + f"❌ <b>{e.message}</b>\n\n📅 희망 날짜를 다시 입력하세요:",
            get_form_cancel_keyboard("consult"),
        )
        return

    await state.update_data(preferred_date=day.isoformat())
    await state.set_state(ConsultationFormStates.waiting_for_time)
    await edit_form_message(
        message,
        state,
        get_consultation_form_text(await state.get_data())
        + "⏰ <b>희망 시간을 선택하세요</b>",
        get_time_slots_keyboard("consult"),
    )


@router.callback_query(
    ConsultationFormStates.waiting_for_time,
    FormFactory.filter((F.form == "consult") & (F.action == "slot")),
)
async def consult_time_callback(
    callback: CallbackQuery,
    callback_data: FormFactory,
    state: FSMContext,
) -> None:
    """Processes the preferred time slot."""
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return

    slots = settings.CONSULTATION_TIME_SLOTS
    if callback_data.slot is None or not 0 <= callback_data.slot < len(slots):
        return

    await state.update_data(preferred_time=slots[callback_data.slot])
    await state.set_state(ConsultationFormStates.waiting_for_message)
    await callback.message.edit_text(
        get_consultation_form_text(await state.get_data())
        + "📝 <b>상담 받고 싶은 내용을 입력하세요</b>",
        reply_markup=get_form_cancel_keyboard("consult"),
    )


@router.message(ConsultationFormStates.waiting_for_message)
async def consult_message_handler(message: Message, state: FSMContext) -> None:
    """Validates the form and sends the consultation request."""
    if not message.from_user:
        return

    data = await state.get_data()
    form_text = get_consultation_form_text(data)
    try:
        request = validate_consultation_form(
            data["brand_id"],
            data.get("preferred_date"),
            data.get("preferred_time"),
            message.text,
        )
    except FormValidationError as e:
        await edit_form_message(
            message,
            state,
            form_text + f"❌ <b>{e.message}</b>\n\n📝 상담 내용을 다시 입력하세요:",
            get_form_cancel_keyboard("consult"),
        )
        return

    if not await edit_form_message(message, state, form_text + LOADING_TEXT):
        return

    user_id = message.from_user.id
    try:
        account = await get_current_account(user_id)
        if account is None:
            await edit_form_message(message, state, f"🔒 {LOGIN_REQUIRED}")
            await state.clear()
            return
        async with FranchiseAPIClient() as api_client:
            response = await api_client.create_consultation(
                account.account_id,
                request,
            )
    except Exception as e:
        logger.error(
            f"Error creating consultation for brand {request.brand_id} "
            f"by user {user_id}: {e}",
        )
        await edit_form_message(
            message,
            state,
            form_text + f"❌ <b>{html.quote(describe_error(e, CONSULTATION_FAILED))}</b>",
        )
        await state.clear()
        return

    logger.info(
        f"User {user_id} requested consultation {response.data.id} "
        f"for brand {request.brand_id}",
    )
    await edit_form_message(
        message,
        state,
        "✅ <b>상담 신청이 완료되었습니다.</b>\n\n"
        + get_consultation_card_text(response.data)
        + "\n\n💬 진행 상황은 /consultations 에서 확인할 수 있습니다.",
    )
    await state.clear()
