"""Router for consultation management by brand managers."""

from aiogram import F, Router, html
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import (
    CallbackQuery,
    InaccessibleMessage,
    InlineKeyboardMarkup,
    Message,
)
from loguru import logger

from franchise_bot.api.client import FranchiseAPIClient
from franchise_bot.api.models import AccountRole, Consultation
from franchise_bot.db.models.accounts import Account
from franchise_bot.settings.settings import settings
from franchise_bot.utils.auth import (
    MANAGER_ONLY_TEXT,
    access_denied_text,
    get_current_account,
)
from franchise_bot.utils.callbacks import FormFactory, ManagerMenuFactory
from franchise_bot.utils.consultations import (
    ConsultationAction,
    InvalidTransitionError,
    apply_transition,
    count_by_status,
    next_status,
)
from franchise_bot.utils.errors import LOGIN_REQUIRED, NOT_FOUND, describe_error
from franchise_bot.utils.forms import edit_form_message
from franchise_bot.utils.keyboards import (
    MANAGE_BUTTON,
    get_form_cancel_keyboard,
    get_form_skip_keyboard,
    get_login_keyboard,
    get_manager_cancel_confirm_keyboard,
    get_manager_consultation_keyboard,
    get_manager_consultations_keyboard,
    get_time_slots_keyboard,
)
from franchise_bot.utils.states import RescheduleFormStates
from franchise_bot.utils.texts import (
    CANCELLED_TEXT,
    LOADING_TEXT,
    get_consultation_card_text,
    get_manager_summary_text,
    get_reschedule_form_text,
)
from franchise_bot.utils.validation import (
    RESCHEDULE_FIELDS_REQUIRED,
    FormValidationError,
    parse_form_date,
    validate_reschedule_form,
)

router = Router(name="manager")

LIST_LOAD_FAILED = "상담 목록을 불러오지 못했습니다."
ACTION_FAILED = "요청을 처리하지 못했습니다. 잠시 후 다시 시도해주세요."
ALREADY_PROCESSED = "이미 처리된 상담입니다."

DONE_TEXTS = {
    ConsultationAction.CONFIRM: "✅ 상담을 확정했습니다.",
    ConsultationAction.RESCHEDULE: "🔁 일정 조정을 제안했습니다. 신청자의 응답을 기다립니다.",
    ConsultationAction.CANCEL: "❌ 상담을 취소했습니다.",
}


async def load_consultations(
    account: Account,
    page: int,
) -> tuple[list[Consultation], bool]:
    """
    Load pages 0..page of the manager's consultations at once.

    Returns:
        Loaded consultations and whether more exist.
    """
    async with FranchiseAPIClient() as api_client:
        response = await api_client.get_manager_consultations(
            account.account_id,
            page=0,
            size=(page + 1) * settings.PAGE_SIZE,
        )
    return response.data.content, response.data.page_info.has_next


async def find_consultation(
    account: Account,
    consultation_id: int,
    page: int,
) -> Consultation | None:
    consultations, _ = await load_consultations(account, page)
    for consultation in consultations:
        if consultation.id == consultation_id:
            return consultation
    return None


async def show_manager_list(target: Message, account: Account, page: int) -> None:
    """Render counters and loaded consultations into the target message."""
    try:
        consultations, has_more = await load_consultations(account, page)
    except Exception as e:
        logger.error(
            f"Error loading consultations of manager {account.account_id}: {e}",
        )
        await target.edit_text(
            f"❌ {html.quote(describe_error(e, LIST_LOAD_FAILED))}",
        )
        return

    text = get_manager_summary_text(count_by_status(consultations))
    if not consultations:
        text += "\n\n접수된 상담이 없습니다."
    await target.edit_text(
        text,
        reply_markup=get_manager_consultations_keyboard(
            consultations,
            page=page,
            has_more=has_more,
        ),
    )


async def get_manager_account(callback: CallbackQuery) -> Account | None:
    """Account of a manager, answering the callback when there is none."""
    account = await get_current_account(callback.from_user.id)
    if account is None or account.role != AccountRole.MANAGER:
        await callback.answer(
            LOGIN_REQUIRED if account is None else MANAGER_ONLY_TEXT,
            show_alert=True,
        )
        return None
    return account


def get_result_view(
    consultation: Consultation,
    action: ConsultationAction,
    page: int,
) -> tuple[str, InlineKeyboardMarkup]:
    return (
        f"{DONE_TEXTS[action]}\n\n"
        + get_consultation_card_text(consultation, for_manager=True),
        get_manager_consultation_keyboard(consultation, page),
    )


@router.message(Command("manage"))
@router.message(F.text == MANAGE_BUTTON)
async def manage_handler(message: Message, state: FSMContext) -> None:
    """Shows the consultations of the manager's brands."""
    await state.clear()
    if not message.from_user:
        return

    account = await get_current_account(message.from_user.id)
    if account is None or account.role != AccountRole.MANAGER:
        await message.answer(
            access_denied_text(account, AccountRole.MANAGER),
            reply_markup=get_login_keyboard() if account is None else None,
        )
        return

    loading_message = await message.answer(LOADING_TEXT)
    await show_manager_list(loading_message, account, 0)


@router.callback_query(ManagerMenuFactory.filter(F.action == "list"))
async def manager_list_callback(
    callback: CallbackQuery,
    callback_data: ManagerMenuFactory,
    state: FSMContext,
) -> None:
    """Shows the list again, one page longer for the load more button."""
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        await callback.answer()
        return

    account = await get_manager_account(callback)
    if account is None:
        return
    await callback.answer()
    await state.clear()
    await show_manager_list(callback.message, account, callback_data.page)


@router.callback_query(ManagerMenuFactory.filter(F.action == "view"))
async def manager_view_callback(
    callback: CallbackQuery,
    callback_data: ManagerMenuFactory,
) -> None:
    """Shows the consultation with the actions the manager may take."""
    consultation_id = callback_data.consultation_id
    if (
        not callback.message
        or isinstance(callback.message, InaccessibleMessage)
        or consultation_id is None
    ):
        await callback.answer()
        return

    account = await get_manager_account(callback)
    if account is None:
        return
    await callback.answer()

    try:
        consultation = await find_consultation(
            account,
            consultation_id,
            callback_data.page,
        )
    except Exception as e:
        logger.error(f"Error loading consultation {consultation_id}: {e}")
        await callback.message.edit_text(
            f"❌ {html.quote(describe_error(e, LIST_LOAD_FAILED))}",
        )
        return

    if consultation is None:
        await callback.message.edit_text(f"❌ {NOT_FOUND}")
        return

    await callback.message.edit_text(
        get_consultation_card_text(consultation, for_manager=True),
        reply_markup=get_manager_consultation_keyboard(
            consultation,
            callback_data.page,
        ),
    )


@router.callback_query(ManagerMenuFactory.filter(F.action == "cancel"))
async def manager_cancel_callback(
    callback: CallbackQuery,
    callback_data: ManagerMenuFactory,
) -> None:
    """Asks to confirm the cancellation."""
    await callback.answer()
    if (
        not callback.message
        or isinstance(callback.message, InaccessibleMessage)
        or callback_data.consultation_id is None
    ):
        return

    await callback.message.edit_reply_markup(
        reply_markup=get_manager_cancel_confirm_keyboard(
            callback_data.consultation_id,
            callback_data.page,
        ),
    )


@router.callback_query(
    ManagerMenuFactory.filter(F.action.in_({"confirm", "cancel_confirm"})),
)
async def manager_action_callback(
    callback: CallbackQuery,
    callback_data: ManagerMenuFactory,
) -> None:
    """Confirms or cancels the consultation."""
    consultation_id = callback_data.consultation_id
    if (
        not callback.message
        or isinstance(callback.message, InaccessibleMessage)
        or consultation_id is None
    ):
        await callback.answer()
        return

    account = await get_manager_account(callback)
    if account is None:
        return

    action = (
        ConsultationAction.CONFIRM
        if callback_data.action == "confirm"
        else ConsultationAction.CANCEL
    )

    try:
        consultation = await find_consultation(
            account,
            consultation_id,
            callback_data.page,
        )
        if consultation is None:
            await callback.answer(NOT_FOUND, show_alert=True)
            return
        next_status(consultation.status, action)

        async with FranchiseAPIClient() as api_client:
            if action == ConsultationAction.CONFIRM:
                response = await api_client.confirm_consultation(
                    account.account_id,
                    consultation_id,
                )
                updated = response.data
            else:
                await api_client.cancel_manager_consultation(
                    account.account_id,
                    consultation_id,
                )
                updated = apply_transition(consultation, action)
    except InvalidTransitionError as e:
        logger.info(f"Consultation {consultation_id}: {e}")
        await callback.answer(ALREADY_PROCESSED, show_alert=True)
        return
    except Exception as e:
        logger.error(
            f"Error applying {action} to consultation {consultation_id} "
            f"by manager {account.account_id}: {e}",
        )
        await callback.answer(describe_error(e, ACTION_FAILED), show_alert=True)
        return

    logger.info(
        f"Manager {account.account_id} applied {action} to {consultation_id}",
    )
    await callback.answer()
    text, keyboard = get_result_view(updated, action, callback_data.page)
    await callback.message.edit_text(text, reply_markup=keyboard)


# Reschedule
@router.callback_query(ManagerMenuFactory.filter(F.action == "reschedule"))
async def reschedule_callback(
    callback: CallbackQuery,
    callback_data: ManagerMenuFactory,
    state: FSMContext,
) -> None:
    """Starts the reschedule form."""
    consultation_id = callback_data.consultation_id
    if (
        not callback.message
        or isinstance(callback.message, InaccessibleMessage)
        or consultation_id is None
    ):
        await callback.answer()
        return

    account = await get_manager_account(callback)
    if account is None:
        return

    try:
        consultation = await find_consultation(
            account,
            consultation_id,
            callback_data.page,
        )
        if consultation is None:
            await callback.answer(NOT_FOUND, show_alert=True)
            return
        next_status(consultation.status, ConsultationAction.RESCHEDULE)
    except InvalidTransitionError:
        await callback.answer(ALREADY_PROCESSED, show_alert=True)
        return
    except Exception as e:
        logger.error(f"Error loading consultation {consultation_id}: {e}")
        await callback.answer(describe_error(e, LIST_LOAD_FAILED), show_alert=True)
        return

    await callback.answer()
    await state.clear()
    await state.set_state(RescheduleFormStates.waiting_for_date)
    await state.update_data(
        consultation_id=consultation_id,
        page=callback_data.page,
        message_id=callback.message.message_id,
        current_schedule=(
            f"{consultation.preferred_date} {consultation.preferred_time or ''}"
        ).strip(),
    )
    await callback.message.edit_text(
        get_reschedule_form_text(await state.get_data())
        + "📅 <b>조정할 날짜를 입력하세요</b>\n\n💡 <i>예: 2025-01-20</i>",
        reply_markup=get_form_cancel_keyboard("reschedule"),
    )


@router.message(RescheduleFormStates.waiting_for_date)
async def reschedule_date_handler(message: Message, state: FSMContext) -> None:
    """Processes the adjusted date."""
    data = await state.get_data()
    try:
        day = parse_form_date(
            message.text,
            required_message=RESCHEDULE_FIELDS_REQUIRED,
        )
    except FormValidationError as e:
        await edit_form_message(
            message,
            state,
            get_reschedule_form_text(data)
            + f"❌ <b>{e.message}</b>\n\n📅 조정할 날짜를 다시 입력하세요:",
            get_form_cancel_keyboard("reschedule"),
        )
        return

    await state.update_data(adjusted_date=day.isoformat())
    await state.set_state(RescheduleFormStates.waiting_for_time)
    await edit_form_message(
        message,
        state,
        get_reschedule_form_text(await state.get_data())
        + "⏰ <b>조정할 시간을 선택하세요</b>",
        get_time_slots_keyboard("reschedule"),
    )


@router.callback_query(
    RescheduleFormStates.waiting_for_time,
    FormFactory.filter((F.form == "reschedule") & (F.action == "slot")),
)
async def reschedule_time_callback(
    callback: CallbackQuery,
    callback_data: FormFactory,
    state: FSMContext,
) -> None:
    """Processes the adjusted time slot."""
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return

    slots = settings.CONSULTATION_TIME_SLOTS
    if callback_data.slot is None or not 0 <= callback_data.slot < len(slots):
        return

    await state.update_data(adjusted_time=slots[callback_data.slot])
    await state.set_state(RescheduleFormStates.waiting_for_reason)
    await callback.message.edit_text(
        get_reschedule_form_text(await state.get_data())
        + "💬 <b>조정 사유를 입력하세요</b> (선택)",
        reply_markup=get_form_skip_keyboard("reschedule"),
    )


@router.message(RescheduleFormStates.waiting_for_reason)
async def reschedule_reason_handler(message: Message, state: FSMContext) -> None:
    """Processes the optional reason."""
    await state.update_data(adjustment_reason=(message.text or "").strip())
    await state.set_state(RescheduleFormStates.waiting_for_note)
    await edit_form_message(
        message,
        state,
        get_reschedule_form_text(await state.get_data())
        + "🗒 <b>신청자에게 남길 메모를 입력하세요</b> (선택)",
        get_form_skip_keyboard("reschedule"),
    )


async def submit_reschedule(
    state: FSMContext,
    user_id: int,
) -> tuple[str, InlineKeyboardMarkup | None]:
    """
    Validate the reschedule form and send it.

    The form is finished afterwards whatever the outcome.

    Returns:
        Text and keyboard to show in the form message.
    """
    data = await state.get_data()
    form_text = get_reschedule_form_text(data)
    await state.clear()

    try:
        request = validate_reschedule_form(
            data.get("adjusted_date"),
            data.get("adjusted_time"),
            data.get("adjustment_reason"),
            data.get("manager_note"),
        )
    except FormValidationError as e:
        return form_text + f"❌ <b>{e.message}</b>", None

    consultation_id = data["consultation_id"]
    page = data.get("page", 0)
    try:
        account = await get_current_account(user_id)
        if account is None or account.role != AccountRole.MANAGER:
            return MANAGER_ONLY_TEXT, None
        async with FranchiseAPIClient() as api_client:
            response = await api_client.reschedule_consultation(
                account.account_id,
                consultation_id,
                request,
            )
    except Exception as e:
        logger.error(f"Error rescheduling consultation {consultation_id}: {e}")
        error_text = html.quote(describe_error(e, ACTION_FAILED))
        return form_text + f"❌ <b>{error_text}</b>", None

    logger.info(
        f"Manager {account.account_id} proposed {request.adjusted_date} "
        f"{request.adjusted_time} for consultation {consultation_id}",
    )
    return get_result_view(response.data, ConsultationAction.RESCHEDULE, page)


@router.message(RescheduleFormStates.waiting_for_note)
async def reschedule_note_handler(message: Message, state: FSMContext) -> None:
    """Processes the optional note and sends the proposal."""
    if not message.from_user:
        return

    await state.update_data(manager_note=(message.text or "").strip())
    data = await state.get_data()
    if not await edit_form_message(
        message,
        state,
        get_reschedule_form_text(data) + LOADING_TEXT,
    ):
        return

    text, keyboard = await submit_reschedule(state, message.from_user.id)
    if message.bot:
        await message.bot.edit_message_text(
            chat_id=message.chat.id,
            message_id=data["message_id"],
            text=text,
            reply_markup=keyboard,
        )


@router.callback_query(
    RescheduleFormStates.waiting_for_reason,
    FormFactory.filter((F.form == "reschedule") & (F.action == "skip")),
)
async def reschedule_skip_reason_callback(
    callback: CallbackQuery,
    state: FSMContext,
) -> None:
    """Skips the reason."""
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return

    await state.set_state(RescheduleFormStates.waiting_for_note)
    await callback.message.edit_text(
        get_reschedule_form_text(await state.get_data())
        + "🗒 <b>신청자에게 남길 메모를 입력하세요</b> (선택)",
        reply_markup=get_form_skip_keyboard("reschedule"),
    )


@router.callback_query(
    RescheduleFormStates.waiting_for_note,
    FormFactory.filter((F.form == "reschedule") & (F.action == "skip")),
)
async def reschedule_skip_note_callback(
    callback: CallbackQuery,
    state: FSMContext,
) -> None:
    """Skips the note and sends the proposal."""
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return

    await callback.message.edit_text(
        get_reschedule_form_text(await state.get_data()) + LOADING_TEXT,
    )
    text, keyboard = await submit_reschedule(state, callback.from_user.id)
    await callback.message.edit_text(text, reply_markup=keyboard)


@router.callback_query(
    FormFactory.filter((F.form == "reschedule") & (F.action == "cancel")),
)
async def reschedule_cancel_callback(callback: CallbackQuery, state: FSMContext) -> None:
    """Cancels the reschedule form."""
    await callback.answer()
    await state.clear()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return
    await callback.message.edit_text(CANCELLED_TEXT)
