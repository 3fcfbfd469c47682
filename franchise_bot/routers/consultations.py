"""Router for the consultation history of a user."""

from aiogram import F, Router, html
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InaccessibleMessage, Message
from loguru import logger

from franchise_bot.api.client import FranchiseAPIClient
from franchise_bot.api.models import AccountRole, Consultation, RescheduleAnswer
from franchise_bot.db.models.accounts import Account
from franchise_bot.utils.auth import (
    USER_ONLY_TEXT,
    access_denied_text,
    get_current_account,
)
from franchise_bot.utils.callbacks import ConsultationsMenuFactory
from franchise_bot.utils.consultations import (
    CONSULTATION_TABS,
    ConsultationAction,
    InvalidTransitionError,
    apply_transition,
    filter_by_tab,
    next_status,
)
from franchise_bot.utils.errors import LOGIN_REQUIRED, describe_error
from franchise_bot.utils.keyboards import (
    CONSULTATIONS_BUTTON,
    get_consultation_tabs_keyboard,
    get_login_keyboard,
    get_user_cancel_confirm_keyboard,
    get_user_consultation_keyboard,
)
from franchise_bot.utils.texts import (
    LOADING_TEXT,
    get_consultation_card_text,
    get_history_text,
)

router = Router(name="consultations")

# One page of history, an inline keyboard holds at most 100 buttons
HISTORY_SIZE = 100
HISTORY_LOAD_FAILED = "상담 이력을 불러오지 못했습니다."
CONSULTATION_LOAD_FAILED = "상담 정보를 불러오지 못했습니다."
ACTION_FAILED = "요청을 처리하지 못했습니다. 잠시 후 다시 시도해주세요."
ALREADY_PROCESSED = "이미 처리된 상담입니다."

ANSWERS = {
    ConsultationAction.ACCEPT: RescheduleAnswer.ACCEPT,
    ConsultationAction.REJECT: RescheduleAnswer.REJECT,
}
DONE_TEXTS = {
    ConsultationAction.ACCEPT: "✅ 조정된 일정으로 상담이 확정되었습니다.",
    ConsultationAction.REJECT: "🙅 조정 일정을 거절했습니다. 상담이 취소되었습니다.",
    ConsultationAction.CANCEL: "❌ 상담을 취소했습니다.",
}


async def show_history(target: Message, account: Account, tab: str) -> None:
    """Render one tab of the consultation history into the target message."""
    if tab not in CONSULTATION_TABS:
        tab = "active"

    try:
        async with FranchiseAPIClient() as api_client:
            response = await api_client.get_user_consultations(
                account.account_id,
                page=0,
                size=HISTORY_SIZE,
            )
    except Exception as e:
        logger.error(f"Error loading consultations of {account.account_id}: {e}")
        await target.edit_text(
            f"❌ {html.quote(describe_error(e, HISTORY_LOAD_FAILED))}",
        )
        return

    loaded = response.data.content
    await target.edit_text(
        get_history_text(
            loaded,
            tab,
            truncated=response.data.page_info.has_next,
        ),
        reply_markup=get_consultation_tabs_keyboard(filter_by_tab(loaded, tab), tab),
    )


async def get_user_account(callback: CallbackQuery) -> Account | None:
    """Account of a user, answering the callback when there is none."""
    account = await get_current_account(callback.from_user.id)
    if account is None or account.role != AccountRole.USER:
        await callback.answer(
            LOGIN_REQUIRED if account is None else USER_ONLY_TEXT,
            show_alert=True,
        )
        return None
    return account


async def load_consultation(account: Account, consultation_id: int) -> Consultation:
    async with FranchiseAPIClient() as api_client:
        response = await api_client.get_user_consultation(
            account.account_id,
            consultation_id,
        )
    return response.data


@router.message(Command("consultations"))
@router.message(F.text == CONSULTATIONS_BUTTON)
async def consultations_handler(message: Message, state: FSMContext) -> None:
    """Shows the consultations in progress."""
    await state.clear()
    if not message.from_user:
        return

    account = await get_current_account(message.from_user.id)
    if account is None or account.role != AccountRole.USER:
        await message.answer(
            access_denied_text(account, AccountRole.USER),
            reply_markup=get_login_keyboard() if account is None else None,
        )
        return

    loading_message = await message.answer(LOADING_TEXT)
    await show_history(loading_message, account, "active")


@router.callback_query(ConsultationsMenuFactory.filter(F.action == "list"))
async def history_tab_callback(
    callback: CallbackQuery,
    callback_data: ConsultationsMenuFactory,
) -> None:
    """Switches the history tab."""
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        await callback.answer()
        return

    account = await get_user_account(callback)
    if account is None:
        return
    await callback.answer()
    await show_history(callback.message, account, callback_data.tab)


@router.callback_query(ConsultationsMenuFactory.filter(F.action == "view"))
async def view_consultation_callback(
    callback: CallbackQuery,
    callback_data: ConsultationsMenuFactory,
) -> None:
    """Shows the consultation with the actions the user may take."""
    consultation_id = callback_data.consultation_id
    if (
        not callback.message
        or isinstance(callback.message, InaccessibleMessage)
        or consultation_id is None
    ):
        await callback.answer()
        return

    account = await get_user_account(callback)
    if account is None:
        return
    await callback.answer()

    try:
        consultation = await load_consultation(account, consultation_id)
    except Exception as e:
        logger.error(f"Error loading consultation {consultation_id}: {e}")
        await callback.message.edit_text(
            f"❌ {html.quote(describe_error(e, CONSULTATION_LOAD_FAILED))}",
        )
        return

    await callback.message.edit_text(
        get_consultation_card_text(consultation),
        reply_markup=get_user_consultation_keyboard(consultation, callback_data.tab),
    )


@router.callback_query(ConsultationsMenuFactory.filter(F.action == "cancel"))
async def cancel_consultation_callback(
    callback: CallbackQuery,
    callback_data: ConsultationsMenuFactory,
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
        reply_markup=get_user_cancel_confirm_keyboard(
            callback_data.consultation_id,
            callback_data.tab,
        ),
    )


@router.callback_query(
    ConsultationsMenuFactory.filter(
        F.action.in_({"accept", "reject", "cancel_confirm"}),
    ),
)
async def consultation_action_callback(
    callback: CallbackQuery,
    callback_data: ConsultationsMenuFactory,
) -> None:
    """Accepts or rejects the proposed schedule, or cancels the consultation."""
    consultation_id = callback_data.consultation_id
    if (
        not callback.message
        or isinstance(callback.message, InaccessibleMessage)
        or consultation_id is None
    ):
        await callback.answer()
        return

    account = await get_user_account(callback)
    if account is None:
        return

    action = (
        ConsultationAction.CANCEL
        if callback_data.action == "cancel_confirm"
        else ConsultationAction(callback_data.action.upper())
    )

    try:
        consultation = await load_consultation(account, consultation_id)
        # The backend may have moved on since the card was rendered
        next_status(consultation.status, action)

        async with FranchiseAPIClient() as api_client:
            if action == ConsultationAction.CANCEL:
                await api_client.cancel_user_consultation(
                    account.account_id,
                    consultation_id,
                )
                updated = apply_transition(consultation, action)
            else:
                response = await api_client.respond_to_reschedule(
                    account.account_id,
                    consultation_id,
                    ANSWERS[action],
                )
                updated = response.data
    except InvalidTransitionError as e:
        logger.info(f"Consultation {consultation_id}: {e}")
        await callback.answer(ALREADY_PROCESSED, show_alert=True)
        return
    except Exception as e:
        logger.error(
            f"Error applying {action} to consultation {consultation_id} "
            f"by {account.account_id}: {e}",
        )
        await callback.answer(describe_error(e, ACTION_FAILED), show_alert=True)
        return

    logger.info(f"User {account.account_id} applied {action} to {consultation_id}")
    await callback.answer()
    await callback.message.edit_text(
        f"{DONE_TEXTS[action]}\n\n{get_consultation_card_text(updated)}",
        reply_markup=get_user_consultation_keyboard(updated, callback_data.tab),
    )
