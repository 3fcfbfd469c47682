from aiogram import F, Router, html
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import (
    CallbackQuery,
    Message,
)
from loguru import logger

from franchise_bot.utils.auth import get_current_account
from franchise_bot.utils.callbacks import StartCallback
from franchise_bot.utils.keyboards import (
    HELP_BUTTON,
    get_commands_reply_keyboard,
    get_start_keyboard,
)
from franchise_bot.utils.texts import HELP_TEXT, WELCOME_TEXT

router = Router(name="start")


@router.message(Command("start"))
async def start_handler(message: Message, state: FSMContext) -> None:
    """Welcome message with the menu of the current account."""
    await state.clear()

    if not message.from_user:
        await message.answer(
            "<b>❌ 기술적인 오류: 사용자 정보를 확인할 수 없습니다</b>",
        )
        return

    user_id = message.from_user.id

    try:
        account = await get_current_account(user_id)

        await message.answer(
            WELCOME_TEXT.format(
                first_name=html.quote(
                    account.name
                    if account and account.name
                    else message.from_user.first_name or "고객",
                ),
            ),
            reply_markup=get_start_keyboard(account),
        )
        await message.answer(
            "아래 키보드로 주요 메뉴를 이용할 수 있습니다 🔽",
            reply_markup=get_commands_reply_keyboard(account),
        )

        logger.info(
            f"User {user_id} ({message.from_user.username}) started the bot",
        )

    except Exception as e:
        logger.error(
            f"Error processing the /start command for user {user_id}: {e}",
        )
        await message.answer(
            "<b>❌ 봇을 시작하는 중 오류가 발생했습니다.</b>\n\n"
            "<i>잠시 후 다시 시도해주세요.</i>",
        )


@router.callback_query(F.data == StartCallback.START_HELP)
async def start_help_callback(callback: CallbackQuery) -> None:
    """Handler for the 'Help' button."""
    await callback.answer()

    if callback.message:
        await callback.message.answer(HELP_TEXT)


@router.message(Command("help"))
@router.message(F.text == HELP_BUTTON)
async def help_handler(message: Message) -> None:
    """Handler for the /help command."""
    await message.answer(HELP_TEXT)
