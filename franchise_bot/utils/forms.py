"""Helpers for multi-step forms driven by one editable message."""

import contextlib

from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import InlineKeyboardMarkup, Message

FORM_MESSAGE_MISSING = "❌ <b>오류:</b> 편집할 메시지를 찾을 수 없습니다. 처음부터 다시 시도해주세요."


async def edit_form_message(
    message: Message,
    state: FSMContext,
    text: str,
    reply_markup: InlineKeyboardMarkup | None = None,
) -> bool:
    """
    Replace the text of the form message with ``text``.

    The user's input message is deleted so the chat keeps a single form
    message. The form message id is taken from the FSM data (``message_id``).

    Returns:
        False if the form message is unknown and the form was reset.
    """
    data = await state.get_data()
    message_id = data.get("message_id")
    if not message_id or not message.bot:
        await state.clear()
        await message.answer(FORM_MESSAGE_MISSING)
        return False

    with contextlib.suppress(TelegramBadRequest):
        await message.delete()

    # Telegram rejects edits that change nothing
    with contextlib.suppress(TelegramBadRequest):
        await message.bot.edit_message_text(
            chat_id=message.chat.id,
            message_id=message_id,
            text=text,
            reply_markup=reply_markup,
        )
    return True
