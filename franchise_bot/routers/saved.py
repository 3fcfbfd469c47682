"""Router for the brands saved by the user."""

from functools import partial

from aiogram import F, Router, html
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InaccessibleMessage, Message
from loguru import logger

from franchise_bot.api.client import FranchiseAPIClient
from franchise_bot.api.models import AccountRole
from franchise_bot.db.models.accounts import Account
from franchise_bot.settings.settings import settings
from franchise_bot.utils.auth import access_denied_text, get_current_account
from franchise_bot.utils.callbacks import SavedMenuFactory
from franchise_bot.utils.errors import LOGIN_REQUIRED, describe_error
from franchise_bot.utils.keyboards import (
    SAVED_BUTTON,
    get_login_keyboard,
    get_saved_keyboard,
)
from franchise_bot.utils.saved import SaveToggle
from franchise_bot.utils.texts import LOADING_TEXT

router = Router(name="saved")

SAVED_LOAD_FAILED = "찜한 브랜드를 불러오지 못했습니다."
UNSAVE_FAILED = "찜 해제에 실패했습니다. 다시 시도해주세요."


async def show_saved(target: Message, account: Account) -> None:
    """Render the saved brands of the account into the target message."""
    try:
        async with FranchiseAPIClient() as api_client:
            response = await api_client.get_saved_brands(
                account.account_id,
                page=0,
                size=settings.BRANDS_PAGE_SIZE,
            )
    except Exception as e:
        logger.error(f"Error loading saved brands of account {account.account_id}: {e}")
        await target.edit_text(
            f"❌ {html.quote(describe_error(e, SAVED_LOAD_FAILED))}",
        )
        return

    brands = response.data.content
    if not brands:
        await target.edit_text(
            "❤️ <b>찜한 브랜드</b>\n\n아직 찜한 브랜드가 없습니다.\n"
            "🏢 브랜드 메뉴에서 관심 있는 브랜드를 찜해보세요.",
        )
        return

    total = response.data.page_info.total_elements or len(brands)
    await target.edit_text(
        f"❤️ <b>찜한 브랜드</b> ({total}개)\n\n브랜드를 선택하면 상세 정보를 볼 수 있습니다.",
        reply_markup=get_saved_keyboard(brands),
    )


@router.message(Command("saved"))
@router.message(F.text == SAVED_BUTTON)
async def saved_handler(message: Message, state: FSMContext) -> None:
    """Shows the saved brands."""
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
    await show_saved(loading_message, account)


@router.callback_query(SavedMenuFactory.filter(F.action == "list"))
async def saved_list_callback(callback: CallbackQuery) -> None:
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return

    account = await get_current_account(callback.from_user.id)
    if account is None or account.role != AccountRole.USER:
        await callback.message.edit_text(access_denied_text(account, AccountRole.USER))
        return
    await show_saved(callback.message, account)


@router.callback_query(SavedMenuFactory.filter(F.action == "unsave"))
async def unsave_callback(
    callback: CallbackQuery,
    callback_data: SavedMenuFactory,
) -> None:
    """Removes the brand from the saved list."""
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
        await callback.answer(LOGIN_REQUIRED, show_alert=True)
        return

    try:
        async with FranchiseAPIClient() as api_client:
            toggle = SaveToggle()
            await toggle.refresh(
                [brand_id],
                partial(api_client.get_brand_save_status, account.account_id),
            )
            if toggle.is_saved(brand_id):
                await toggle.toggle(
                    brand_id,
                    partial(api_client.toggle_saved_brand, account.account_id),
                )
    except Exception as e:
        logger.warning(f"Unsave of brand {brand_id} by {account.account_id} failed: {e}")
        await callback.answer(describe_error(e, UNSAVE_FAILED), show_alert=True)
        return

    await callback.answer("찜을 해제했습니다")
    await show_saved(callback.message, account)
