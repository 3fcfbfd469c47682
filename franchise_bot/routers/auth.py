"""Router for login, logout and profile."""

from aiogram import F, Router, html
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InaccessibleMessage, Message
from loguru import logger

from franchise_bot.api.client import FranchiseAPIClient
from franchise_bot.api.models import AccountRole
from franchise_bot.db.context import get_or_create_session
from franchise_bot.db.services import AccountsService
from franchise_bot.utils.auth import LOGIN_REQUIRED_TEXT, get_current_account
from franchise_bot.utils.callbacks import AuthFactory, FormFactory
from franchise_bot.utils.errors import describe_error
from franchise_bot.utils.forms import edit_form_message
from franchise_bot.utils.keyboards import (
    LOGIN_BUTTON,
    PROFILE_BUTTON,
    get_commands_reply_keyboard,
    get_form_cancel_keyboard,
    get_login_keyboard,
    get_login_role_keyboard,
    get_profile_keyboard,
)
from franchise_bot.utils.states import LoginFormStates
from franchise_bot.utils.texts import CANCELLED_TEXT, get_profile_text
from franchise_bot.utils.validation import (
    EMAIL_RE,
    EMAIL_INVALID,
    FormValidationError,
    validate_login_form,
)

router = Router(name="auth")

ROLE_TITLES = {
    AccountRole.USER: "🙋 일반 회원 로그인",
    AccountRole.MANAGER: "🧑‍💼 매니저 로그인",
}
LOGIN_FAILED_TEXT = "이메일 또는 비밀번호가 올바르지 않습니다."


def get_login_form_text(role: AccountRole, email: str | None = None) -> str:
    text = f"<b>{ROLE_TITLES[role]}</b>\n"
    if email:
        text += f"📧 이메일: {html.quote(email)}\n"
    return text + "\n" + "─" * 20 + "\n\n"


async def start_login(message: Message, state: FSMContext, user_id: int) -> None:
    """Ask for the account type, or show the profile when already logged in."""
    await state.clear()

    account = await get_current_account(user_id)
    if account:
        await message.answer(
            "ℹ️ 이미 로그인되어 있습니다.\n\n" + get_profile_text(account),
            reply_markup=get_profile_keyboard(),
        )
        return

    await message.answer(
        "🔑 <b>로그인</b>\n\n로그인할 계정 유형을 선택하세요.",
        reply_markup=get_login_role_keyboard(),
    )


@router.message(Command("login"))
@router.message(F.text == LOGIN_BUTTON)
async def login_handler(message: Message, state: FSMContext) -> None:
    """Starts the login form."""
    if not message.from_user:
        return
    try:
        await start_login(message, state, message.from_user.id)
    except Exception as e:
        logger.error(f"Error starting login for user {message.from_user.id}: {e}")
        await message.answer("❌ 로그인을 시작할 수 없습니다. 잠시 후 다시 시도해주세요.")


@router.callback_query(AuthFactory.filter(F.action == "start"))
async def login_callback(callback: CallbackQuery, state: FSMContext) -> None:
    """Starts the login form from an inline button."""
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return
    await start_login(callback.message, state, callback.from_user.id)


@router.callback_query(AuthFactory.filter(F.action == "role"))
async def login_role_callback(
    callback: CallbackQuery,
    callback_data: AuthFactory,
    state: FSMContext,
) -> None:
    """Remembers the account type and asks for the email."""
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return

    role = AccountRole(callback_data.role or AccountRole.USER)
    await state.set_state(LoginFormStates.waiting_for_email)
    await state.update_data(role=role.value, message_id=callback.message.message_id)

    await callback.message.edit_text(
        get_login_form_text(role) + "📧 <b>이메일을 입력하세요:</b>",
        reply_markup=get_form_cancel_keyboard("login"),
    )


@router.message(LoginFormStates.waiting_for_email)
async def login_email_handler(message: Message, state: FSMContext) -> None:
    """Processes the email input."""
    email = (message.text or "").strip()
    data = await state.get_data()
    role = AccountRole(data.get("role", AccountRole.USER))

    if not EMAIL_RE.match(email):
        await edit_form_message(
            message,
            state,
            get_login_form_text(role)
            + f"❌ <b>{EMAIL_INVALID}</b>\n\n📧 이메일을 다시 입력하세요:",
            get_form_cancel_keyboard("login"),
        )
        return

    await state.update_data(email=email)
    await state.set_state(LoginFormStates.waiting_for_password)
    await edit_form_message(
        message,
        state,
        get_login_form_text(role, email) + "🔒 <b>비밀번호를 입력하세요:</b>\n\n"
        "💡 <i>입력한 메시지는 바로 삭제됩니다</i>",
        get_form_cancel_keyboard("login"),
    )


@router.message(LoginFormStates.waiting_for_password)
async def login_password_handler(message: Message, state: FSMContext) -> None:
    """Validates the form, logs in at the backend and stores the account."""
    if not message.from_user:
        return

    password = message.text or ""
    data = await state.get_data()
    role = AccountRole(data.get("role", AccountRole.USER))
    email = data.get("email", "")
    form_text = get_login_form_text(role, email)

    try:
        request = validate_login_form(email, password)
    except FormValidationError as e:
        await edit_form_message(
            message,
            state,
            form_text + f"❌ <b>{e.message}</b>\n\n🔒 비밀번호를 다시 입력하세요:",
            get_form_cancel_keyboard("login"),
        )
        return

    if not await edit_form_message(message, state, form_text + "🔄 <b>로그인 중...</b>"):
        return

    user_id = message.from_user.id
    try:
        async with FranchiseAPIClient() as api_client:
            if role == AccountRole.MANAGER:
                response = await api_client.manager_login(
                    request.email,
                    request.password,
                )
            else:
                response = await api_client.login(request.email, request.password)

        login_data = response.data
        ref = login_data.account
        if ref is None:
            raise ValueError(f"Login response of {request.email} has no account")

        async with get_or_create_session() as session:
            account = await AccountsService(session).login(
                user_id,
                account_id=ref.id,
                role=login_data.user_type,
                email=ref.email or request.email,
                name=ref.name,
                phone=ref.phone,
                username=message.from_user.username,
            )
    except Exception as e:
        logger.warning(f"Login of user {user_id} as {role} failed: {e}")
        await edit_form_message(
            message,
            state,
            form_text
            + f"❌ <b>{html.quote(describe_error(e, LOGIN_FAILED_TEXT))}</b>\n\n"
            "🔒 비밀번호를 다시 입력하세요:",
            get_form_cancel_keyboard("login"),
        )
        return

    await edit_form_message(
        message,
        state,
        f"✅ <b>로그인되었습니다.</b>\n\n{get_profile_text(account)}",
    )
    await state.clear()
    await message.answer(
        "아래 키보드로 메뉴를 이용하세요 🔽",
        reply_markup=get_commands_reply_keyboard(account),
    )


@router.callback_query(FormFactory.filter((F.form == "login") & (F.action == "cancel")))
async def login_cancel_callback(callback: CallbackQuery, state: FSMContext) -> None:
    """Cancels the login form."""
    await callback.answer()
    await state.clear()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return
    await callback.message.edit_text(CANCELLED_TEXT)


async def logout(message: Message, state: FSMContext, user_id: int) -> None:
    await state.clear()
    async with get_or_create_session() as session:
        logged_out = await AccountsService(session).logout(user_id)

    await message.answer(
        "👋 로그아웃되었습니다." if logged_out else "ℹ️ 로그인되어 있지 않습니다.",
        reply_markup=get_commands_reply_keyboard(None),
    )


@router.message(Command("logout"))
async def logout_handler(message: Message, state: FSMContext) -> None:
    """Forgets the account of the user."""
    if not message.from_user:
        return
    try:
        await logout(message, state, message.from_user.id)
    except Exception as e:
        logger.error(f"Error logging out user {message.from_user.id}: {e}")
        await message.answer("❌ 로그아웃 중 오류가 발생했습니다.")


@router.callback_query(AuthFactory.filter(F.action == "logout"))
async def logout_callback(callback: CallbackQuery, state: FSMContext) -> None:
    await callback.answer()
    if not callback.message or isinstance(callback.message, InaccessibleMessage):
        return
    try:
        await logout(callback.message, state, callback.from_user.id)
    except Exception as e:
        logger.error(f"Error logging out user {callback.from_user.id}: {e}")
        await callback.message.answer("❌ 로그아웃 중 오류가 발생했습니다.")


@router.message(Command("profile"))
@router.message(F.text == PROFILE_BUTTON)
async def profile_handler(message: Message) -> None:
    """Shows the account the user is logged in as."""
    if not message.from_user:
        return

    account = await get_current_account(message.from_user.id)
    if account is None:
        await message.answer(LOGIN_REQUIRED_TEXT, reply_markup=get_login_keyboard())
        return

    await message.answer(get_profile_text(account), reply_markup=get_profile_keyboard())
