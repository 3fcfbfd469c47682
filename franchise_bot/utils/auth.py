"""Current account lookup for handlers."""

from franchise_bot.api.models import AccountRole
from franchise_bot.db.context import get_or_create_session
from franchise_bot.db.models.accounts import Account
from franchise_bot.db.services import AccountsService

LOGIN_REQUIRED_TEXT = (
    "🔒 <b>로그인이 필요합니다</b>\n\n이 메뉴를 이용하려면 /login 으로 로그인해주세요."
)
USER_ONLY_TEXT = "ℹ️ 일반 회원 전용 메뉴입니다."
MANAGER_ONLY_TEXT = "ℹ️ 매니저 전용 메뉴입니다."


async def get_current_account(telegram_id: int) -> Account | None:
    """Account the Telegram user is logged in as."""
    async with get_or_create_session() as session:
        return await AccountsService(session).get_account(telegram_id)


def access_denied_text(account: Account | None, role: AccountRole) -> str:
    """Text explaining why the account may not open a page for the role."""
    if account is None:
        return LOGIN_REQUIRED_TEXT
    return MANAGER_ONLY_TEXT if role == AccountRole.MANAGER else USER_ONLY_TEXT
