from datetime import datetime
from typing import Optional

from loguru import logger

from franchise_bot.api.models import AccountRole
from franchise_bot.db.models.accounts import Account
from franchise_bot.db.services.base import BaseService


class AccountsService(BaseService[Account]):
    """Login sessions of Telegram users."""

    model = Account

    async def get_account(self, telegram_id: int) -> Account | None:
        """Account the Telegram user is logged in as, if any."""
        return await self.find_one_or_none(id=telegram_id)

    async def login(
        self,
        telegram_id: int,
        *,
        account_id: int,
        role: AccountRole,
        email: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        username: Optional[str] = None,
    ) -> Account:
        """
        Remember the backend account of the Telegram user.

        A previous login of the same Telegram user is replaced.
        """
        fields = {
            "account_id": account_id,
            "role": role,
            "email": email,
            "name": name,
            "phone": phone,
            "username": username,
            "logged_in_at": datetime.now(),
        }
        account = await self.get_account(telegram_id)
        if account is None:
            account = await self.add_model(Account(id=telegram_id, **fields))
        else:
            account = await self.update_by_model(account, **fields)
        logger.info(f"Telegram user {telegram_id} logged in as {role} {account_id}")
        return account

    async def logout(self, telegram_id: int) -> bool:
        """
        Forget the login of the Telegram user.

        Returns:
            True if the user was logged in.
        """
        deleted = await self.delete_where(Account.id == telegram_id)
        if deleted:
            logger.info(f"Telegram user {telegram_id} logged out")
        return deleted > 0
