from datetime import datetime

from sqlalchemy import DateTime, Enum, String, func
from sqlalchemy.orm import Mapped, mapped_column

from franchise_bot.api.models import AccountRole
from franchise_bot.db.base import Base
from franchise_bot.db.types import big_int, created_at_an, short_str_an, updated_at_an


class Account(Base):
    """Backend account a Telegram user is logged in as."""

    __tablename__ = "accounts"

    # Telegram user ID
    id: Mapped[big_int] = mapped_column(primary_key=True)

    # Franchise backend identity, sent as User-Id / Manager-Id
    account_id: Mapped[int] = mapped_column(nullable=False)
    role: Mapped[AccountRole] = mapped_column(Enum(AccountRole), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[short_str_an]
    phone: Mapped[str | None] = mapped_column(String(30))

    username: Mapped[short_str_an]
    logged_in_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    created_at: Mapped[created_at_an]
    updated_at: Mapped[updated_at_an]

    @property
    def is_manager(self) -> bool:
        """Account manages brands."""
        return self.role == AccountRole.MANAGER
