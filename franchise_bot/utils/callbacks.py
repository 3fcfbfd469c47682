from __future__ import annotations

from enum import StrEnum, auto

from aiogram.filters.callback_data import CallbackData


class StartCallback(StrEnum):
    """Callbacks for the start router."""

    START_HELP = auto()


class AuthFactory(CallbackData, prefix="auth"):
    """Factory for login callbacks."""

    action: str
    role: str | None = None


class BrandsMenuFactory(CallbackData, prefix="brands"):
    """Factory for brand catalogue callbacks.

    ``source`` is the list action a brand card was opened from,
    so its back button returns to the same list.
    """

    action: str
    brand_id: int | None = None
    category_id: int | None = None
    page: int = 0
    source: str = "list"


class SavedMenuFactory(CallbackData, prefix="saved"):
    """Factory for saved brands callbacks."""

    action: str
    brand_id: int | None = None


class ConsultationsMenuFactory(CallbackData, prefix="consult"):
    """Factory for user consultation callbacks."""

    action: str
    consultation_id: int | None = None
    tab: str = "active"


class ManagerMenuFactory(CallbackData, prefix="manager"):
    """Factory for manager consultation callbacks."""

    action: str
    consultation_id: int | None = None
    page: int = 0


class FormFactory(CallbackData, prefix="form"):
    """Factory for buttons inside multi-step forms.

    ``slot`` is an index into the configured time slots,
    callback data cannot carry ``:`` itself.
    """

    form: str
    action: str
    slot: int | None = None
