"""Optimistic save/unsave toggle for brands."""

from __future__ import annotations

from typing import Awaitable, Callable, Iterable, Mapping, Optional

from loguru import logger

from franchise_bot.api.client import FranchiseAPIError
from franchise_bot.api.models import SaveStatusResponse, SaveToggleResponse

ToggleRequest = Callable[[int], Awaitable[SaveToggleResponse]]
StatusRequest = Callable[[list[int]], Awaitable[SaveStatusResponse]]
StateListener = Callable[[int, bool], Awaitable[None]]


class SaveToggle:
    """
    Saved flags of brands as seen by one screen.

    The backend is the source of truth: screens call :meth:`refresh` before
    rendering instead of trusting flags left over from earlier toggles.
    Toggles are applied before the request completes and rolled back when
    it fails. Two overlapping toggles are not serialized, the last response
    wins.
    """

    def __init__(self, saved: Optional[Mapping[int, bool]] = None) -> None:
        self._saved: dict[int, bool] = dict(saved or {})

    def is_saved(self, brand_id: int) -> bool:
        """Current (possibly optimistic) flag of the brand."""
        return self._saved.get(brand_id, False)

    @property
    def states(self) -> dict[int, bool]:
        """Copy of all known flags."""
        return dict(self._saved)

    async def refresh(
        self,
        brand_ids: Iterable[int],
        fetch: StatusRequest,
    ) -> dict[int, bool]:
        """
        Reload flags of the brands from the backend.

        Brands missing from the answer are treated as not saved.
        """
        ids = list(brand_ids)
        if not ids:
            return {}
        response = await fetch(ids)
        for brand_id in ids:
            self._saved[brand_id] = bool(response.data.get(brand_id, False))
        return {brand_id: self._saved[brand_id] for brand_id in ids}

    async def toggle(
        self,
        brand_id: int,
        send: ToggleRequest,
        on_change: Optional[StateListener] = None,
    ) -> bool:
        """
        Flip the saved flag of the brand.

        Args:
            brand_id: Brand to toggle.
            send: Performs the toggle request.
            on_change: Called with the new flag right after the optimistic
                update and again after a rollback.

        Returns:
            Saved flag after the request, as reported by the backend when
            it says so.

        Raises:
            FranchiseAPIError: When the backend rejects the toggle.
            aiohttp.ClientError: On network failures.
        """
        previous = self.is_saved(brand_id)
        self._saved[brand_id] = not previous
        if on_change:
            await on_change(brand_id, not previous)

        try:
            response = await send(brand_id)
            if not response.success:
                raise FranchiseAPIError(
                    message=response.message or "Save toggle failed",
                    error_code=response.error_code,
                )
        except Exception:
            logger.warning(f"Save toggle of brand {brand_id} failed, rolling back")
            self._saved[brand_id] = previous
            if on_change:
                await on_change(brand_id, previous)
            raise

        if response.data is not None and response.data.is_saved is not None:
            self._saved[brand_id] = response.data.is_saved
        return self._saved[brand_id]
