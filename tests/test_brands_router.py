from typing import Any

import pytest

from franchise_bot.api.models import (
    AccountRole,
    Consultation,
    ConsultationPageResponse,
    ConsultationStatus,
)
from franchise_bot.db.models.accounts import Account
from franchise_bot.routers.brands import check_no_active_consultation
from franchise_bot.utils.consultations import DuplicateConsultationError


class HistoryClient:
    """Serves the user's consultations page by page."""

    def __init__(self, pages: list[list[Consultation]]) -> None:
        self.pages = pages
        self.requested: list[int] = []

    async def get_user_consultations(
        self,
        user_id: int,
        page: int = 0,
        size: int = 10,
    ) -> ConsultationPageResponse:
        self.requested.append(page)
        payload: dict[str, Any] = {
            "success": True,
            "data": {
                "content": self.pages[page],
                "pageInfo": {
                    "page": page,
                    "size": size,
                    "hasNext": page + 1 < len(self.pages),
                },
            },
        }
        return ConsultationPageResponse.model_validate(payload)


@pytest.fixture
def account() -> Account:
    return Account(id=1, account_id=7, role=AccountRole.USER, email="a@example.com")


async def test_duplicate_found_on_later_page(make_consultation, account):
    client = HistoryClient(
        [
            [make_consultation(consultation_id=1, brand_id=5)],
            [make_consultation(consultation_id=2, brand_id=42)],
            [make_consultation(consultation_id=3, brand_id=6)],
        ],
    )

    with pytest.raises(DuplicateConsultationError) as exc_info:
        await check_no_active_consultation(client, account, 42)

    assert exc_info.value.existing.id == 2
    assert client.requested == [0, 1]


async def test_every_page_checked_without_duplicate(make_consultation, account):
    cancelled = ConsultationStatus.CANCELLED
    client = HistoryClient(
        [
            [make_consultation(consultation_id=1, brand_id=42, status=cancelled)],
            [make_consultation(consultation_id=2, brand_id=5)],
        ],
    )

    await check_no_active_consultation(client, account, 42)

    assert client.requested == [0, 1]
