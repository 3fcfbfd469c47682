import os

# Settings are read at import time
os.environ.setdefault("BOT_TOKEN", "123456:TEST")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date, datetime  # noqa: E402
from typing import Any, AsyncGenerator, Callable  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from franchise_bot.api.models import Consultation, ConsultationStatus  # noqa: E402
from franchise_bot.db.meta import meta  # noqa: E402
from franchise_bot.db.models import load_all_models  # noqa: E402


@pytest.fixture
def make_consultation() -> Callable[..., Consultation]:
    """Factory of consultations as the backend sends them."""

    def factory(
        consultation_id: int = 1,
        brand_id: int = 42,
        status: ConsultationStatus = ConsultationStatus.PENDING,
        **fields: Any,
    ) -> Consultation:
        payload: dict[str, Any] = {
            "consultationId": consultation_id,
            "brand": {"brandId": brand_id, "brandName": "맛있는 치킨"},
            "user": {"userId": 7, "name": "홍길동", "email": "hong@example.com"},
            "preferredDate": "2030-05-01",
            "preferredTime": "14:00",
            "message": "창업 비용이 궁금합니다.",
            "status": status.value,
            "createdAt": "2030-04-20T10:00:00",
        }
        payload.update(fields)
        return Consultation.model_validate(payload)

    return factory


@pytest.fixture
def today() -> date:
    return date(2030, 4, 25)


@pytest.fixture
def now() -> datetime:
    return datetime(2030, 4, 25, 12, 30)


@pytest.fixture
async def db_session(tmp_path: Any) -> AsyncGenerator[AsyncSession, None]:
    """Session bound to a fresh SQLite database."""
    load_all_models()
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as connection:
        await connection.run_sync(meta.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()
