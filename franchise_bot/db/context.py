from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .engine import session_factory


@asynccontextmanager
async def get_or_create_session(
    existing_session: AsyncSession | None = None,
) -> AsyncGenerator[AsyncSession, Any]:
    """
    Open a transaction, committed on exit and rolled back on errors.

    An existing session is yielded as is, its owner commits it.

    Yields:
        The session.
    """
    if existing_session is not None:
        yield existing_session
        return

    async with session_factory() as session:
        try:
            async with session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Database transaction failed: {e}")
            raise
