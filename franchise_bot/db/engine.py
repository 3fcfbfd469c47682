from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from franchise_bot.db.meta import meta
from franchise_bot.db.models import load_all_models
from franchise_bot.settings import settings

engine = create_async_engine(str(settings.db_url), echo=settings.DB_ECHO)


session_factory = async_sessionmaker(
    engine,
    expire_on_commit=False,
)


async def init_models() -> None:
    """Create missing tables."""
    load_all_models()
    async with engine.begin() as connection:
        await connection.run_sync(meta.create_all)
    logger.info("Database tables are ready")


async def close_engine() -> None:
    """Close database engine."""
    await engine.dispose()
    logger.info("Close database engine")
