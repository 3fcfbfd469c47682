from loguru import logger

from franchise_bot import routers
from franchise_bot.db.engine import close_engine, init_models
from franchise_bot.loader import bot, dispatcher, loop
from franchise_bot.settings.logging import setup_logging
from franchise_bot.utils.commands import setup_default_commands


async def aiogram_on_startup_polling() -> None:
    """AIogram on startup polling."""
    await bot.delete_webhook(drop_pending_updates=True)
    await init_models()
    await setup_default_commands(bot)
    dispatcher.include_routers(
        routers.start_router,
        routers.auth_router,
        routers.brands_router,
        routers.saved_router,
        routers.consultations_router,
        routers.manager_router,
    )
    logger.info("Bot started")


async def aiogram_on_shutdown_polling() -> None:
    """AIogram on shutdown polling."""
    await close_engine()
    await bot.session.close()
    logger.info("Stopped polling")


def main() -> None:
    """Main function."""
    setup_logging()
    dispatcher.startup.register(aiogram_on_startup_polling)
    dispatcher.shutdown.register(aiogram_on_shutdown_polling)
    loop.run_until_complete(dispatcher.start_polling(bot))  # type: ignore


if __name__ == "__main__":
    main()
