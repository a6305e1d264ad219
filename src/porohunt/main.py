"""Main entry point for the Poro Hunt bot."""

import asyncio
import sys

from porohunt.bot import create_bot, create_dispatcher
from porohunt.bot.presenter import TelegramPresenter
from porohunt.core.spawning.lifecycle import SpawnLifecycle
from porohunt.core.spawning.scheduler import SpawnScheduler
from porohunt.database import async_session_factory, close_db, init_db
from porohunt.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def main() -> None:
    """Main function to run the bot."""
    # Set up logging
    setup_logging()
    logger.info("Starting Poro Hunt bot...")

    # Initialize database
    try:
        await init_db()
        logger.info("Database connection established")
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        sys.exit(1)

    # Create bot, game services and dispatcher
    bot = create_bot()
    lifecycle = SpawnLifecycle(async_session_factory, TelegramPresenter(bot))
    scheduler = SpawnScheduler(async_session_factory, lifecycle)
    dp = create_dispatcher(lifecycle=lifecycle)

    scheduler_task = None
    try:
        # Get bot info
        bot_info = await bot.get_me()
        logger.info(
            "Bot started",
            username=bot_info.username,
            bot_id=bot_info.id,
        )

        # Pick up spawns that were live before the restart
        await lifecycle.restore()

        # Start the spawn scheduler next to polling
        scheduler_task = asyncio.create_task(scheduler.run())

        # Start polling
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())

    except Exception as e:
        logger.error("Bot error", error=str(e))
        raise
    finally:
        # Cleanup
        if scheduler_task is not None:
            scheduler_task.cancel()
        await lifecycle.close()
        await bot.session.close()
        await close_db()
        logger.info("Bot stopped")


def run() -> None:
    """Entry point for the application."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
