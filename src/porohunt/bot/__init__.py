"""Bot package initialization."""

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from porohunt.config import settings


def create_bot() -> Bot:
    """Create and configure the Telegram bot."""
    return Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(
            parse_mode=ParseMode.HTML,
            link_preview_is_disabled=True,
        ),
    )


def create_dispatcher(**workflow_data) -> Dispatcher:
    """Create the dispatcher with handlers and middlewares registered.

    Keyword arguments become workflow data, injected into handlers by name
    (the spawn lifecycle is passed this way).
    """
    dp = Dispatcher(**workflow_data)

    # Register handlers
    from porohunt.bot.handlers import register_all_handlers

    register_all_handlers(dp)

    # Register middlewares
    from porohunt.bot.middlewares import register_all_middlewares

    register_all_middlewares(dp)

    return dp


__all__ = ["create_bot", "create_dispatcher"]
