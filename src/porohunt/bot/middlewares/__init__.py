"""Middleware registration and implementations."""

from aiogram import Dispatcher

from porohunt.bot.middlewares.database import DatabaseMiddleware
from porohunt.bot.middlewares.trainer import TrainerMiddleware


def register_all_middlewares(dp: Dispatcher) -> None:
    """Register all middlewares with the dispatcher."""
    # Database session middleware (must be first)
    dp.message.middleware(DatabaseMiddleware())
    dp.callback_query.middleware(DatabaseMiddleware())

    # Trainer loading (requires database); group messages only
    dp.message.middleware(TrainerMiddleware())


__all__ = ["register_all_middlewares"]
