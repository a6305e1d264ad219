"""Handler registration."""

from aiogram import Dispatcher

from porohunt.bot.handlers import admin, profile, shop, spawn


def register_all_handlers(dp: Dispatcher) -> None:
    """Register all handlers with the dispatcher."""
    # Game handlers
    dp.include_router(profile.router)
    dp.include_router(spawn.router)
    dp.include_router(shop.router)

    # Admin handlers
    dp.include_router(admin.router)


__all__ = ["register_all_handlers"]
