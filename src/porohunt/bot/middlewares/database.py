"""Database session middleware."""

from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from porohunt.core.errors import PersistenceUnavailable
from porohunt.database import get_session_context
from porohunt.logging import get_logger

logger = get_logger(__name__)


class DatabaseMiddleware(BaseMiddleware):
    """Middleware to provide a database session to handlers."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        """Inject database session into handler data."""
        try:
            async with get_session_context() as session:
                data["session"] = session
                return await handler(event, data)
        except PersistenceUnavailable as e:
            # The game state is unchanged; the player can simply retry
            logger.warning("Update dropped, database unavailable", error=str(e))
            return None
