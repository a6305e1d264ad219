"""Database package."""

from porohunt.database.session import (
    async_session_factory,
    close_db,
    create_engine,
    create_session_factory,
    engine,
    get_session,
    get_session_context,
    init_db,
)

__all__ = [
    "engine",
    "async_session_factory",
    "create_engine",
    "create_session_factory",
    "get_session",
    "get_session_context",
    "init_db",
    "close_db",
]
