"""Per-room serialization and database failure handling.

Every state transition for a room runs inside ``room_transaction``: the
room's lock keeps concurrent handlers in this process from interleaving, and
the transitions themselves are conditional writes so the database still
picks a single winner if several processes share it.
"""

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.core.errors import PersistenceUnavailable
from porohunt.logging import get_logger

logger = get_logger(__name__)

# Locks belong to an event loop, so keep one registry per loop
_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[int, asyncio.Lock]]" = (
    weakref.WeakKeyDictionary()
)


def room_lock(chat_id: int) -> asyncio.Lock:
    """Get the lock guarding a room's state on the running loop."""
    loop = asyncio.get_running_loop()
    registry = _locks.setdefault(loop, {})
    lock = registry.get(chat_id)
    if lock is None:
        lock = asyncio.Lock()
        registry[chat_id] = lock
    return lock


@asynccontextmanager
async def persistence_guard(session: AsyncSession) -> AsyncIterator[None]:
    """Roll back and raise PersistenceUnavailable on database failures."""
    try:
        yield
    except DBAPIError as e:
        await session.rollback()
        logger.error("Database operation failed", error=str(e))
        raise PersistenceUnavailable(str(e.orig or e)) from e


@asynccontextmanager
async def room_transaction(session: AsyncSession, chat_id: int) -> AsyncIterator[None]:
    """Serialize work on one room and guard it against partial writes."""
    async with room_lock(chat_id):
        async with persistence_guard(session):
            yield
