"""In-process expiry timers for live spawns.

A timer only carries ``(chat_id, instance_id)``. When it fires it asks the
engine to expire that exact instance, which is a no-op if the spawn was
caught, already expired or replaced in the meantime, so timers never need to
be cancelled.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from porohunt.core.catalog import get_poro
from porohunt.core.spawning.engine import expire_spawn, get_spawn
from porohunt.core.spawning.presenter import SpawnPresenter
from porohunt.logging import get_logger

logger = get_logger(__name__)


class SpawnTimers:
    """Schedules spawn expiry on the running event loop."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        presenter: SpawnPresenter,
    ) -> None:
        self._session_factory = session_factory
        self._presenter = presenter
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def arm(
        self,
        chat_id: int,
        instance_id: str,
        delay: timedelta,
        reason: str,
    ) -> asyncio.Task:
        """Expire the spawn instance after ``delay`` (immediately if negative)."""
        seconds = max(0.0, delay.total_seconds())
        task = asyncio.create_task(self._fire(chat_id, instance_id, seconds, reason))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(
            "Timer armed",
            chat_id=chat_id,
            instance_id=instance_id,
            seconds=round(seconds, 1),
            reason=reason,
        )
        return task

    async def fire_now(self, chat_id: int, instance_id: str, reason: str) -> bool:
        """Expire the instance right away. Returns True if it was still live."""
        async with self._session_factory() as session:
            if not await expire_spawn(session, chat_id, instance_id):
                return False
            spawn = await get_spawn(session, chat_id)

        if spawn is None or spawn.instance_id != instance_id:
            return True

        try:
            await self._presenter.mark_expired(spawn, get_poro(spawn.poro_id), reason)
        except Exception as e:
            logger.warning("Could not update expired spawn message", chat_id=chat_id, error=str(e))
        return True

    async def _fire(self, chat_id: int, instance_id: str, seconds: float, reason: str) -> None:
        await asyncio.sleep(seconds)
        try:
            await self.fire_now(chat_id, instance_id, reason)
        except Exception as e:
            # The scheduler sweep retries overdue spawns
            logger.error("Expiry timer failed", chat_id=chat_id, instance_id=instance_id, error=str(e))

    async def close(self) -> None:
        """Cancel pending timers (shutdown only)."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
