"""Spawn lifecycle orchestration.

Ties the engine's state transitions to the presenter (the public message)
and to the expiry timers. Each call opens its own session from the factory,
so the lifecycle can be shared by handlers and the scheduler alike.
"""

from __future__ import annotations

import random
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from porohunt.core.catching import BerryResult, CatchResult, attempt_catch, toss_berry
from porohunt.core.catalog import Poro, get_poro
from porohunt.core.clock import utcnow
from porohunt.core.collection import build_showcase
from porohunt.core.rooms import get_room
from porohunt.core.spawning.engine import (
    SpawnResult,
    attempt_spawn,
    expire_overdue_spawns,
    flee_window,
    force_clear_spawn,
    get_spawn,
    spawn_deadline,
    spawn_ttl,
)
from porohunt.core.spawning.presenter import (
    REASON_CLEARED,
    REASON_FLED,
    REASON_TIMEOUT,
    SpawnPresenter,
)
from porohunt.core.spawning.timers import SpawnTimers
from porohunt.database.models import ActiveSpawn
from porohunt.logging import bind_room, get_logger

logger = get_logger(__name__)


class SpawnLifecycle:
    """Runs spawns from creation to caught or ran away."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        presenter: SpawnPresenter,
        timers: SpawnTimers | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.presenter = presenter
        self.timers = timers or SpawnTimers(session_factory, presenter)
        self.rng = rng or random.Random()

    async def _publish(self, spawn: ActiveSpawn, poro: Poro) -> int | None:
        try:
            return await self.presenter.post_spawn(spawn.channel_id, spawn, poro)
        except Exception as e:
            logger.error("Failed to post spawn", chat_id=spawn.chat_id, error=str(e))
            return None

    async def spawn(self, chat_id: int, now: datetime | None = None) -> SpawnResult:
        """Start a spawn, post it and arm its hard deadline.

        A spawn that cannot be posted is rolled back, so the room stays free
        and nobody's net is spent on it.
        """
        now = now or utcnow()
        bind_room(chat_id)

        async with self.session_factory() as session:
            result = await attempt_spawn(session, chat_id, now, self.rng, publish=self._publish)
        if not result.ok:
            return result

        self.timers.arm(chat_id, result.spawn.instance_id, spawn_ttl(), REASON_TIMEOUT)
        return result

    async def catch(
        self,
        chat_id: int,
        instance_id: str,
        user_id: int,
        username: str | None = None,
        now: datetime | None = None,
    ) -> CatchResult:
        """Resolve a catch click.

        The first attempt on a spawn starts the flee window; a successful
        catch updates the public message straight away.
        """
        now = now or utcnow()
        bind_room(chat_id)

        async with self.session_factory() as session:
            result = await attempt_catch(
                session, chat_id, instance_id, user_id, username, now, self.rng
            )
            if not result.ok:
                return result

            if result.first_interaction:
                self.timers.arm(chat_id, instance_id, flee_window(), REASON_FLED)

            if result.success:
                spawn = await get_spawn(session, chat_id)
                if spawn is not None and spawn.instance_id == instance_id:
                    try:
                        await self.presenter.mark_caught(spawn, result.poro, user_id, username)
                    except Exception as e:
                        logger.warning("Could not update caught spawn message", error=str(e))

        return result

    async def toss_berry(
        self,
        chat_id: int,
        instance_id: str,
        user_id: int,
        now: datetime | None = None,
    ) -> BerryResult:
        bind_room(chat_id)
        async with self.session_factory() as session:
            return await toss_berry(session, chat_id, instance_id, user_id, now)

    async def clear(self, chat_id: int) -> ActiveSpawn | None:
        """Force the room's live spawn to end (operator action)."""
        async with self.session_factory() as session:
            spawn = await force_clear_spawn(session, chat_id)

        if spawn is not None:
            try:
                await self.presenter.mark_expired(spawn, get_poro(spawn.poro_id), REASON_CLEARED)
            except Exception as e:
                logger.warning("Could not update cleared spawn message", chat_id=chat_id, error=str(e))
        return spawn

    async def sweep(self, now: datetime | None = None) -> list[ActiveSpawn]:
        """Expire spawns whose deadline passed while no timer was watching."""
        async with self.session_factory() as session:
            expired = await expire_overdue_spawns(session, now)

        for spawn in expired:
            reason = REASON_TIMEOUT if spawn.first_interaction_at is None else REASON_FLED
            try:
                await self.presenter.mark_expired(spawn, get_poro(spawn.poro_id), reason)
            except Exception as e:
                logger.warning("Could not update expired spawn message", chat_id=spawn.chat_id, error=str(e))
        return expired

    async def restore(self, now: datetime | None = None) -> int:
        """Re-arm timers for spawns that were live when the process stopped.

        Returns how many timers were armed.
        """
        now = now or utcnow()
        await self.sweep(now)

        async with self.session_factory() as session:
            result = await session.execute(
                select(ActiveSpawn).where(ActiveSpawn.active == True)  # noqa: E712
            )
            live = list(result.scalars().all())

        for spawn in live:
            reason = REASON_TIMEOUT if spawn.first_interaction_at is None else REASON_FLED
            self.timers.arm(spawn.chat_id, spawn.instance_id, spawn_deadline(spawn) - now, reason)

        logger.info("Restored spawn timers", count=len(live))
        return len(live)

    async def post_showcase(self, chat_id: int, now: datetime | None = None) -> bool:
        """Post the weekly showcase to the room's showcase channel."""
        now = now or utcnow()
        async with self.session_factory() as session:
            room = await get_room(session, chat_id)
            if room is None or room.showcase_channel_id is None:
                return False

            showcase = await build_showcase(session, chat_id)
            await self.presenter.post_showcase(room.showcase_channel_id, showcase)
            room.last_showcase_at = now
            await session.commit()

        logger.info("Weekly showcase posted", chat_id=chat_id)
        return True

    async def close(self) -> None:
        await self.timers.close()
