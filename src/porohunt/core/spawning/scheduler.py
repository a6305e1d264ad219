"""Daily spawn pacing.

Each room aims for ``spawns_per_day`` spawns per local day, spread at random
over the hours outside blackout. The next spawn time is always persisted, so a
restart picks up exactly where the previous process left off.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from porohunt.config import settings
from porohunt.core.atomic import persistence_guard
from porohunt.core.clock import from_local, local_date, local_day, to_local, utcnow
from porohunt.core.errors import GameError
from porohunt.core.rooms import get_or_create_room, list_spawn_rooms
from porohunt.core.spawning.blackout import (
    blackout_end_on,
    is_blackout,
    next_allowed_spawn_at,
)
from porohunt.database.models import Room, RoomSchedule
from porohunt.logging import get_logger

if TYPE_CHECKING:
    from porohunt.core.spawning.engine import SpawnResult
    from porohunt.core.spawning.lifecycle import SpawnLifecycle

logger = get_logger(__name__)

MIN_SPAWNS_PER_DAY = 1
MAX_SPAWNS_PER_DAY = 50

# Pacing never assumes less than this between spawns
MIN_AVERAGE_GAP = timedelta(minutes=30)
# The day's remaining spawns are spread up to this local time
END_OF_DAY = time(23, 59, 30)

# Weekly showcase: Sunday evening, local time
SHOWCASE_WEEKDAY = 6
SHOWCASE_HOUR = 18
SHOWCASE_MIN_INTERVAL = timedelta(days=6)


@dataclass(frozen=True)
class ScheduleResult:
    error: GameError | None = None
    schedule: RoomSchedule | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def get_schedule(session: AsyncSession, chat_id: int) -> RoomSchedule:
    """Load the room's schedule, creating an empty one on first use."""
    schedule = await session.get(RoomSchedule, chat_id)
    if schedule is None:
        await get_or_create_room(session, chat_id)
        schedule = RoomSchedule(
            chat_id=chat_id,
            next_spawn_at=None,
            spawns_per_day=settings.default_spawns_per_day,
            spawns_today=0,
            spawn_day=None,
        )
        session.add(schedule)
        await session.flush()
    return schedule


def _roll_day(schedule: RoomSchedule, now: datetime) -> None:
    """Start a fresh count when the local day has changed."""
    today = local_day(now)
    if schedule.spawn_day != today:
        schedule.spawn_day = today
        schedule.spawns_today = 0


def _draw_next(schedule: RoomSchedule, now: datetime, rng: random.Random) -> datetime:
    if schedule.spawns_today >= schedule.spawns_per_day:
        # Quota met: nothing more until tomorrow morning
        return blackout_end_on(local_date(now) + timedelta(days=1), rng)

    if is_blackout(now):
        return next_allowed_spawn_at(now, rng)

    remaining = schedule.spawns_per_day - schedule.spawns_today
    end_of_day = from_local(datetime.combine(local_date(now), END_OF_DAY))
    remaining_time = max(timedelta(0), end_of_day - now)
    average = max(MIN_AVERAGE_GAP, remaining_time / remaining)

    min_gap = timedelta(minutes=settings.min_spawn_gap_minutes)
    max_gap = timedelta(hours=settings.max_spawn_gap_hours)
    upper = min(max_gap, max(min_gap, 2 * average))
    gap = rng.uniform(min_gap.total_seconds(), upper.total_seconds())

    candidate = now + timedelta(seconds=gap)
    if is_blackout(candidate):
        return next_allowed_spawn_at(candidate, rng)
    return candidate


async def compute_next_spawn(
    session: AsyncSession,
    chat_id: int,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> datetime:
    """Pick and persist the room's next spawn time."""
    now = now or utcnow()
    rng = rng or random

    async with persistence_guard(session):
        schedule = await get_schedule(session, chat_id)
        _roll_day(schedule, now)
        schedule.next_spawn_at = _draw_next(schedule, now, rng)
        await session.commit()

    logger.debug(
        "Next spawn scheduled",
        chat_id=chat_id,
        next_spawn_at=schedule.next_spawn_at.isoformat(),
        spawns_today=schedule.spawns_today,
        spawns_per_day=schedule.spawns_per_day,
    )
    return schedule.next_spawn_at


async def should_spawn_now(
    session: AsyncSession,
    chat_id: int,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> bool:
    """Check whether the room's next spawn is due.

    A room without a schedule gets one and is not due yet.
    """
    now = now or utcnow()
    schedule = await get_schedule(session, chat_id)
    if schedule.next_spawn_at is None:
        await compute_next_spawn(session, chat_id, now, rng)
        return False
    return now >= schedule.next_spawn_at


async def mark_spawn_happened(
    session: AsyncSession,
    chat_id: int,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> datetime:
    """Count a spawn against today's quota and schedule the next one."""
    now = now or utcnow()
    async with persistence_guard(session):
        schedule = await get_schedule(session, chat_id)
        _roll_day(schedule, now)
        schedule.spawns_today += 1
    return await compute_next_spawn(session, chat_id, now, rng)


async def defer_spawn(session: AsyncSession, chat_id: int, until: datetime) -> None:
    """Push the next check to ``until`` without touching the quota."""
    async with persistence_guard(session):
        schedule = await get_schedule(session, chat_id)
        schedule.next_spawn_at = until
        await session.commit()
    logger.debug("Spawn deferred", chat_id=chat_id, until=until.isoformat())


async def set_spawns_per_day(
    session: AsyncSession,
    chat_id: int,
    target: int,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> ScheduleResult:
    """Change a room's daily quota and re-plan the next spawn."""
    if not MIN_SPAWNS_PER_DAY <= target <= MAX_SPAWNS_PER_DAY:
        return ScheduleResult(error=GameError.INVALID_INPUT)

    async with persistence_guard(session):
        schedule = await get_schedule(session, chat_id)
        schedule.spawns_per_day = target
    await compute_next_spawn(session, chat_id, now, rng)

    logger.info("Spawn rate changed", chat_id=chat_id, spawns_per_day=target)
    return ScheduleResult(schedule=schedule)


def showcase_due(room: Room, now: datetime) -> bool:
    """Sunday 18:00 local, at most once every six days."""
    if room.showcase_channel_id is None:
        return False
    local = to_local(now)
    if local.weekday() != SHOWCASE_WEEKDAY or local.hour != SHOWCASE_HOUR:
        return False
    if room.last_showcase_at is None:
        return True
    return now - room.last_showcase_at >= SHOWCASE_MIN_INTERVAL


class SpawnScheduler:
    """Background driver that fires due spawns in every room."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        lifecycle: SpawnLifecycle,
        rng: random.Random | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._lifecycle = lifecycle
        self._rng = rng or random.Random()

    async def _reschedule(
        self,
        session: AsyncSession,
        chat_id: int,
        result: SpawnResult,
        now: datetime,
    ) -> None:
        if result.ok:
            await mark_spawn_happened(session, chat_id, now, self._rng)
        elif result.error == GameError.BLACKOUT and result.next_allowed_at is not None:
            await defer_spawn(session, chat_id, result.next_allowed_at)
        elif result.error == GameError.NO_CHANNEL_CONFIGURED:
            await defer_spawn(
                session, chat_id, now + timedelta(hours=settings.no_channel_retry_hours)
            )
        else:
            await defer_spawn(
                session, chat_id, now + timedelta(minutes=settings.already_active_retry_minutes)
            )

    async def tick(self, now: datetime | None = None) -> dict[int, SpawnResult]:
        """Run one scheduling pass. Returns the spawn outcome per fired room."""
        now = now or utcnow()
        fired: dict[int, SpawnResult] = {}

        await self._lifecycle.sweep(now)

        async with self._session_factory() as session:
            rooms = await list_spawn_rooms(session)
            # Snapshot before the loop; a rollback expires loaded rows
            targets = [(room.chat_id, showcase_due(room, now)) for room in rooms]

            for chat_id, showcase in targets:
                try:
                    if showcase:
                        await self._lifecycle.post_showcase(chat_id, now)

                    if not await should_spawn_now(session, chat_id, now, self._rng):
                        continue

                    result = await self._lifecycle.spawn(chat_id, now)
                    await self._reschedule(session, chat_id, result, now)
                    fired[chat_id] = result

                    if not result.ok:
                        logger.info("Scheduled spawn skipped", chat_id=chat_id, reason=result.error.value)
                except Exception as e:
                    # One broken room must not stop the others
                    await session.rollback()
                    logger.error("Scheduler failed for room", chat_id=chat_id, error=str(e))

        return fired

    async def run(self) -> None:
        """Tick forever, every ``scheduler_tick_seconds``."""
        logger.info("Spawn scheduler started", interval=settings.scheduler_tick_seconds)
        while True:
            try:
                await self.tick()
            except Exception as e:
                logger.error("Error in spawn scheduler", error=str(e))

            await asyncio.sleep(settings.scheduler_tick_seconds)
