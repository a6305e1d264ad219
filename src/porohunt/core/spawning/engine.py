"""Spawning engine: the per-room spawn row and its state transitions.

A room has exactly one ``ActiveSpawn`` row. Each spawn overwrites it with a
fresh ``instance_id``; the lifecycle is::

    idle -> active -> caught | expired

Every transition here is a conditional UPDATE keyed on the instance id, so a
late timer or a click on an old message can never touch a newer spawn.
"""

from __future__ import annotations

import random
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.config import settings
from porohunt.core.atomic import room_transaction
from porohunt.core.catalog import Poro, PoroStats, pick_random_poro, roll_stats
from porohunt.core.clock import utcnow
from porohunt.core.errors import GameError
from porohunt.core.offline import process_offline_captures
from porohunt.core.rooms import get_room
from porohunt.core.spawning.blackout import is_blackout, next_allowed_spawn_at
from porohunt.database.models import ActiveSpawn, Room
from porohunt.logging import get_logger

logger = get_logger(__name__)

# Posts a freshly claimed spawn; returns the message id, or None if it failed
Publisher = Callable[[ActiveSpawn, Poro], Awaitable[int | None]]


@dataclass(frozen=True)
class SpawnResult:
    """Outcome of a spawn attempt."""

    error: GameError | None = None
    spawn: ActiveSpawn | None = None
    poro: Poro | None = None
    stats: PoroStats | None = None
    offline_captures: tuple[int, ...] = ()
    # Set when refused for blackout
    next_allowed_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def spawn_ttl() -> timedelta:
    return timedelta(minutes=settings.spawn_ttl_minutes)


def flee_window() -> timedelta:
    return timedelta(minutes=settings.spawn_flee_minutes)


def spawn_deadline(spawn: ActiveSpawn) -> datetime:
    """When the spawn runs away if nobody catches it."""
    deadline = spawn.spawned_at + spawn_ttl()
    if spawn.first_interaction_at is not None:
        deadline = min(deadline, spawn.first_interaction_at + flee_window())
    return deadline


async def get_spawn(session: AsyncSession, chat_id: int) -> ActiveSpawn | None:
    """Get the room's spawn row, active or not, freshly read."""
    result = await session.execute(
        select(ActiveSpawn)
        .where(ActiveSpawn.chat_id == chat_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_active_spawn(session: AsyncSession, chat_id: int) -> ActiveSpawn | None:
    """Get the currently active spawn for a room."""
    spawn = await get_spawn(session, chat_id)
    if spawn is None or not spawn.active:
        return None
    return spawn


async def find_spawn_room(session: AsyncSession, instance_id: str) -> int | None:
    """Which room a spawn instance belongs to (buttons only carry the instance id)."""
    result = await session.execute(
        select(ActiveSpawn.chat_id).where(ActiveSpawn.instance_id == instance_id)
    )
    return result.scalar_one_or_none()


async def _claim_spawn_slot(session: AsyncSession, chat_id: int, values: dict) -> bool:
    """Turn the room's row into a new active spawn, unless one is active.

    This is the mutual-exclusion gate: the row is only overwritten where it
    is inactive, and a missing row is inserted under the primary key, so two
    concurrent callers cannot both succeed.
    """
    result = await session.execute(
        update(ActiveSpawn)
        .where(ActiveSpawn.chat_id == chat_id)
        .where(ActiveSpawn.active == False)  # noqa: E712
        .values(**values)
    )
    if result.rowcount == 1:
        return True

    if await get_spawn(session, chat_id) is not None:
        return False

    session.add(ActiveSpawn(chat_id=chat_id, **values))
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        return False
    return True


async def attempt_spawn(
    session: AsyncSession,
    chat_id: int,
    now: datetime | None = None,
    rng: random.Random | None = None,
    publish: Publisher | None = None,
) -> SpawnResult:
    """Try to start a new spawn in a room.

    Refuses when the room has no spawn channel, when a spawn is already
    active, or during blackout (with the next permissible time).

    With ``publish``, the spawn is posted while the room is still locked and
    the transaction still open. If it returns no message id, everything is
    rolled back: no net is spent and the spawn counter is unchanged. Offline
    captures are only written once the message exists, before any catch on
    it can be resolved.
    """
    now = now or utcnow()

    async with room_transaction(session, chat_id):
        room = await get_room(session, chat_id)
        if room is None or not room.is_configured:
            return SpawnResult(error=GameError.NO_CHANNEL_CONFIGURED)

        if await get_active_spawn(session, chat_id) is not None:
            return SpawnResult(error=GameError.ALREADY_ACTIVE)

        if is_blackout(now):
            return SpawnResult(
                error=GameError.BLACKOUT,
                next_allowed_at=next_allowed_spawn_at(now, rng),
            )

        poro = pick_random_poro(rng)
        stats = roll_stats(poro, rng)
        instance_id = uuid.uuid4().hex

        values = {
            "instance_id": instance_id,
            "poro_id": poro.id,
            "channel_id": room.spawn_channel_id,
            "message_id": None,
            "active": True,
            "spawned_at": now,
            "first_interaction_at": None,
            "caught_by": None,
            "caught_at": None,
            **stats.as_dict(),
        }

        if not await _claim_spawn_slot(session, chat_id, values):
            return SpawnResult(error=GameError.ALREADY_ACTIVE)

        if publish is not None:
            message_id = await publish(await get_spawn(session, chat_id), poro)
            if message_id is None:
                await session.rollback()
                logger.warning("Spawn not posted, rolled back", chat_id=chat_id, poro=poro.id)
                return SpawnResult(error=GameError.NO_CHANNEL_CONFIGURED)
            await _store_message_id(session, chat_id, instance_id, message_id)

        captures = await process_offline_captures(
            session, chat_id, instance_id, poro, stats, now
        )

        await session.execute(
            update(Room)
            .where(Room.chat_id == chat_id)
            .values(total_spawns=Room.total_spawns + 1)
        )
        await session.commit()

        spawn = await get_spawn(session, chat_id)

    logger.info(
        "Spawned poro",
        chat_id=chat_id,
        poro=poro.id,
        rarity=poro.rarity,
        instance_id=instance_id,
        offline_captures=len(captures),
    )

    return SpawnResult(
        spawn=spawn,
        poro=poro,
        stats=stats,
        offline_captures=tuple(captures),
    )


async def _store_message_id(
    session: AsyncSession, chat_id: int, instance_id: str, message_id: int
) -> bool:
    result = await session.execute(
        update(ActiveSpawn)
        .where(ActiveSpawn.chat_id == chat_id)
        .where(ActiveSpawn.instance_id == instance_id)
        .values(message_id=message_id)
    )
    return result.rowcount == 1


async def mark_first_interaction(
    session: AsyncSession,
    chat_id: int,
    instance_id: str,
    now: datetime,
) -> bool:
    """Stamp the first catch attempt on a spawn.

    Returns True only for the call that set it. Runs inside the caller's
    transaction.
    """
    result = await session.execute(
        update(ActiveSpawn)
        .where(ActiveSpawn.chat_id == chat_id)
        .where(ActiveSpawn.instance_id == instance_id)
        .where(ActiveSpawn.active == True)  # noqa: E712
        .where(ActiveSpawn.first_interaction_at.is_(None))
        .values(first_interaction_at=now)
    )
    return result.rowcount == 1


async def _deactivate(session: AsyncSession, chat_id: int, instance_id: str) -> bool:
    result = await session.execute(
        update(ActiveSpawn)
        .where(ActiveSpawn.chat_id == chat_id)
        .where(ActiveSpawn.instance_id == instance_id)
        .where(ActiveSpawn.active == True)  # noqa: E712
        .values(active=False)
    )
    return result.rowcount == 1


async def expire_spawn(session: AsyncSession, chat_id: int, instance_id: str) -> bool:
    """Let a spawn run away.

    Returns True if this call ended it; False if it was already caught,
    expired or superseded, in which case nothing changes.
    """
    async with room_transaction(session, chat_id):
        expired = await _deactivate(session, chat_id, instance_id)
        await session.commit()

    if expired:
        logger.info("Poro ran away", chat_id=chat_id, instance_id=instance_id)
    else:
        logger.debug("Expiry skipped, spawn already ended", chat_id=chat_id, instance_id=instance_id)
    return expired


async def expire_overdue_spawns(
    session: AsyncSession,
    now: datetime | None = None,
) -> list[ActiveSpawn]:
    """Expire every active spawn past its TTL or flee deadline.

    Timers live in memory; this sweep is what keeps expiry correct across
    restarts.
    """
    now = now or utcnow()
    result = await session.execute(
        select(ActiveSpawn)
        .where(ActiveSpawn.active == True)  # noqa: E712
        .where(
            or_(
                ActiveSpawn.spawned_at <= now - spawn_ttl(),
                ActiveSpawn.first_interaction_at <= now - flee_window(),
            )
        )
        .execution_options(populate_existing=True)
    )
    overdue = list(result.scalars().all())

    expired = []
    for spawn in overdue:
        if await expire_spawn(session, spawn.chat_id, spawn.instance_id):
            expired.append(spawn)
    return expired


async def force_clear_spawn(session: AsyncSession, chat_id: int) -> ActiveSpawn | None:
    """Deactivate whatever spawn is active in the room (operator action)."""
    spawn = await get_active_spawn(session, chat_id)
    if spawn is None:
        return None
    if not await expire_spawn(session, chat_id, spawn.instance_id):
        return None
    return spawn
