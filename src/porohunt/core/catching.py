"""Catch resolution: one shot per trainer per spawn, first success wins."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.config import settings
from porohunt.core.atomic import room_transaction
from porohunt.core.catalog import Poro, get_poro
from porohunt.core.clock import utcnow
from porohunt.core.errors import GameError
from porohunt.core.leveling import catch_xp
from porohunt.core.rewards import ProgressUpdate, apply_outcome, get_or_create_trainer
from porohunt.core.spawning.engine import get_active_spawn, mark_first_interaction
from porohunt.database.models import ActiveSpawn, Room, SpawnAttempt, SpawnBoost, Trainer
from porohunt.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CatchResult:
    """Outcome of a catch attempt."""

    error: GameError | None = None
    success: bool = False
    chance: float = 0.0
    boosted: bool = False
    xp_gained: int = 0
    gold_gained: int = 0
    # Handle for naming the caught poro later
    catch_id: int | None = None
    poro: Poro | None = None
    progress: ProgressUpdate | None = None
    # True for the attempt that started the flee window
    first_interaction: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BerryResult:
    """Outcome of tossing a berry at a spawn."""

    error: GameError | None = None
    berries_left: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def catch_chance(base_catch: float, level: int, boosted: bool = False) -> float:
    """Probability that an attempt succeeds.

    Base chance plus a small per-level bonus, plus the berry bonus, capped.
    """
    chance = base_catch + level * settings.level_catch_bonus
    if boosted:
        chance += settings.berry_catch_bonus
    return min(settings.max_catch_chance, chance)


async def _record_attempt(
    session: AsyncSession, chat_id: int, instance_id: str, user_id: int, now: datetime
) -> bool:
    """Insert the attempt row. The primary key rejects a second attempt."""
    session.add(
        SpawnAttempt(
            chat_id=chat_id,
            instance_id=instance_id,
            user_id=user_id,
            attempted_at=now,
        )
    )
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        return False
    return True


async def has_attempted(
    session: AsyncSession, chat_id: int, instance_id: str, user_id: int
) -> bool:
    result = await session.execute(
        select(SpawnAttempt.user_id)
        .where(SpawnAttempt.chat_id == chat_id)
        .where(SpawnAttempt.instance_id == instance_id)
        .where(SpawnAttempt.user_id == user_id)
    )
    return result.scalar_one_or_none() is not None


async def _consume_boost(
    session: AsyncSession, chat_id: int, instance_id: str, user_id: int
) -> bool:
    """Delete the user's berry for this spawn. True if there was one."""
    result = await session.execute(
        delete(SpawnBoost)
        .where(SpawnBoost.chat_id == chat_id)
        .where(SpawnBoost.instance_id == instance_id)
        .where(SpawnBoost.user_id == user_id)
    )
    return result.rowcount == 1


async def _claim_catch(
    session: AsyncSession, chat_id: int, instance_id: str, user_id: int, now: datetime
) -> bool:
    """Flip the spawn to caught. Only one caller can ever see rowcount 1."""
    result = await session.execute(
        update(ActiveSpawn)
        .where(ActiveSpawn.chat_id == chat_id)
        .where(ActiveSpawn.instance_id == instance_id)
        .where(ActiveSpawn.active == True)  # noqa: E712
        .values(active=False, caught_by=user_id, caught_at=now)
    )
    return result.rowcount == 1


async def attempt_catch(
    session: AsyncSession,
    chat_id: int,
    instance_id: str,
    user_id: int,
    username: str | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> CatchResult:
    """Resolve a catch attempt against the room's live spawn.

    The attempt is recorded whatever the roll, a pending berry is spent, and
    XP is granted on both outcomes. On success the spawn is closed for
    everyone else and the poro, gold and collection entry go to the winner,
    all in one commit.
    """
    now = now or utcnow()
    rng = rng or random

    async with room_transaction(session, chat_id):
        spawn = await get_active_spawn(session, chat_id)
        if spawn is None:
            return CatchResult(error=GameError.NO_ACTIVE_SPAWN)
        if spawn.instance_id != instance_id:
            return CatchResult(error=GameError.STALE_SPAWN)

        poro = get_poro(spawn.poro_id)
        if poro is None:
            logger.error("Spawn references unknown poro", chat_id=chat_id, poro=spawn.poro_id)
            return CatchResult(error=GameError.NOT_FOUND)
        stats = spawn.stats

        if await has_attempted(session, chat_id, instance_id, user_id):
            return CatchResult(error=GameError.DUPLICATE_ATTEMPT)
        if not await _record_attempt(session, chat_id, instance_id, user_id, now):
            return CatchResult(error=GameError.DUPLICATE_ATTEMPT)

        first = await mark_first_interaction(session, chat_id, instance_id, now)

        trainer = await get_or_create_trainer(session, chat_id, user_id, username)
        boosted = await _consume_boost(session, chat_id, instance_id, user_id)
        chance = catch_chance(poro.base_catch, trainer.level, boosted)
        success = rng.random() < chance

        if success:
            if not await _claim_catch(session, chat_id, instance_id, user_id, now):
                # Someone else closed the spawn first; undo this attempt entirely
                await session.rollback()
                return CatchResult(error=GameError.STALE_SPAWN)
            await session.execute(
                update(Room)
                .where(Room.chat_id == chat_id)
                .values(total_catches=Room.total_catches + 1)
            )

        xp = catch_xp(success, poro.xp_bonus)
        progress = await apply_outcome(
            session,
            chat_id,
            user_id,
            poro,
            success=success,
            xp_gained=xp,
            stats=stats,
            now=now,
            rng=rng,
        )
        await session.commit()

    logger.info(
        "Catch attempt",
        chat_id=chat_id,
        user_id=user_id,
        poro=poro.id,
        success=success,
        chance=round(chance, 3),
        boosted=boosted,
    )

    return CatchResult(
        success=success,
        chance=chance,
        boosted=boosted,
        xp_gained=xp,
        gold_gained=progress.gold_gained,
        catch_id=progress.catch_id,
        poro=poro,
        progress=progress,
        first_interaction=first,
    )


async def toss_berry(
    session: AsyncSession,
    chat_id: int,
    instance_id: str,
    user_id: int,
    now: datetime | None = None,
) -> BerryResult:
    """Spend a berry to boost the user's upcoming attempt on this spawn."""
    now = now or utcnow()

    async with room_transaction(session, chat_id):
        spawn = await get_active_spawn(session, chat_id)
        if spawn is None:
            return BerryResult(error=GameError.NO_ACTIVE_SPAWN)
        if spawn.instance_id != instance_id:
            return BerryResult(error=GameError.STALE_SPAWN)

        # A berry after the attempt would never be used
        if await has_attempted(session, chat_id, instance_id, user_id):
            return BerryResult(error=GameError.DUPLICATE_ATTEMPT)

        trainer = await get_or_create_trainer(session, chat_id, user_id)
        if trainer.berries <= 0:
            return BerryResult(error=GameError.INSUFFICIENT_RESOURCE)
        if await session.get(SpawnBoost, (chat_id, instance_id, user_id)) is not None:
            return BerryResult(error=GameError.DUPLICATE_ATTEMPT)

        session.add(
            SpawnBoost(
                chat_id=chat_id,
                instance_id=instance_id,
                user_id=user_id,
                tossed_at=now,
            )
        )
        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            return BerryResult(error=GameError.DUPLICATE_ATTEMPT)

        await session.execute(
            update(Trainer)
            .where(Trainer.chat_id == chat_id)
            .where(Trainer.user_id == user_id)
            .values(berries=Trainer.berries - 1)
        )
        await session.commit()
        berries_left = trainer.berries

    logger.info("Berry tossed", chat_id=chat_id, user_id=user_id, instance_id=instance_id)
    return BerryResult(berries_left=berries_left)
