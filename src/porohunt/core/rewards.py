"""Progression and rewards for catch outcomes."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.config import settings
from porohunt.core.catalog import Poro, PoroStats
from porohunt.core.clock import utcnow
from porohunt.core.leveling import compute_level, gold_for_rarity, unlocked_title, xp_for_next_level
from porohunt.database.models import CaughtPoro, CollectionEntry, Trainer
from porohunt.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProgressUpdate:
    """What a single outcome did to a trainer."""

    xp_gained: int
    total_xp: int
    old_level: int
    level: int
    title: str
    xp_into_level: int
    xp_to_next: int
    gold_gained: int = 0
    catch_id: int | None = None

    @property
    def leveled_up(self) -> bool:
        return self.level > self.old_level


async def get_trainer(session: AsyncSession, chat_id: int, user_id: int) -> Trainer | None:
    result = await session.execute(
        select(Trainer)
        .where(Trainer.chat_id == chat_id)
        .where(Trainer.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_trainer(
    session: AsyncSession,
    chat_id: int,
    user_id: int,
    username: str | None = None,
) -> Trainer:
    """Load a trainer, creating it with the starter pack on first access."""
    trainer = await get_trainer(session, chat_id, user_id)
    if trainer is not None:
        if username and trainer.username != username:
            trainer.username = username
        return trainer

    trainer = Trainer(
        chat_id=chat_id,
        user_id=user_id,
        username=username,
        xp=0,
        level=1,
        title=unlocked_title(1),
        poros_caught=0,
        gold=settings.starter_gold,
        berries=0,
        nets=0,
        nets_armed=0,
        food=settings.starter_food,
    )
    session.add(trainer)
    await session.flush()

    logger.info("New trainer", chat_id=chat_id, user_id=user_id)
    return trainer


def _apply_xp(trainer: Trainer, xp_gained: int) -> tuple[int, int]:
    """Add XP and recompute level/title. Returns (old_level, xp_into_level)."""
    old_level = trainer.level
    trainer.xp = (trainer.xp or 0) + max(0, xp_gained)
    level, into_level = compute_level(trainer.xp)
    trainer.level = level
    trainer.title = unlocked_title(level)
    return old_level, into_level


async def _record_collection(
    session: AsyncSession, chat_id: int, user_id: int, poro_id: str, now: datetime
) -> None:
    result = await session.execute(
        select(CollectionEntry)
        .where(CollectionEntry.chat_id == chat_id)
        .where(CollectionEntry.user_id == user_id)
        .where(CollectionEntry.poro_id == poro_id)
    )
    entry = result.scalar_one_or_none()

    if entry:
        entry.times_caught += 1
        entry.last_caught_at = now
    else:
        session.add(
            CollectionEntry(
                chat_id=chat_id,
                user_id=user_id,
                poro_id=poro_id,
                times_caught=1,
                first_caught_at=now,
                last_caught_at=now,
            )
        )


async def apply_outcome(
    session: AsyncSession,
    chat_id: int,
    user_id: int,
    poro: Poro,
    success: bool,
    xp_gained: int,
    stats: PoroStats | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> ProgressUpdate:
    """Apply the rewards of one catch attempt.

    Adds XP (level and title follow), and on success: gold by rarity, the
    lifetime counter, a CaughtPoro row and the collection count.

    Nothing is committed here. The caller owns the transaction, so either
    every write of the outcome lands or none does.
    """
    now = now or utcnow()
    trainer = await get_or_create_trainer(session, chat_id, user_id)

    old_level, into_level = _apply_xp(trainer, xp_gained)

    gold = 0
    catch_id = None
    if success:
        if stats is None:
            raise ValueError("a successful outcome needs the caught stats")

        gold = gold_for_rarity(poro.rarity, rng)
        trainer.gold += gold
        trainer.poros_caught += 1
        trainer.last_catch_at = now

        caught = CaughtPoro(
            chat_id=chat_id,
            user_id=user_id,
            poro_id=poro.id,
            caught_at=now,
            hunger_updated_at=now,
            **stats.as_dict(),
        )
        session.add(caught)
        await _record_collection(session, chat_id, user_id, poro.id, now)
        await session.flush()
        catch_id = caught.id

    update = ProgressUpdate(
        xp_gained=xp_gained,
        total_xp=trainer.xp,
        old_level=old_level,
        level=trainer.level,
        title=trainer.title,
        xp_into_level=into_level,
        xp_to_next=xp_for_next_level(trainer.level),
        gold_gained=gold,
        catch_id=catch_id,
    )

    if update.leveled_up:
        logger.info(
            "Trainer leveled up",
            chat_id=chat_id,
            user_id=user_id,
            level=update.level,
            title=update.title,
        )

    return update
