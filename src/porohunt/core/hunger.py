"""Hunger for caught poros.

Hunger runs from 0 to 10 and climbs one point per fixed interval
(``hunger_full_hours / 10``, 72 minutes by default). It is computed lazily
from ``hunger_updated_at`` whenever a catch is read; the timestamp only
advances by whole intervals so partial progress is never lost.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.config import settings
from porohunt.core.atomic import persistence_guard
from porohunt.core.clock import utcnow
from porohunt.core.errors import GameError
from porohunt.core.rewards import get_trainer
from porohunt.database.models import CaughtPoro, Trainer
from porohunt.logging import get_logger

logger = get_logger(__name__)

HUNGER_MAX = 10
FEED_MIN = 3
FEED_MAX = 6


@dataclass(frozen=True)
class FeedResult:
    error: GameError | None = None
    hunger: int = 0
    amount: int = 0
    food_left: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def hunger_interval() -> timedelta:
    """Time for hunger to rise by one point."""
    return timedelta(hours=settings.hunger_full_hours) / HUNGER_MAX


def decay(hunger: int, updated_at: datetime, now: datetime) -> tuple[int, datetime]:
    """Advance hunger by the whole intervals elapsed since ``updated_at``.

    Returns the new (hunger, updated_at). The timestamp moves by exactly the
    number of intervals applied, never to ``now``.
    """
    elapsed = now - updated_at
    if elapsed <= timedelta(0):
        return hunger, updated_at

    interval = hunger_interval()
    ticks = elapsed // interval
    if ticks <= 0:
        return hunger, updated_at

    return min(HUNGER_MAX, hunger + ticks), updated_at + ticks * interval


def apply_decay(caught: CaughtPoro, now: datetime) -> bool:
    """Update a loaded catch in place. Returns True if anything changed."""
    hunger, updated_at = decay(caught.hunger, caught.hunger_updated_at, now)
    if updated_at == caught.hunger_updated_at:
        return False
    caught.hunger = hunger
    caught.hunger_updated_at = updated_at
    return True


async def refresh_hunger(
    session: AsyncSession, catch_id: int, now: datetime | None = None
) -> CaughtPoro | None:
    """Load a catch with its hunger brought up to date."""
    now = now or utcnow()
    async with persistence_guard(session):
        caught = await session.get(CaughtPoro, catch_id)
        if caught is None:
            return None
        if apply_decay(caught, now):
            await session.commit()
    return caught


async def feed_catch(
    session: AsyncSession,
    chat_id: int,
    user_id: int,
    catch_id: int,
    amount: int | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> FeedResult:
    """Feed one of the trainer's poros, spending one food use.

    Hunger drops by ``amount`` (random 3-6 when not given), floored at 0,
    and the hunger clock restarts from now.
    """
    now = now or utcnow()
    rng = rng or random

    async with persistence_guard(session):
        result = await session.execute(
            select(CaughtPoro)
            .where(CaughtPoro.id == catch_id)
            .where(CaughtPoro.chat_id == chat_id)
            .where(CaughtPoro.user_id == user_id)
        )
        caught = result.scalar_one_or_none()
        if caught is None:
            return FeedResult(error=GameError.NOT_FOUND)

        spent = await session.execute(
            update(Trainer)
            .where(Trainer.chat_id == chat_id)
            .where(Trainer.user_id == user_id)
            .where(Trainer.food > 0)
            .values(food=Trainer.food - 1)
        )
        if spent.rowcount != 1:
            return FeedResult(error=GameError.INSUFFICIENT_RESOURCE)
        trainer = await get_trainer(session, chat_id, user_id)
        food_left = trainer.food

        if amount is None:
            amount = rng.randint(FEED_MIN, FEED_MAX)

        apply_decay(caught, now)
        caught.hunger = max(0, caught.hunger - max(0, amount))
        caught.hunger_updated_at = now
        await session.commit()

    logger.info(
        "Fed poro",
        chat_id=chat_id,
        user_id=user_id,
        catch_id=catch_id,
        hunger=caught.hunger,
    )
    return FeedResult(hunger=caught.hunger, amount=amount, food_left=food_left)
