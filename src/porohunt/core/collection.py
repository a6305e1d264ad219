"""Read side of the game: profiles, leaderboards, catches and the showcase."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.core.atomic import persistence_guard
from porohunt.core.catalog import get_poro
from porohunt.core.clock import utcnow
from porohunt.core.errors import GameError
from porohunt.core.hunger import apply_decay
from porohunt.core.leveling import compute_level, xp_for_next_level
from porohunt.core.rewards import get_trainer
from porohunt.database.models import CaughtPoro, CollectionEntry, StashedPoro, Trainer
from porohunt.logging import get_logger

logger = get_logger(__name__)

NICKNAME_MAX_LENGTH = 24
LEADERBOARD_SIZE = 10
SHOWCASE_TOP = 5


@dataclass(frozen=True)
class Profile:
    trainer: Trainer
    xp_into_level: int
    xp_to_next: int
    species_caught: int
    stashed: int


@dataclass(frozen=True)
class RenameResult:
    error: GameError | None = None
    caught: CaughtPoro | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Showcase:
    """Weekly room summary: catches per rarity and the top catchers."""

    totals: dict[str, int] = field(default_factory=dict)
    top: list[Trainer] = field(default_factory=list)


async def get_profile(session: AsyncSession, chat_id: int, user_id: int) -> Profile | None:
    trainer = await get_trainer(session, chat_id, user_id)
    if trainer is None:
        return None

    level, xp_into_level = compute_level(trainer.xp)

    species = await session.scalar(
        select(func.count())
        .select_from(CollectionEntry)
        .where(CollectionEntry.chat_id == chat_id)
        .where(CollectionEntry.user_id == user_id)
    )
    stashed = await session.scalar(
        select(func.count())
        .select_from(StashedPoro)
        .where(StashedPoro.chat_id == chat_id)
        .where(StashedPoro.user_id == user_id)
    )

    return Profile(
        trainer=trainer,
        xp_into_level=xp_into_level,
        xp_to_next=xp_for_next_level(level),
        species_caught=species or 0,
        stashed=stashed or 0,
    )


async def get_leaderboard(
    session: AsyncSession, chat_id: int, limit: int = LEADERBOARD_SIZE
) -> list[Trainer]:
    """Top catchers in a room, by catches and then level."""
    result = await session.execute(
        select(Trainer)
        .where(Trainer.chat_id == chat_id)
        .where(Trainer.poros_caught > 0)
        .order_by(Trainer.poros_caught.desc(), Trainer.level.desc(), Trainer.xp.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_catches(
    session: AsyncSession,
    chat_id: int,
    user_id: int,
    now: datetime | None = None,
) -> list[CaughtPoro]:
    """A trainer's poros, newest first, with hunger brought up to date."""
    now = now or utcnow()
    async with persistence_guard(session):
        result = await session.execute(
            select(CaughtPoro)
            .where(CaughtPoro.chat_id == chat_id)
            .where(CaughtPoro.user_id == user_id)
            .order_by(CaughtPoro.caught_at.desc(), CaughtPoro.id.desc())
        )
        catches = list(result.scalars().all())

        changed = False
        for caught in catches:
            changed = apply_decay(caught, now) or changed
        if changed:
            await session.commit()
    return catches


async def list_stash(session: AsyncSession, chat_id: int, user_id: int) -> list[StashedPoro]:
    result = await session.execute(
        select(StashedPoro)
        .where(StashedPoro.chat_id == chat_id)
        .where(StashedPoro.user_id == user_id)
        .order_by(StashedPoro.caught_at.desc(), StashedPoro.id.desc())
    )
    return list(result.scalars().all())


async def rename_catch(
    session: AsyncSession,
    chat_id: int,
    user_id: int,
    catch_id: int,
    nickname: str,
) -> RenameResult:
    """Give one of the trainer's poros a nickname (1-24 characters)."""
    nickname = nickname.strip()
    if not nickname or len(nickname) > NICKNAME_MAX_LENGTH:
        return RenameResult(error=GameError.INVALID_INPUT)

    async with persistence_guard(session):
        result = await session.execute(
            select(CaughtPoro)
            .where(CaughtPoro.id == catch_id)
            .where(CaughtPoro.chat_id == chat_id)
            .where(CaughtPoro.user_id == user_id)
        )
        caught = result.scalar_one_or_none()
        if caught is None:
            return RenameResult(error=GameError.NOT_FOUND)

        caught.nickname = nickname
        await session.commit()

    logger.info("Poro renamed", chat_id=chat_id, user_id=user_id, catch_id=catch_id)
    return RenameResult(caught=caught)


async def build_showcase(session: AsyncSession, chat_id: int) -> Showcase:
    totals = {"common": 0, "rare": 0, "ultra_rare": 0}

    result = await session.execute(
        select(CollectionEntry.poro_id, func.sum(CollectionEntry.times_caught))
        .where(CollectionEntry.chat_id == chat_id)
        .group_by(CollectionEntry.poro_id)
    )
    for poro_id, count in result.all():
        poro = get_poro(poro_id)
        if poro is None:
            continue
        totals[poro.rarity] += count or 0

    top = await get_leaderboard(session, chat_id, limit=SHOWCASE_TOP)
    return Showcase(totals=totals, top=top)
