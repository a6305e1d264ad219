"""Shop and consumables: nets, berries and food.

- Nets are bought, then armed; an armed net catches the next spawn offline.
- Berries are tossed at a live spawn for a one-off catch bonus.
- Food bags add feeding uses; one free bag can be claimed every 12 hours.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.config import settings
from porohunt.core.atomic import room_transaction
from porohunt.core.clock import utcnow
from porohunt.core.errors import GameError
from porohunt.core.rewards import get_or_create_trainer
from porohunt.database.models import Trainer
from porohunt.logging import get_logger

logger = get_logger(__name__)


# What the shop sells; cost is read from settings at call time
SHOP_ITEMS: dict[str, dict[str, Any]] = {
    "net": {
        "name": "Net",
        "cost_setting": "net_cost",
        "field": "nets",
        "quantity": 1,
        "description": "Arm it and it catches the next poro for you, even offline.",
    },
    "berry": {
        "name": "Berry",
        "cost_setting": "berry_cost",
        "field": "berries",
        "quantity": 1,
        "description": "Toss at a spawn before catching for a better chance.",
    },
    "food": {
        "name": "Food Bag",
        "cost_setting": "food_bag_cost",
        "field": "food",
        "quantity_setting": "food_bag_uses",
        "description": "Feeding uses for your hungry poros.",
    },
}


@dataclass(frozen=True)
class ItemResult:
    """Outcome of a shop or inventory action."""

    error: GameError | None = None
    trainer: Trainer | None = None
    # Time left on a cooldown
    remaining: timedelta | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def item_cost(key: str) -> int:
    return getattr(settings, SHOP_ITEMS[key]["cost_setting"])


def item_quantity(key: str) -> int:
    item = SHOP_ITEMS[key]
    if "quantity_setting" in item:
        return getattr(settings, item["quantity_setting"])
    return item["quantity"]


async def buy_item(
    session: AsyncSession, chat_id: int, user_id: int, key: str
) -> ItemResult:
    """Buy one unit of a shop item with gold."""
    if key not in SHOP_ITEMS:
        return ItemResult(error=GameError.NOT_FOUND)

    cost = item_cost(key)
    field = SHOP_ITEMS[key]["field"]
    column = getattr(Trainer, field)

    async with room_transaction(session, chat_id):
        trainer = await get_or_create_trainer(session, chat_id, user_id)
        result = await session.execute(
            update(Trainer)
            .where(Trainer.chat_id == chat_id)
            .where(Trainer.user_id == user_id)
            .where(Trainer.gold >= cost)
            .values({Trainer.gold: Trainer.gold - cost, column: column + item_quantity(key)})
        )
        if result.rowcount != 1:
            # Keep a newly registered trainer even when the purchase is refused
            await session.commit()
            return ItemResult(error=GameError.INSUFFICIENT_RESOURCE, trainer=trainer)
        await session.commit()

    logger.info("Bought item", chat_id=chat_id, user_id=user_id, item=key, cost=cost)
    return ItemResult(trainer=trainer)


async def buy_net(session: AsyncSession, chat_id: int, user_id: int) -> ItemResult:
    return await buy_item(session, chat_id, user_id, "net")


async def buy_berry(session: AsyncSession, chat_id: int, user_id: int) -> ItemResult:
    return await buy_item(session, chat_id, user_id, "berry")


async def buy_food_bag(session: AsyncSession, chat_id: int, user_id: int) -> ItemResult:
    return await buy_item(session, chat_id, user_id, "food")


async def arm_net(session: AsyncSession, chat_id: int, user_id: int) -> ItemResult:
    """Move one owned net into the armed pile."""
    async with room_transaction(session, chat_id):
        trainer = await get_or_create_trainer(session, chat_id, user_id)
        result = await session.execute(
            update(Trainer)
            .where(Trainer.chat_id == chat_id)
            .where(Trainer.user_id == user_id)
            .where(Trainer.nets > 0)
            .values(nets=Trainer.nets - 1, nets_armed=Trainer.nets_armed + 1)
        )
        if result.rowcount != 1:
            await session.commit()
            return ItemResult(error=GameError.INSUFFICIENT_RESOURCE, trainer=trainer)
        await session.commit()

    logger.info("Net armed", chat_id=chat_id, user_id=user_id, armed=trainer.nets_armed)
    return ItemResult(trainer=trainer)


def free_food_cooldown() -> timedelta:
    return timedelta(hours=settings.free_food_cooldown_hours)


def free_food_remaining(trainer: Trainer, now: datetime) -> timedelta:
    """Time until the next free food bag (zero when claimable)."""
    if trainer.last_free_food_at is None:
        return timedelta(0)
    return max(timedelta(0), trainer.last_free_food_at + free_food_cooldown() - now)


async def claim_free_food(
    session: AsyncSession,
    chat_id: int,
    user_id: int,
    now: datetime | None = None,
) -> ItemResult:
    """Claim the periodic free food bag."""
    now = now or utcnow()

    async with room_transaction(session, chat_id):
        trainer = await get_or_create_trainer(session, chat_id, user_id)
        remaining = free_food_remaining(trainer, now)
        if remaining > timedelta(0):
            await session.commit()
            return ItemResult(error=GameError.COOLDOWN, trainer=trainer, remaining=remaining)

        trainer.food += settings.food_bag_uses
        trainer.last_free_food_at = now
        await session.commit()

    logger.info("Free food claimed", chat_id=chat_id, user_id=user_id)
    return ItemResult(trainer=trainer)
