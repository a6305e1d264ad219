"""
Shop, nets and free food
"""
from datetime import timedelta

import pytest

from porohunt.config import settings
from porohunt.core.errors import GameError
from porohunt.core.items import (
    SHOP_ITEMS,
    arm_net,
    buy_berry,
    buy_food_bag,
    buy_item,
    buy_net,
    claim_free_food,
    item_cost,
    item_quantity,
)
from porohunt.core.rewards import get_or_create_trainer, get_trainer
from tests.conftest import ALICE, BOB, CHAT_ID


class TestShopCatalog:
    def test_every_item_has_a_price(self):
        for key in SHOP_ITEMS:
            assert item_cost(key) > 0
            assert item_quantity(key) > 0

    def test_food_bag_quantity_follows_settings(self):
        assert item_quantity("food") == settings.food_bag_uses


class TestBuying:
    @pytest.mark.asyncio
    async def test_buy_net(self, session):
        result = await buy_net(session, CHAT_ID, ALICE)

        assert result.ok
        trainer = await get_trainer(session, CHAT_ID, ALICE)
        assert trainer.nets == 1
        assert trainer.gold == settings.starter_gold - settings.net_cost

    @pytest.mark.asyncio
    async def test_buy_berries_until_broke(self, session):
        affordable = settings.starter_gold // settings.berry_cost

        for _ in range(affordable):
            assert (await buy_berry(session, CHAT_ID, ALICE)).ok
        refused = await buy_berry(session, CHAT_ID, ALICE)

        assert refused.error == GameError.INSUFFICIENT_RESOURCE
        trainer = await get_trainer(session, CHAT_ID, ALICE)
        assert trainer.berries == affordable
        assert trainer.gold == settings.starter_gold - affordable * settings.berry_cost

    @pytest.mark.asyncio
    async def test_buy_food_bag_adds_uses(self, session):
        result = await buy_food_bag(session, CHAT_ID, ALICE)

        assert result.ok
        trainer = await get_trainer(session, CHAT_ID, ALICE)
        assert trainer.food == settings.starter_food + settings.food_bag_uses

    @pytest.mark.asyncio
    async def test_refused_purchase_keeps_new_trainer(self, session):
        trainer = await get_or_create_trainer(session, CHAT_ID, BOB)
        trainer.gold = 0
        await session.commit()

        result = await buy_net(session, CHAT_ID, BOB)

        assert result.error == GameError.INSUFFICIENT_RESOURCE
        trainer = await get_trainer(session, CHAT_ID, BOB)
        assert trainer.gold == 0
        assert trainer.nets == 0

    @pytest.mark.asyncio
    async def test_unknown_item(self, session):
        result = await buy_item(session, CHAT_ID, ALICE, "golden_poro")

        assert result.error == GameError.NOT_FOUND


class TestNets:
    @pytest.mark.asyncio
    async def test_arm_moves_net_to_armed(self, session):
        await buy_net(session, CHAT_ID, ALICE)

        result = await arm_net(session, CHAT_ID, ALICE)

        assert result.ok
        trainer = await get_trainer(session, CHAT_ID, ALICE)
        assert trainer.nets == 0
        assert trainer.nets_armed == 1

    @pytest.mark.asyncio
    async def test_arm_without_nets(self, session):
        result = await arm_net(session, CHAT_ID, ALICE)

        assert result.error == GameError.INSUFFICIENT_RESOURCE
        trainer = await get_trainer(session, CHAT_ID, ALICE)
        assert trainer.nets_armed == 0


class TestFreeFood:
    @pytest.mark.asyncio
    async def test_claim_then_cooldown(self, session, now):
        first = await claim_free_food(session, CHAT_ID, ALICE, now)
        assert first.ok
        assert first.trainer.food == settings.starter_food + settings.food_bag_uses

        again = await claim_free_food(session, CHAT_ID, ALICE, now + timedelta(hours=1))
        assert again.error == GameError.COOLDOWN
        assert again.remaining == timedelta(hours=settings.free_food_cooldown_hours - 1)
        assert again.trainer.food == settings.starter_food + settings.food_bag_uses

    @pytest.mark.asyncio
    async def test_claim_after_cooldown(self, session, now):
        await claim_free_food(session, CHAT_ID, ALICE, now)

        later = now + timedelta(hours=settings.free_food_cooldown_hours)
        result = await claim_free_food(session, CHAT_ID, ALICE, later)

        assert result.ok
        assert result.trainer.last_free_food_at == later
        assert result.trainer.food == settings.starter_food + 2 * settings.food_bag_uses

    @pytest.mark.asyncio
    async def test_cooldown_is_per_trainer(self, session, now):
        await claim_free_food(session, CHAT_ID, ALICE, now)

        result = await claim_free_food(session, CHAT_ID, BOB, now)

        assert result.ok
