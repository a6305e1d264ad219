"""
Hunger decay and feeding
"""
import random
from datetime import datetime, timedelta

import pytest

from porohunt.core.catalog import PoroStats, get_poro
from porohunt.core.errors import GameError
from porohunt.core.hunger import HUNGER_MAX, decay, feed_catch, hunger_interval, refresh_hunger
from porohunt.core.rewards import apply_outcome, get_trainer
from tests.conftest import ALICE, BOB, CHAT_ID

T0 = datetime(2024, 5, 1, 10, 0)


async def _give_catch(session, user_id=ALICE, hunger=2, now=T0) -> int:
    stats = PoroStats(size=30, weight=5, throw_distance=10, fluffiness=50, hunger=hunger)
    progress = await apply_outcome(
        session, CHAT_ID, user_id, get_poro("poro"), True, 25, stats, now, random.Random(1)
    )
    await session.commit()
    return progress.catch_id


class TestDecay:
    def test_interval_is_72_minutes(self):
        assert hunger_interval() == timedelta(minutes=72)

    def test_whole_intervals_only(self):
        assert decay(2, T0, T0 + timedelta(minutes=71)) == (2, T0)
        assert decay(2, T0, T0 + timedelta(minutes=72)) == (3, T0 + timedelta(minutes=72))

    def test_partial_progress_is_kept(self):
        hunger, updated = decay(0, T0, T0 + timedelta(minutes=150))
        # Two ticks applied, the spare 6 minutes still count next time
        assert hunger == 2
        assert updated == T0 + timedelta(minutes=144)

    def test_caps_at_max(self):
        hunger, _ = decay(8, T0, T0 + timedelta(days=3))
        assert hunger == HUNGER_MAX

    def test_full_after_twelve_hours(self):
        assert decay(0, T0, T0 + timedelta(hours=12))[0] == HUNGER_MAX

    def test_clock_going_backwards_changes_nothing(self):
        assert decay(4, T0, T0 - timedelta(hours=1)) == (4, T0)


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_persists_decay(self, session):
        catch_id = await _give_catch(session, hunger=1)

        caught = await refresh_hunger(session, catch_id, T0 + timedelta(minutes=72 * 3))

        assert caught.hunger == 4
        assert caught.hunger_updated_at == T0 + timedelta(minutes=216)

    @pytest.mark.asyncio
    async def test_refresh_unknown_catch(self, session):
        assert await refresh_hunger(session, 9999, T0) is None


class TestFeeding:
    @pytest.mark.asyncio
    async def test_feed_reduces_hunger_and_spends_food(self, session):
        catch_id = await _give_catch(session, hunger=8)

        result = await feed_catch(session, CHAT_ID, ALICE, catch_id, amount=5, now=T0)

        assert result.ok
        assert result.hunger == 3
        assert result.food_left == 2
        trainer = await get_trainer(session, CHAT_ID, ALICE)
        assert trainer.food == 2

    @pytest.mark.asyncio
    async def test_feed_floors_at_zero_and_resets_clock(self, session):
        catch_id = await _give_catch(session, hunger=1)
        later = T0 + timedelta(minutes=100)

        result = await feed_catch(session, CHAT_ID, ALICE, catch_id, amount=6, now=later)

        assert result.hunger == 0
        caught = await refresh_hunger(session, catch_id, later)
        assert caught.hunger_updated_at == later

    @pytest.mark.asyncio
    async def test_feed_applies_pending_decay_first(self, session):
        catch_id = await _give_catch(session, hunger=0)

        # Five ticks of decay, then fed 3
        result = await feed_catch(
            session, CHAT_ID, ALICE, catch_id, amount=3, now=T0 + timedelta(minutes=72 * 5)
        )

        assert result.hunger == 2

    @pytest.mark.asyncio
    async def test_random_amount_is_three_to_six(self, session):
        catch_id = await _give_catch(session, hunger=10)

        result = await feed_catch(session, CHAT_ID, ALICE, catch_id, now=T0, rng=random.Random(2))

        assert 3 <= result.amount <= 6
        assert result.hunger == 10 - result.amount

    @pytest.mark.asyncio
    async def test_cannot_feed_someone_elses_poro(self, session):
        catch_id = await _give_catch(session, user_id=ALICE)
        await _give_catch(session, user_id=BOB)

        result = await feed_catch(session, CHAT_ID, BOB, catch_id, amount=3, now=T0)

        assert result.error == GameError.NOT_FOUND

    @pytest.mark.asyncio
    async def test_no_food_left(self, session):
        catch_id = await _give_catch(session, hunger=9)
        for _ in range(3):
            assert (await feed_catch(session, CHAT_ID, ALICE, catch_id, amount=1, now=T0)).ok

        result = await feed_catch(session, CHAT_ID, ALICE, catch_id, amount=1, now=T0)

        assert result.error == GameError.INSUFFICIENT_RESOURCE
        caught = await refresh_hunger(session, catch_id, T0)
        assert caught.hunger == 6
