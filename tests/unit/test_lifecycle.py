"""
Spawn lifecycle: posting, timers, catches and restarts
"""
from datetime import timedelta

import pytest
from sqlalchemy import select

from porohunt.core.errors import GameError
from porohunt.core.items import arm_net, buy_net
from porohunt.core.rewards import get_trainer
from porohunt.core.rooms import get_room
from porohunt.core.spawning.engine import attempt_spawn, get_active_spawn, get_spawn
from porohunt.core.spawning.lifecycle import SpawnLifecycle
from porohunt.core.spawning.presenter import REASON_CLEARED, REASON_FLED, REASON_TIMEOUT
from porohunt.database.models import StashedPoro
from tests.conftest import ALICE, BOB, CHANNEL_ID, CHAT_ID, FakePresenter, FixedRoll


class TestSpawn:
    @pytest.mark.asyncio
    async def test_spawn_posts_and_arms_ttl(self, lifecycle, presenter, room, session, now):
        result = await lifecycle.spawn(CHAT_ID, now)

        assert result.ok
        assert presenter.posted == [(CHANNEL_ID, result.spawn.instance_id, result.poro.id)]
        assert lifecycle.timers.pending == 1

        spawn = await get_spawn(session, CHAT_ID)
        assert spawn.message_id == 501

    @pytest.mark.asyncio
    async def test_refusal_posts_nothing(self, lifecycle, presenter, session, now):
        result = await lifecycle.spawn(CHAT_ID, now)

        assert result.error == GameError.NO_CHANNEL_CONFIGURED
        assert presenter.posted == []
        assert lifecycle.timers.pending == 0

    @pytest.mark.asyncio
    async def test_failed_post_frees_the_room(self, session_factory, room, session, now):
        await buy_net(session, CHAT_ID, ALICE)
        await arm_net(session, CHAT_ID, ALICE)
        lifecycle = SpawnLifecycle(session_factory, FakePresenter(fail_post=True), rng=FixedRoll(0.0))

        result = await lifecycle.spawn(CHAT_ID, now)

        assert result.error == GameError.NO_CHANNEL_CONFIGURED
        assert await get_active_spawn(session, CHAT_ID) is None
        assert lifecycle.timers.pending == 0

        # Nothing about the unseen spawn may stick
        session.expire_all()
        trainer = await get_trainer(session, CHAT_ID, ALICE)
        assert trainer.nets_armed == 1
        assert (await session.execute(select(StashedPoro))).scalars().all() == []
        assert (await get_room(session, CHAT_ID)).total_spawns == 0
        await lifecycle.close()

    @pytest.mark.asyncio
    async def test_presenter_error_is_a_failed_post(self, session_factory, room, session, now):
        class BrokenPresenter(FakePresenter):
            async def post_spawn(self, channel_id, spawn, poro):
                raise RuntimeError("chat not found")

        lifecycle = SpawnLifecycle(session_factory, BrokenPresenter(), rng=FixedRoll(0.0))

        result = await lifecycle.spawn(CHAT_ID, now)

        assert result.error == GameError.NO_CHANNEL_CONFIGURED
        assert await get_active_spawn(session, CHAT_ID) is None
        await lifecycle.close()

    @pytest.mark.asyncio
    async def test_posted_spawn_spends_nets(self, lifecycle, presenter, room, session, now):
        await buy_net(session, CHAT_ID, ALICE)
        await arm_net(session, CHAT_ID, ALICE)

        result = await lifecycle.spawn(CHAT_ID, now)

        assert result.offline_captures == (ALICE,)
        session.expire_all()
        trainer = await get_trainer(session, CHAT_ID, ALICE)
        assert trainer.nets_armed == 0
        assert (await get_room(session, CHAT_ID)).total_spawns == 1


class TestCatch:
    @pytest.mark.asyncio
    async def test_success_updates_message(self, lifecycle, presenter, room, now):
        spawned = await lifecycle.spawn(CHAT_ID, now)

        result = await lifecycle.catch(
            CHAT_ID, spawned.spawn.instance_id, ALICE, "alice", now + timedelta(seconds=5)
        )

        assert result.success
        assert presenter.caught == [(spawned.spawn.instance_id, ALICE)]

    @pytest.mark.asyncio
    async def test_first_attempt_arms_flee_timer(self, session_factory, presenter, room, now):
        lifecycle = SpawnLifecycle(session_factory, presenter, rng=FixedRoll(0.999))
        spawned = await lifecycle.spawn(CHAT_ID, now)
        instance_id = spawned.spawn.instance_id

        first = await lifecycle.catch(CHAT_ID, instance_id, ALICE, now=now)
        second = await lifecycle.catch(CHAT_ID, instance_id, BOB, now=now)

        assert first.first_interaction
        assert not second.first_interaction
        # TTL timer plus a single flee timer
        assert lifecycle.timers.pending == 2
        assert presenter.caught == []
        await lifecycle.close()

    @pytest.mark.asyncio
    async def test_berry_does_not_arm_flee_timer(self, lifecycle, room, session, now):
        spawned = await lifecycle.spawn(CHAT_ID, now)
        from porohunt.core.rewards import get_or_create_trainer

        trainer = await get_or_create_trainer(session, CHAT_ID, ALICE)
        trainer.berries = 1
        await session.commit()

        result = await lifecycle.toss_berry(CHAT_ID, spawned.spawn.instance_id, ALICE, now)

        assert result.ok
        assert lifecycle.timers.pending == 1
        spawn = await get_spawn(session, CHAT_ID)
        assert spawn.first_interaction_at is None


class TestExpiry:
    @pytest.mark.asyncio
    async def test_fire_now_expires_and_notifies(self, lifecycle, presenter, room, session, now):
        spawned = await lifecycle.spawn(CHAT_ID, now)
        instance_id = spawned.spawn.instance_id

        assert await lifecycle.timers.fire_now(CHAT_ID, instance_id, REASON_TIMEOUT)
        assert presenter.expired == [(instance_id, REASON_TIMEOUT)]
        assert await get_active_spawn(session, CHAT_ID) is None

        # A second timer for the same instance is a no-op
        assert not await lifecycle.timers.fire_now(CHAT_ID, instance_id, REASON_FLED)
        assert len(presenter.expired) == 1

    @pytest.mark.asyncio
    async def test_timer_after_catch_changes_nothing(self, lifecycle, presenter, room, session, now):
        spawned = await lifecycle.spawn(CHAT_ID, now)
        instance_id = spawned.spawn.instance_id
        await lifecycle.catch(CHAT_ID, instance_id, ALICE, now=now)

        assert not await lifecycle.timers.fire_now(CHAT_ID, instance_id, REASON_FLED)

        spawn = await get_spawn(session, CHAT_ID)
        assert spawn.caught_by == ALICE
        assert presenter.expired == []

    @pytest.mark.asyncio
    async def test_zero_delay_timer_fires(self, lifecycle, presenter, room, session, now):
        spawned = await lifecycle.spawn(CHAT_ID, now)
        instance_id = spawned.spawn.instance_id

        task = lifecycle.timers.arm(CHAT_ID, instance_id, timedelta(seconds=-5), REASON_FLED)
        await task

        assert presenter.expired == [(instance_id, REASON_FLED)]

    @pytest.mark.asyncio
    async def test_clear(self, lifecycle, presenter, room, now):
        assert await lifecycle.clear(CHAT_ID) is None

        spawned = await lifecycle.spawn(CHAT_ID, now)
        cleared = await lifecycle.clear(CHAT_ID)

        assert cleared.instance_id == spawned.spawn.instance_id
        assert presenter.expired == [(spawned.spawn.instance_id, REASON_CLEARED)]

    @pytest.mark.asyncio
    async def test_sweep_reports_reason(self, lifecycle, presenter, room, now):
        spawned = await lifecycle.spawn(CHAT_ID, now)

        expired = await lifecycle.sweep(now + timedelta(minutes=16))

        assert [s.instance_id for s in expired] == [spawned.spawn.instance_id]
        assert presenter.expired == [(spawned.spawn.instance_id, REASON_TIMEOUT)]


class TestRestore:
    @pytest.mark.asyncio
    async def test_restore_rearms_live_spawns(self, session_factory, presenter, room, session, now):
        await attempt_spawn(session, CHAT_ID, now, FixedRoll(0.0))
        lifecycle = SpawnLifecycle(session_factory, presenter)

        count = await lifecycle.restore(now + timedelta(minutes=3))

        assert count == 1
        assert lifecycle.timers.pending == 1
        await lifecycle.close()

    @pytest.mark.asyncio
    async def test_restore_expires_overdue_first(self, session_factory, presenter, room, session, now):
        result = await attempt_spawn(session, CHAT_ID, now, FixedRoll(0.0))
        lifecycle = SpawnLifecycle(session_factory, presenter)

        count = await lifecycle.restore(now + timedelta(hours=1))

        assert count == 0
        assert presenter.expired == [(result.spawn.instance_id, REASON_TIMEOUT)]
        await lifecycle.close()


class TestShowcase:
    @pytest.mark.asyncio
    async def test_post_showcase_needs_channel(self, lifecycle, presenter, room, now):
        assert not await lifecycle.post_showcase(CHAT_ID, now)
        assert presenter.showcases == []

    @pytest.mark.asyncio
    async def test_post_showcase_stamps_room(self, lifecycle, presenter, session, now):
        from porohunt.core.rooms import get_room, set_showcase_channel

        await set_showcase_channel(session, CHAT_ID, CHANNEL_ID)

        assert await lifecycle.post_showcase(CHAT_ID, now)

        assert presenter.showcases[0][0] == CHANNEL_ID
        session.expire_all()
        room = await get_room(session, CHAT_ID)
        assert room.last_showcase_at == now
