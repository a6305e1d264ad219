"""
pytest configuration and shared fixtures
"""
import os
import random
from collections.abc import AsyncGenerator
from datetime import datetime

import pytest
import pytest_asyncio

# Settings are read at import time, so point them at SQLite first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TIMEZONE"] = "UTC"
os.environ["BLACKOUT_START_HOUR"] = "0"
os.environ["BLACKOUT_END_HOUR"] = "6"

from porohunt.database import create_engine, create_session_factory, init_db  # noqa: E402

CHAT_ID = -100111
CHANNEL_ID = -100222
ALICE = 1001
BOB = 1002


class FixedRoll(random.Random):
    """Random source whose ``random()`` always returns the same value.

    ``randint`` still draws from the seeded generator, so stat and gold rolls
    stay deterministic but varied.
    """

    def __init__(self, roll: float, seed: int = 7) -> None:
        super().__init__(seed)
        self.roll = roll

    def random(self) -> float:
        return self.roll


class FakePresenter:
    """Records what would have been shown in the chat."""

    def __init__(self, fail_post: bool = False) -> None:
        self.fail_post = fail_post
        self.posted: list[tuple[int, str, str]] = []
        self.caught: list[tuple[str, int]] = []
        self.expired: list[tuple[str, str]] = []
        self.showcases: list[tuple[int, object]] = []
        self._next_message_id = 500

    async def post_spawn(self, channel_id, spawn, poro):
        if self.fail_post:
            return None
        self.posted.append((channel_id, spawn.instance_id, poro.id))
        self._next_message_id += 1
        return self._next_message_id

    async def mark_caught(self, spawn, poro, user_id, username):
        self.caught.append((spawn.instance_id, user_id))

    async def mark_expired(self, spawn, poro, reason):
        self.expired.append((spawn.instance_id, reason))

    async def post_showcase(self, channel_id, showcase):
        self.showcases.append((channel_id, showcase))


# =============================================================================
# Database fixtures
# =============================================================================


@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh file-backed SQLite database per test."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'porohunt.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def room(session):
    """A room with a spawn channel configured."""
    from porohunt.core.rooms import set_spawn_channel

    return await set_spawn_channel(session, CHAT_ID, CHANNEL_ID)


# =============================================================================
# Game fixtures
# =============================================================================


@pytest.fixture
def now() -> datetime:
    """A weekday morning, well outside blackout."""
    return datetime(2024, 5, 1, 10, 0)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def always_catch() -> FixedRoll:
    return FixedRoll(0.0)


@pytest.fixture
def never_catch() -> FixedRoll:
    return FixedRoll(0.999)


@pytest.fixture
def presenter() -> FakePresenter:
    return FakePresenter()


@pytest_asyncio.fixture
async def lifecycle(session_factory, presenter):
    from porohunt.core.spawning.lifecycle import SpawnLifecycle

    lifecycle = SpawnLifecycle(session_factory, presenter, rng=FixedRoll(0.0))
    yield lifecycle
    await lifecycle.close()
