"""
Room configuration
"""
import pytest

from porohunt.core.rooms import (
    get_or_create_room,
    get_room,
    list_spawn_rooms,
    set_spawn_channel,
    set_spawn_enabled,
)
from tests.conftest import CHANNEL_ID, CHAT_ID


class TestRooms:
    @pytest.mark.asyncio
    async def test_new_room_is_unconfigured_but_enabled(self, session):
        room = await get_or_create_room(session, CHAT_ID, "Poro Pals")

        assert room.title == "Poro Pals"
        assert room.spawn_enabled
        assert not room.is_configured

    @pytest.mark.asyncio
    async def test_set_spawn_channel(self, session):
        await set_spawn_channel(session, CHAT_ID, CHANNEL_ID)

        room = await get_room(session, CHAT_ID)
        assert room.is_configured
        assert room.spawn_channel_id == CHANNEL_ID

    @pytest.mark.asyncio
    async def test_paused_room_is_not_listed(self, session, room):
        assert [r.chat_id for r in await list_spawn_rooms(session)] == [CHAT_ID]

        await set_spawn_enabled(session, CHAT_ID, False)
        assert await list_spawn_rooms(session) == []

        await set_spawn_enabled(session, CHAT_ID, True)
        assert [r.chat_id for r in await list_spawn_rooms(session)] == [CHAT_ID]
