"""Room configuration: where spawns are posted."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.database.models import Room
from porohunt.logging import get_logger

logger = get_logger(__name__)


async def get_room(session: AsyncSession, chat_id: int) -> Room | None:
    result = await session.execute(select(Room).where(Room.chat_id == chat_id))
    return result.scalar_one_or_none()


async def get_or_create_room(
    session: AsyncSession, chat_id: int, title: str | None = None
) -> Room:
    """Load a room, registering it on first sight."""
    room = await get_room(session, chat_id)
    if room is None:
        room = Room(
            chat_id=chat_id,
            title=title,
            spawn_enabled=True,
            total_spawns=0,
            total_catches=0,
        )
        session.add(room)
        await session.flush()
        logger.info("Registered room", chat_id=chat_id, title=title)
    elif title and room.title != title:
        room.title = title
    return room


async def set_spawn_channel(
    session: AsyncSession, chat_id: int, channel_id: int | None
) -> Room:
    """Set (or clear, with None) the channel spawns are posted to."""
    room = await get_or_create_room(session, chat_id)
    room.spawn_channel_id = channel_id
    await session.commit()
    logger.info("Spawn channel set", chat_id=chat_id, channel_id=channel_id)
    return room


async def set_showcase_channel(
    session: AsyncSession, chat_id: int, channel_id: int | None
) -> Room:
    room = await get_or_create_room(session, chat_id)
    room.showcase_channel_id = channel_id
    await session.commit()
    return room


async def set_spawn_enabled(
    session: AsyncSession, chat_id: int, enabled: bool
) -> Room:
    """Pause or resume scheduled spawns in a room."""
    room = await get_or_create_room(session, chat_id)
    room.spawn_enabled = enabled
    await session.commit()
    logger.info("Spawning toggled", chat_id=chat_id, enabled=enabled)
    return room


async def list_spawn_rooms(session: AsyncSession) -> list[Room]:
    """Rooms with spawning enabled."""
    result = await session.execute(
        select(Room).where(Room.spawn_enabled == True)  # noqa: E712
    )
    return list(result.scalars().all())
