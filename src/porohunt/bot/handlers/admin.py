"""Admin and room settings handlers."""

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.bot.middlewares.trainer import GROUP_CHATS
from porohunt.config import settings
from porohunt.core.errors import ERROR_MESSAGES
from porohunt.core.rooms import (
    get_or_create_room,
    set_showcase_channel,
    set_spawn_channel,
    set_spawn_enabled,
)
from porohunt.core.spawning.scheduler import (
    MAX_SPAWNS_PER_DAY,
    MIN_SPAWNS_PER_DAY,
    get_schedule,
    set_spawns_per_day,
)
from porohunt.core.spawning.lifecycle import SpawnLifecycle
from porohunt.logging import get_logger

router = Router(name="admin")
router.message.filter(F.chat.type.in_(GROUP_CHATS))
logger = get_logger(__name__)

SWITCH_WORDS = {"on": True, "off": False}


# ------------------------------------------------------------------ #
# Permission helpers
# ------------------------------------------------------------------ #

async def is_room_admin(message: Message) -> bool:
    """Bot operators and the group's own admins may manage a room."""
    if message.from_user is None:
        return False
    if message.from_user.id in settings.admin_ids:
        return True
    member = await message.chat.get_member(message.from_user.id)
    return member.status in ("administrator", "creator")


def _channel_arg(message: Message) -> int | None:
    """Channel id given after the command, defaulting to this chat."""
    args = (message.text or "").split()
    if len(args) < 2:
        return message.chat.id
    try:
        return int(args[1])
    except ValueError:
        return None


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

@router.message(Command("setchannel"))
async def cmd_setchannel(message: Message, session: AsyncSession) -> None:
    """Choose where spawns are posted."""
    if not await is_room_admin(message):
        await message.answer("Only group admins can use this command!")
        return

    channel_id = _channel_arg(message)
    if channel_id is None:
        await message.answer("Usage: /setchannel [channel_id]\nWithout an id, spawns post here.")
        return

    await set_spawn_channel(session, message.chat.id, channel_id)
    await message.answer(f"✅ Spawns will happen in <code>{channel_id}</code>.")


@router.message(Command("setshowcase"))
async def cmd_setshowcase(message: Message, session: AsyncSession) -> None:
    """Choose where the weekly showcase is posted."""
    if not await is_room_admin(message):
        await message.answer("Only group admins can use this command!")
        return

    channel_id = _channel_arg(message)
    if channel_id is None:
        await message.answer("Usage: /setshowcase [channel_id]")
        return

    await set_showcase_channel(session, message.chat.id, channel_id)
    await message.answer(f"✅ Weekly showcases will post in <code>{channel_id}</code>.")


@router.message(Command("spawnrate"))
async def cmd_spawnrate(message: Message, session: AsyncSession) -> None:
    """Show or change the daily spawn target."""
    chat_id = message.chat.id
    args = (message.text or "").split()

    if len(args) < 2:
        schedule = await get_schedule(session, chat_id)
        await session.commit()
        await message.answer(
            f"<b>Spawn rate:</b> {schedule.spawns_per_day} per day "
            f"({schedule.spawns_today} so far today)\n"
            f"<i>Admins: /spawnrate [{MIN_SPAWNS_PER_DAY}-{MAX_SPAWNS_PER_DAY}]</i>"
        )
        return

    if not await is_room_admin(message):
        await message.answer("Only group admins can use this command!")
        return

    try:
        target = int(args[1])
    except ValueError:
        target = 0

    result = await set_spawns_per_day(session, chat_id, target)
    if not result.ok:
        await message.answer(
            f"{ERROR_MESSAGES[result.error]} Pick {MIN_SPAWNS_PER_DAY}-{MAX_SPAWNS_PER_DAY}."
        )
        return

    await message.answer(f"✅ Daily spawn target set to <b>{target}</b> per day.")


@router.message(Command("spawning"))
async def cmd_spawning(message: Message, session: AsyncSession) -> None:
    """Pause or resume scheduled spawns."""
    if not await is_room_admin(message):
        await message.answer("Only group admins can use this command!")
        return

    args = (message.text or "").split()
    enabled = SWITCH_WORDS.get(args[1].lower()) if len(args) > 1 else None
    if enabled is None:
        await message.answer("Usage: /spawning [on|off]")
        return

    await set_spawn_enabled(session, message.chat.id, enabled)
    if enabled:
        await message.answer("✅ Scheduled spawns are back on.")
    else:
        await message.answer("⏸️ Scheduled spawns paused. /forcespawn still works.")


@router.message(Command("forcespawn"))
async def cmd_forcespawn(message: Message, lifecycle: SpawnLifecycle) -> None:
    """Spawn a poro right now (outside the daily schedule)."""
    if not await is_room_admin(message):
        await message.answer("Only group admins can use this command!")
        return

    result = await lifecycle.spawn(message.chat.id)
    if not result.ok:
        await message.answer(f"Spawn skipped: {ERROR_MESSAGES[result.error]}")
        return

    logger.info("Forced spawn", chat_id=message.chat.id, user_id=message.from_user.id)
    await message.answer(f"Spawned: <b>{result.poro.name}</b> ({result.poro.rarity_label})")


@router.message(Command("clearspawn"))
async def cmd_clearspawn(message: Message, lifecycle: SpawnLifecycle) -> None:
    """End the live spawn, if any."""
    if not await is_room_admin(message):
        await message.answer("Only group admins can use this command!")
        return

    spawn = await lifecycle.clear(message.chat.id)
    if spawn is None:
        await message.answer("There is no active spawn here.")
        return
    await message.answer("✅ Cleared the active spawn.")


@router.message(Command("settings"))
async def cmd_settings(message: Message, session: AsyncSession) -> None:
    """Show this room's configuration."""
    room = await get_or_create_room(session, message.chat.id, message.chat.title)
    schedule = await get_schedule(session, message.chat.id)
    await session.commit()

    next_spawn = (
        f"{schedule.next_spawn_at:%Y-%m-%d %H:%M} UTC" if schedule.next_spawn_at else "Not planned"
    )
    settings_text = (
        f"<b>Room Settings</b>\n"
        f"{message.chat.title or ''}\n\n"
        f"<b>Spawning</b>\n"
        f"Enabled: {'Yes' if room.spawn_enabled else 'No'}\n"
        f"Spawn Channel: {room.spawn_channel_id or 'Not set'}\n"
        f"Showcase Channel: {room.showcase_channel_id or 'Not set'}\n"
        f"Per day: {schedule.spawns_per_day}\n"
        f"Next spawn: {next_spawn}\n\n"
        f"<b>Stats</b>\n"
        f"Total Spawns: {room.total_spawns}\n"
        f"Total Catches: {room.total_catches}"
    )
    await message.answer(settings_text)
