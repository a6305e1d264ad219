"""Profile, collection and leaderboard handlers."""

from html import escape

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.bot.middlewares.trainer import GROUP_CHATS
from porohunt.bot.presenter import format_stats
from porohunt.core.catalog import get_poro
from porohunt.core.collection import (
    NICKNAME_MAX_LENGTH,
    get_leaderboard,
    get_profile,
    list_catches,
    list_stash,
    rename_catch,
)
from porohunt.core.errors import ERROR_MESSAGES, GameError
from porohunt.core.hunger import HUNGER_MAX, feed_catch
from porohunt.database.models import CaughtPoro, Trainer
from porohunt.logging import get_logger

router = Router(name="profile")
router.message.filter(F.chat.type.in_(GROUP_CHATS))
logger = get_logger(__name__)

# Catches shown by /poros
LIST_LIMIT = 15

RANK_MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


def _catch_name(caught: CaughtPoro) -> str:
    poro = get_poro(caught.poro_id)
    species = poro.name if poro else caught.poro_id
    if caught.nickname:
        return f"{escape(caught.nickname)} ({species})"
    return species


def _hunger_bar(hunger: int) -> str:
    return "🍖" * (HUNGER_MAX - hunger) + "·" * hunger


def _parse_id(arg: str) -> int | None:
    try:
        return int(arg.lstrip("#"))
    except ValueError:
        return None


@router.message(Command("profile"))
async def cmd_profile(message: Message, session: AsyncSession, trainer: Trainer) -> None:
    """Handle /profile command."""
    profile = await get_profile(session, trainer.chat_id, trainer.user_id)

    profile_text = (
        f"<b>Trainer Profile</b>\n\n"
        f"<b>Name:</b> {escape(trainer.display_name)}\n"
        f"<b>Title:</b> {trainer.title}\n"
        f"<b>Level:</b> {trainer.level} "
        f"({profile.xp_into_level}/{profile.xp_to_next} XP)\n\n"
        f"<b>Poros</b>\n"
        f"  Caught: {trainer.poros_caught}\n"
        f"  Kinds: {profile.species_caught}\n"
        f"  In net stash: {profile.stashed}\n\n"
        f"<b>Bag</b>\n"
        f"  Gold: {trainer.gold}\n"
        f"  Nets: {trainer.nets} ({trainer.nets_armed} armed)\n"
        f"  Berries: {trainer.berries}\n"
        f"  Food: {trainer.food}"
    )
    await message.answer(profile_text)


@router.message(Command("leaderboard", "lb", "top"))
async def cmd_leaderboard(message: Message, session: AsyncSession, trainer: Trainer) -> None:
    """Handle /leaderboard command."""
    top = await get_leaderboard(session, trainer.chat_id)
    if not top:
        await message.answer("No catches yet 👀")
        return

    lines = ["<b>🏆 Top Catchers</b>\n"]
    for rank, entry in enumerate(top, start=1):
        medal = RANK_MEDALS.get(rank, f"{rank}.")
        lines.append(
            f"{medal} <b>{escape(entry.display_name)}</b> - "
            f"🐾 {entry.poros_caught} (Lv {entry.level})"
        )
    await message.answer("\n".join(lines))


@router.message(Command("poros", "collection"))
async def cmd_poros(message: Message, session: AsyncSession, trainer: Trainer) -> None:
    """List the trainer's caught poros."""
    catches = await list_catches(session, trainer.chat_id, trainer.user_id)
    if not catches:
        await message.answer("You haven't caught any poros yet!")
        return

    lines = [f"<b>{escape(trainer.display_name)}'s poros</b> ({len(catches)})\n"]
    for caught in catches[:LIST_LIMIT]:
        lines.append(
            f"<code>#{caught.id}</code> {_catch_name(caught)}\n"
            f"  Hunger {caught.hunger}/{HUNGER_MAX} {_hunger_bar(caught.hunger)}"
        )
    if len(catches) > LIST_LIMIT:
        lines.append(f"\n<i>...and {len(catches) - LIST_LIMIT} more</i>")
    lines.append("\n<i>/feed [id] to feed, /name [id] [nickname] to rename.</i>")
    await message.answer("\n".join(lines))


@router.message(Command("poro"))
async def cmd_poro(message: Message, session: AsyncSession, trainer: Trainer) -> None:
    """Show one caught poro in detail."""
    args = (message.text or "").split()
    catch_id = _parse_id(args[1]) if len(args) > 1 else None
    if catch_id is None:
        await message.answer("Usage: /poro [id]")
        return

    catches = await list_catches(session, trainer.chat_id, trainer.user_id)
    caught = next((c for c in catches if c.id == catch_id), None)
    if caught is None:
        await message.answer(ERROR_MESSAGES[GameError.NOT_FOUND])
        return

    await message.answer(
        f"<b>{_catch_name(caught)}</b> <code>#{caught.id}</code>\n"
        f"{format_stats(caught.stats)}\n"
        f"<i>Caught {caught.caught_at:%Y-%m-%d %H:%M} UTC</i>"
    )


@router.message(Command("stash"))
async def cmd_stash(message: Message, session: AsyncSession, trainer: Trainer) -> None:
    """List poros caught by armed nets."""
    stash = await list_stash(session, trainer.chat_id, trainer.user_id)
    if not stash:
        await message.answer("Your net stash is empty. Arm a net with /arm!")
        return

    lines = [f"<b>🪤 Net stash</b> ({len(stash)})\n"]
    for entry in stash[:LIST_LIMIT]:
        poro = get_poro(entry.poro_id)
        lines.append(f"{poro.name if poro else entry.poro_id} - {entry.caught_at:%Y-%m-%d %H:%M}")
    await message.answer("\n".join(lines))


@router.message(Command("feed"))
async def cmd_feed(message: Message, session: AsyncSession, trainer: Trainer) -> None:
    """Feed one of the trainer's poros."""
    args = (message.text or "").split()
    catch_id = _parse_id(args[1]) if len(args) > 1 else None
    if catch_id is None:
        await message.answer("Usage: /feed [id]\nSee your poro ids with /poros.")
        return

    result = await feed_catch(session, trainer.chat_id, trainer.user_id, catch_id)
    if result.error == GameError.INSUFFICIENT_RESOURCE:
        await message.answer("You're out of food! Buy some with /buy food or try /freefood.")
        return
    if not result.ok:
        await message.answer(ERROR_MESSAGES[result.error])
        return

    await message.answer(
        f"🍖 Nom nom! Hunger -{result.amount}, now {result.hunger}/{HUNGER_MAX}.\n"
        f"Food left: {result.food_left}"
    )


@router.message(Command("name", "nickname"))
async def cmd_name(message: Message, session: AsyncSession, trainer: Trainer) -> None:
    """Give a caught poro a nickname."""
    args = (message.text or "").split(maxsplit=2)
    catch_id = _parse_id(args[1]) if len(args) > 1 else None
    if catch_id is None or len(args) < 3:
        await message.answer(f"Usage: /name [id] [nickname] (1-{NICKNAME_MAX_LENGTH} characters)")
        return

    result = await rename_catch(session, trainer.chat_id, trainer.user_id, catch_id, args[2])
    if result.error == GameError.INVALID_INPUT:
        await message.answer(f"Nicknames must be 1-{NICKNAME_MAX_LENGTH} characters.")
        return
    if not result.ok:
        await message.answer(ERROR_MESSAGES[result.error])
        return

    await message.answer(f"✏️ Say hi to <b>{_catch_name(result.caught)}</b>!")
