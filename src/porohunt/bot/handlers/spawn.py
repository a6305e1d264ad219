"""Spawn message buttons: catch attempts and berry tosses."""

from aiogram import F, Router
from aiogram.types import CallbackQuery
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.bot.presenter import BERRY_PREFIX, CATCH_PREFIX
from porohunt.core.catching import CatchResult
from porohunt.core.errors import ERROR_MESSAGES, GameError
from porohunt.core.leveling import format_xp_message
from porohunt.core.spawning.engine import find_spawn_room
from porohunt.core.spawning.lifecycle import SpawnLifecycle
from porohunt.logging import get_logger

router = Router(name="spawn")
logger = get_logger(__name__)


def catch_reply(result: CatchResult) -> str:
    """Private result text shown to the player who clicked."""
    progress = result.progress
    xp_line = format_xp_message(result.xp_gained, progress.old_level, progress.level)
    boost = " 🍓" if result.boosted else ""

    if result.success:
        text = (
            f"🎉 You caught {result.poro.name}!{boost}\n"
            f"+{result.gold_gained} gold\n{xp_line}"
        )
    else:
        text = f"💨 {result.poro.name} slipped away from you.{boost}\n{xp_line}"

    if progress.leveled_up:
        text += f"\nTitle: {progress.title}"
    return text


@router.callback_query(F.data.startswith(CATCH_PREFIX))
async def callback_catch(
    callback: CallbackQuery, session: AsyncSession, lifecycle: SpawnLifecycle
) -> None:
    """Handle a Catch! click."""
    instance_id = (callback.data or "")[len(CATCH_PREFIX):]
    chat_id = await find_spawn_room(session, instance_id)
    if chat_id is None:
        await callback.answer(ERROR_MESSAGES[GameError.STALE_SPAWN], show_alert=True)
        return

    user = callback.from_user
    result = await lifecycle.catch(
        chat_id,
        instance_id,
        user.id,
        username=user.username or user.full_name,
    )

    if not result.ok:
        await callback.answer(ERROR_MESSAGES[result.error], show_alert=True)
        return

    await callback.answer(catch_reply(result), show_alert=True)


@router.callback_query(F.data.startswith(BERRY_PREFIX))
async def callback_berry(
    callback: CallbackQuery, session: AsyncSession, lifecycle: SpawnLifecycle
) -> None:
    """Handle a Toss berry click."""
    instance_id = (callback.data or "")[len(BERRY_PREFIX):]
    chat_id = await find_spawn_room(session, instance_id)
    if chat_id is None:
        await callback.answer(ERROR_MESSAGES[GameError.STALE_SPAWN], show_alert=True)
        return

    result = await lifecycle.toss_berry(chat_id, instance_id, callback.from_user.id)
    if not result.ok:
        if result.error == GameError.INSUFFICIENT_RESOURCE:
            await callback.answer("You have no berries. Buy some with /buy berry.", show_alert=True)
        else:
            await callback.answer(ERROR_MESSAGES[result.error], show_alert=True)
        return

    await callback.answer(
        f"🍓 Berry tossed! Your next catch try is boosted. ({result.berries_left} left)",
        show_alert=True,
    )
