"""Telegram rendering of spawns and the weekly showcase."""

from __future__ import annotations

from html import escape

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.utils.keyboard import InlineKeyboardBuilder

from porohunt.config import settings
from porohunt.core.catalog import Poro, PoroStats
from porohunt.core.collection import Showcase
from porohunt.core.spawning.presenter import RAN_AWAY_TEXT
from porohunt.database.models import ActiveSpawn
from porohunt.logging import get_logger

logger = get_logger(__name__)

CATCH_PREFIX = "poro:catch:"
BERRY_PREFIX = "poro:berry:"

RARITY_BADGES = {
    "common": "🐾 Common",
    "rare": "✨ <b>Rare</b>",
    "ultra_rare": "👑 <b>Ultra Rare</b>",
}


def format_stats(stats: PoroStats) -> str:
    return (
        f"Size {stats.size} | Weight {stats.weight} | Throw {stats.throw_distance}\n"
        f"Fluffiness {stats.fluffiness} | Hunger {stats.hunger}/10"
    )


def spawn_keyboard(instance_id: str) -> InlineKeyboardBuilder:
    builder = InlineKeyboardBuilder()
    builder.button(text="🎯 Catch!", callback_data=f"{CATCH_PREFIX}{instance_id}")
    builder.button(text="🍓 Toss berry", callback_data=f"{BERRY_PREFIX}{instance_id}")
    builder.adjust(2)
    return builder


def spawn_text(spawn: ActiveSpawn, poro: Poro) -> str:
    return (
        f"🔴 <b>A wild {escape(poro.name)} appeared!</b>\n"
        f"{RARITY_BADGES.get(poro.rarity, poro.rarity_label)}\n\n"
        f"{format_stats(spawn.stats)}\n\n"
        f"Everyone gets one try. Toss a berry first for a better chance!\n"
        f"<i>It will run away in {settings.spawn_ttl_minutes} minutes, "
        f"or {settings.spawn_flee_minutes} minutes after the first try...</i>"
    )


def showcase_text(showcase: Showcase) -> str:
    totals = showcase.totals
    if showcase.top:
        top_lines = "\n".join(
            f"{i}. {escape(t.display_name)} - 🐾 {t.poros_caught} (Lv {t.level})"
            for i, t in enumerate(showcase.top, start=1)
        )
    else:
        top_lines = "No catches yet 👀"

    return (
        "🗓️ <b>Weekly Poro Showcase</b>\n"
        f"Totals: 🐾 Common <b>{totals.get('common', 0)}</b> | "
        f"✨ Rare <b>{totals.get('rare', 0)}</b> | "
        f"👑 Ultra <b>{totals.get('ultra_rare', 0)}</b>\n\n"
        f"🏆 <b>Top Catchers</b>\n{top_lines}"
    )


class TelegramPresenter:
    """Posts spawns to the room's channel and edits them as they end."""

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def post_spawn(self, channel_id: int, spawn: ActiveSpawn, poro: Poro) -> int | None:
        try:
            msg = await self.bot.send_message(
                chat_id=channel_id,
                text=spawn_text(spawn, poro),
                reply_markup=spawn_keyboard(spawn.instance_id).as_markup(),
            )
        except TelegramAPIError as e:
            logger.error("Failed to send spawn message", error=str(e), channel_id=channel_id)
            return None
        return msg.message_id

    async def _edit(self, spawn: ActiveSpawn, text: str) -> None:
        if spawn.message_id is None:
            return
        try:
            await self.bot.edit_message_text(
                chat_id=spawn.channel_id,
                message_id=spawn.message_id,
                text=text,
                reply_markup=None,
            )
        except TelegramAPIError as e:
            # Message deleted or too old to edit; the game state is already final
            logger.warning("Could not edit spawn message", error=str(e), message_id=spawn.message_id)

    async def mark_caught(
        self, spawn: ActiveSpawn, poro: Poro, user_id: int, username: str | None
    ) -> None:
        who = escape(username) if username else f"Trainer {user_id}"
        await self._edit(
            spawn,
            f"✅ <b>{escape(poro.name)}</b> was caught by <b>{who}</b>!\n\n"
            f"{format_stats(spawn.stats)}",
        )

    async def mark_expired(self, spawn: ActiveSpawn, poro: Poro | None, reason: str) -> None:
        name = escape(poro.name) if poro else "The poro"
        await self._edit(
            spawn,
            f"💨 <b>{name} ran away!</b>\n{RAN_AWAY_TEXT.get(reason, '')}",
        )

    async def post_showcase(self, channel_id: int, showcase: Showcase) -> None:
        await self.bot.send_message(chat_id=channel_id, text=showcase_text(showcase))
