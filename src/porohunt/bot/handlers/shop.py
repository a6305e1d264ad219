"""Shop, inventory and net handlers."""

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.bot.middlewares.trainer import GROUP_CHATS
from porohunt.core.errors import ERROR_MESSAGES, GameError
from porohunt.core.items import (
    SHOP_ITEMS,
    ItemResult,
    arm_net,
    buy_item,
    claim_free_food,
    item_cost,
    item_quantity,
)
from porohunt.database.models import Trainer
from porohunt.logging import get_logger

router = Router(name="shop")
router.message.filter(F.chat.type.in_(GROUP_CHATS))
logger = get_logger(__name__)

# Accepted spellings for /buy
ITEM_ALIASES = {
    "net": "net",
    "nets": "net",
    "berry": "berry",
    "berries": "berry",
    "food": "food",
    "foodbag": "food",
    "bag": "food",
}


def _build_shop_keyboard() -> InlineKeyboardBuilder:
    builder = InlineKeyboardBuilder()
    for key, item in SHOP_ITEMS.items():
        builder.button(
            text=f"{item['name']} ({item_cost(key)}g)",
            callback_data=f"shop:{key}",
        )
    builder.adjust(3)
    return builder


def _shop_text() -> str:
    lines = ["<b>Poro Shop</b>\n"]
    for key, item in SHOP_ITEMS.items():
        qty = item_quantity(key)
        qty_text = f" x{qty}" if qty > 1 else ""
        lines.append(
            f"<b>{item['name']}{qty_text}</b> - {item_cost(key)} gold\n"
            f"  <i>{item['description']}</i>"
        )
    lines.append("\n<i>Tap an item or use /buy [net|berry|food].</i>")
    return "\n".join(lines)


def _inventory_line(trainer: Trainer) -> str:
    return (
        f"💰 {trainer.gold} gold | 🪤 {trainer.nets} nets ({trainer.nets_armed} armed) | "
        f"🍓 {trainer.berries} berries | 🍖 {trainer.food} food"
    )


def _purchase_reply(key: str, result: ItemResult) -> str:
    item = SHOP_ITEMS[key]
    if result.error == GameError.INSUFFICIENT_RESOURCE:
        return f"Not enough gold! A {item['name']} costs {item_cost(key)} gold."
    if not result.ok:
        return ERROR_MESSAGES[result.error]
    return f"Bought {item['name']}!\n{_inventory_line(result.trainer)}"


@router.message(Command("shop"))
async def cmd_shop(message: Message) -> None:
    """Handle /shop command."""
    await message.answer(_shop_text(), reply_markup=_build_shop_keyboard().as_markup())


@router.callback_query(F.data.startswith("shop:"))
async def callback_shop(callback: CallbackQuery, session: AsyncSession) -> None:
    """Buy from the shop keyboard."""
    key = (callback.data or "").split(":", 1)[-1]
    if key not in SHOP_ITEMS or callback.message is None:
        await callback.answer("Unknown item")
        return

    user = callback.from_user
    result = await buy_item(session, callback.message.chat.id, user.id, key)
    await callback.answer(_purchase_reply(key, result), show_alert=True)


@router.message(Command("buy"))
async def cmd_buy(message: Message, session: AsyncSession, trainer: Trainer) -> None:
    """Handle /buy command."""
    args = (message.text or "").split()
    if len(args) < 2:
        await message.answer("Usage: /buy [net|berry|food]\nUse /shop to see prices.")
        return

    key = ITEM_ALIASES.get(args[1].lower())
    if key is None:
        await message.answer("That's not in the shop! Use /shop to see items.")
        return

    result = await buy_item(session, trainer.chat_id, trainer.user_id, key)
    await message.answer(_purchase_reply(key, result))


@router.message(Command("arm"))
async def cmd_arm(message: Message, session: AsyncSession, trainer: Trainer) -> None:
    """Arm a net for the next spawn."""
    result = await arm_net(session, trainer.chat_id, trainer.user_id)
    if not result.ok:
        await message.answer("You have no nets to arm. Buy one with /buy net.")
        return

    await message.answer(
        "🪤 Net armed! It will catch the next poro for you, even while you're away.\n"
        f"{_inventory_line(result.trainer)}"
    )


@router.message(Command("freefood"))
async def cmd_freefood(message: Message, session: AsyncSession, trainer: Trainer) -> None:
    """Claim the periodic free food bag."""
    result = await claim_free_food(session, trainer.chat_id, trainer.user_id)
    if result.error == GameError.COOLDOWN:
        total_minutes = int(result.remaining.total_seconds() // 60)
        hours, minutes = divmod(total_minutes, 60)
        await message.answer(f"Your free food isn't ready yet. Come back in {hours}h {minutes}m.")
        return

    await message.answer(f"🍖 Free food claimed!\n{_inventory_line(result.trainer)}")


@router.message(Command("inventory", "bag"))
async def cmd_inventory(message: Message, trainer: Trainer) -> None:
    await message.answer(f"<b>{trainer.display_name}'s bag</b>\n{_inventory_line(trainer)}")
