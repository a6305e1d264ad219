"""Trainer loading middleware."""

from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import Message, TelegramObject
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.core.rewards import get_or_create_trainer
from porohunt.core.rooms import get_or_create_room
from porohunt.logging import bind_room

GROUP_CHATS = {"group", "supergroup"}


class TrainerMiddleware(BaseMiddleware):
    """Load or create the sender's trainer for the current room."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        session: AsyncSession | None = data.get("session")
        if not session or not isinstance(event, Message) or not event.from_user:
            return await handler(event, data)

        # Trainers are per room, so private chats have none
        if event.chat.type not in GROUP_CHATS:
            return await handler(event, data)

        chat_id = event.chat.id
        bind_room(chat_id)

        await get_or_create_room(session, chat_id, event.chat.title)
        trainer = await get_or_create_trainer(
            session,
            chat_id,
            event.from_user.id,
            event.from_user.username or event.from_user.full_name,
        )
        await session.commit()

        data["trainer"] = trainer
        return await handler(event, data)
