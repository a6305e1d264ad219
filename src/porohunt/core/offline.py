"""Armed nets: guaranteed captures that bypass the public race.

Runs once per spawn, inside the spawn-creation transaction. It writes only
to trainers and the net stash; the public spawn row is never read or changed
here, so a net can never end the race.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from porohunt.core.catalog import Poro, PoroStats
from porohunt.database.models import StashedPoro, Trainer
from porohunt.logging import get_logger

logger = get_logger(__name__)


async def _consume_armed_net(session: AsyncSession, chat_id: int, user_id: int) -> bool:
    result = await session.execute(
        update(Trainer)
        .where(Trainer.chat_id == chat_id)
        .where(Trainer.user_id == user_id)
        .where(Trainer.nets_armed > 0)
        .values(nets_armed=Trainer.nets_armed - 1)
    )
    return result.rowcount == 1


async def process_offline_captures(
    session: AsyncSession,
    chat_id: int,
    instance_id: str,
    poro: Poro,
    stats: PoroStats,
    now: datetime,
) -> list[int]:
    """Spend one armed net per holder and stash a copy of the spawn for them.

    Returns the ids of users who received a capture.
    """
    result = await session.execute(
        select(Trainer.user_id)
        .where(Trainer.chat_id == chat_id)
        .where(Trainer.nets_armed > 0)
        .order_by(Trainer.user_id)
    )
    holders = list(result.scalars().all())

    captured: list[int] = []
    for user_id in holders:
        if not await _consume_armed_net(session, chat_id, user_id):
            continue

        session.add(
            StashedPoro(
                chat_id=chat_id,
                user_id=user_id,
                poro_id=poro.id,
                instance_id=instance_id,
                caught_at=now,
                **stats.as_dict(),
            )
        )
        captured.append(user_id)

    if captured:
        await session.flush()
        logger.info(
            "Nets caught poro",
            chat_id=chat_id,
            poro=poro.id,
            users=captured,
        )

    return captured
