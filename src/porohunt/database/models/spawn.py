"""Spawn models: the live spawn per room and its per-user side records."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from porohunt.database.models.base import Base, StatsMixin


class ActiveSpawn(Base, StatsMixin):
    """The single spawn row of a room.

    The row is reused for every spawn in the room; ``instance_id`` changes
    each time, which is what distinguishes a new spawn from a superseded one.
    """

    __tablename__ = "active_spawns"

    # One row per room
    chat_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("rooms.chat_id", ondelete="CASCADE"),
        primary_key=True,
    )

    instance_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    poro_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Public message, filled in once the presenter has posted it
    channel_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    message_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Timing
    spawned_at: Mapped[datetime] = mapped_column(nullable=False)
    first_interaction_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Catch info (filled when caught)
    caught_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    caught_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<ActiveSpawn {self.instance_id} poro={self.poro_id} in {self.chat_id}>"


class SpawnAttempt(Base):
    """One catch attempt per user per spawn instance."""

    __tablename__ = "spawn_attempts"

    chat_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    instance_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    attempted_at: Mapped[datetime] = mapped_column(nullable=False)


class SpawnBoost(Base):
    """A berry tossed at a spawn, pending use on the thrower's catch attempt."""

    __tablename__ = "spawn_boosts"

    chat_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    instance_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    tossed_at: Mapped[datetime] = mapped_column(nullable=False)
