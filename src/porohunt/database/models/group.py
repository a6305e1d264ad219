"""Room model for Telegram groups running the game."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from porohunt.database.models.base import Base, TimestampMixin


class Room(Base, TimestampMixin):
    """Represents a Telegram group where poros can spawn."""

    __tablename__ = "rooms"

    # Primary key is Telegram chat ID
    chat_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    title: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Where spawns are posted; None means the room is not set up yet
    spawn_channel_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    showcase_channel_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    last_showcase_at: Mapped[datetime | None] = mapped_column(nullable=True)

    spawn_enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    # Stats
    total_spawns: Mapped[int] = mapped_column(Integer, default=0)
    total_catches: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<Room {self.chat_id} {self.title}>"

    @property
    def is_configured(self) -> bool:
        """Check if the room has somewhere to post spawns."""
        return self.spawn_channel_id is not None


class RoomSchedule(Base):
    """Daily spawn pacing for a room. Only the scheduler writes here."""

    __tablename__ = "room_schedules"

    chat_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("rooms.chat_id", ondelete="CASCADE"),
        primary_key=True,
    )

    next_spawn_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Quota
    spawns_per_day: Mapped[int] = mapped_column(Integer, default=6)
    spawns_today: Mapped[int] = mapped_column(Integer, default=0)
    # Local calendar day (YYYY-MM-DD) that spawns_today counts
    spawn_day: Mapped[str | None] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<RoomSchedule {self.chat_id} next={self.next_spawn_at} "
            f"{self.spawns_today}/{self.spawns_per_day}>"
        )
