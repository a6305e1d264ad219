"""Trainer model: a user's progression inside one room."""

from datetime import datetime

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from porohunt.database.models.base import Base, TimestampMixin


class Trainer(Base, TimestampMixin):
    """Represents a Telegram user playing in a given room."""

    __tablename__ = "trainers"

    # Progress is per room, so the key is (room, user)
    chat_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    username: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Progression. xp is cumulative; level and title are derived from it.
    xp: Mapped[int] = mapped_column(BigInteger, default=0)
    level: Mapped[int] = mapped_column(Integer, default=1)
    title: Mapped[str | None] = mapped_column(String(64), nullable=True)

    poros_caught: Mapped[int] = mapped_column(Integer, default=0)
    last_catch_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Economy
    gold: Mapped[int] = mapped_column(BigInteger, default=0)

    # Consumables
    berries: Mapped[int] = mapped_column(Integer, default=0)
    nets: Mapped[int] = mapped_column(Integer, default=0)
    nets_armed: Mapped[int] = mapped_column(Integer, default=0)
    food: Mapped[int] = mapped_column(Integer, default=0)

    last_free_food_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Trainer {self.user_id}@{self.chat_id} Lv.{self.level}>"

    @property
    def display_name(self) -> str:
        """Get display name for the trainer."""
        if self.username:
            return f"@{self.username}"
        return f"Trainer {self.user_id}"
