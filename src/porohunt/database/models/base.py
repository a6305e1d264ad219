"""Declarative base and shared mixins."""

from datetime import datetime

from sqlalchemy import Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from porohunt.core.catalog import PoroStats


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class TimestampMixin:
    """Adds created/updated timestamps maintained by the database."""

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )


class StatsMixin:
    """The five rolled attributes of a poro instance."""

    size: Mapped[int] = mapped_column(Integer, nullable=False)
    weight: Mapped[int] = mapped_column(Integer, nullable=False)
    throw_distance: Mapped[int] = mapped_column(Integer, nullable=False)
    fluffiness: Mapped[int] = mapped_column(Integer, nullable=False)
    hunger: Mapped[int] = mapped_column(Integer, nullable=False)

    @property
    def stats(self) -> PoroStats:
        """Snapshot of the rolled attributes."""
        return PoroStats(
            size=self.size,
            weight=self.weight,
            throw_distance=self.throw_distance,
            fluffiness=self.fluffiness,
            hunger=self.hunger,
        )
