"""Caught poro models: public catches, offline net stash and collection."""

from datetime import datetime

from sqlalchemy import BigInteger, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from porohunt.database.models.base import Base, StatsMixin


class CaughtPoro(Base, StatsMixin):
    """A poro won in a public spawn race."""

    __tablename__ = "caught_poros"
    __table_args__ = (Index("ix_caught_poros_owner", "chat_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    chat_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    poro_id: Mapped[str] = mapped_column(String(64), nullable=False)

    caught_at: Mapped[datetime] = mapped_column(nullable=False)

    # `hunger` from StatsMixin is the live value; it drifts up over time
    hunger_updated_at: Mapped[datetime] = mapped_column(nullable=False)

    nickname: Mapped[str | None] = mapped_column(String(24), nullable=True)

    def __repr__(self) -> str:
        return f"<CaughtPoro #{self.id} {self.poro_id} owner={self.user_id}>"

    @property
    def display_name(self) -> str:
        return self.nickname or self.poro_id


class StashedPoro(Base, StatsMixin):
    """A poro captured by an armed net while its owner was away."""

    __tablename__ = "net_stash"
    __table_args__ = (Index("ix_net_stash_owner", "chat_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    chat_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    poro_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # Spawn that triggered the net
    instance_id: Mapped[str] = mapped_column(String(32), nullable=False)

    caught_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<StashedPoro #{self.id} {self.poro_id} owner={self.user_id}>"


class CollectionEntry(Base):
    """Tracks how many of each poro a trainer has caught."""

    __tablename__ = "collection_entries"

    # Composite primary key
    chat_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    poro_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    times_caught: Mapped[int] = mapped_column(Integer, default=0)
    first_caught_at: Mapped[datetime] = mapped_column(nullable=False)
    last_caught_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<CollectionEntry user={self.user_id} poro={self.poro_id} x{self.times_caught}>"
