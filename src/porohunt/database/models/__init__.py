"""Database models package."""

from porohunt.database.models.base import Base, StatsMixin, TimestampMixin
from porohunt.database.models.catch import CaughtPoro, CollectionEntry, StashedPoro
from porohunt.database.models.group import Room, RoomSchedule
from porohunt.database.models.spawn import ActiveSpawn, SpawnAttempt, SpawnBoost
from porohunt.database.models.user import Trainer

__all__ = [
    # Base
    "Base",
    "StatsMixin",
    "TimestampMixin",
    # Rooms
    "Room",
    "RoomSchedule",
    # Spawns
    "ActiveSpawn",
    "SpawnAttempt",
    "SpawnBoost",
    # Trainers and their poros
    "Trainer",
    "CaughtPoro",
    "StashedPoro",
    "CollectionEntry",
]
