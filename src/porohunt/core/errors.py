"""Outcome kinds and the one fatal error of the game core."""

from enum import Enum


class GameError(str, Enum):
    """Expected, recoverable reasons an operation did not go through."""

    NO_CHANNEL_CONFIGURED = "no_channel_configured"
    ALREADY_ACTIVE = "already_active"
    BLACKOUT = "blackout"
    NO_ACTIVE_SPAWN = "no_active_spawn"
    STALE_SPAWN = "stale_spawn"
    DUPLICATE_ATTEMPT = "duplicate_attempt"
    INSUFFICIENT_RESOURCE = "insufficient_resource"
    COOLDOWN = "cooldown"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"


# Player-facing wording, shared by every front end
ERROR_MESSAGES: dict[GameError, str] = {
    GameError.NO_CHANNEL_CONFIGURED: "No spawn channel is set up here yet.",
    GameError.ALREADY_ACTIVE: "A poro is already out there!",
    GameError.BLACKOUT: "The poros are asleep. Try again in the morning.",
    GameError.NO_ACTIVE_SPAWN: "Too slow! No poro is active right now.",
    GameError.STALE_SPAWN: "That poro is no longer active.",
    GameError.DUPLICATE_ATTEMPT: "You already tried this poro!",
    GameError.INSUFFICIENT_RESOURCE: "You don't have enough for that.",
    GameError.COOLDOWN: "Not ready yet.",
    GameError.NOT_FOUND: "Could not find that (or it isn't yours).",
    GameError.INVALID_INPUT: "That value is not allowed.",
}


class PersistenceUnavailable(RuntimeError):
    """The database could not be reached or refused the write.

    Raised after the session has been rolled back, so nothing from the failed
    operation was persisted.
    """
