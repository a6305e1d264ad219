"""Interface between the spawn lifecycle and whatever displays it."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from porohunt.core.catalog import Poro
from porohunt.database.models import ActiveSpawn

if TYPE_CHECKING:
    from porohunt.core.collection import Showcase

# Why a spawn message was closed without a catch
REASON_TIMEOUT = "timeout"
REASON_FLED = "fled"
REASON_CLEARED = "cleared"

RAN_AWAY_TEXT = {
    REASON_TIMEOUT: "No one caught it in time. A new poro will appear later.",
    REASON_FLED: "The poro got spooked and ran away!",
    REASON_CLEARED: "This poro wandered off.",
}


class SpawnPresenter(Protocol):
    """Posts and updates the public spawn message."""

    async def post_spawn(self, channel_id: int, spawn: ActiveSpawn, poro: Poro) -> int | None:
        """Show a new spawn. Returns the message id, or None if it could not be posted."""
        ...

    async def mark_caught(
        self, spawn: ActiveSpawn, poro: Poro, user_id: int, username: str | None
    ) -> None:
        ...

    async def mark_expired(self, spawn: ActiveSpawn, poro: Poro | None, reason: str) -> None:
        ...

    async def post_showcase(self, channel_id: int, showcase: Showcase) -> None:
        ...
