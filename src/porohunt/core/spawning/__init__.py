"""Spawning package.

``SpawnLifecycle`` lives in ``porohunt.core.spawning.lifecycle`` and is not
re-exported here, since it depends on catch resolution which in turn uses
the engine.
"""

from porohunt.core.spawning.blackout import is_blackout, next_allowed_spawn_at
from porohunt.core.spawning.engine import (
    SpawnResult,
    attempt_spawn,
    expire_spawn,
    force_clear_spawn,
    get_active_spawn,
    mark_first_interaction,
)
from porohunt.core.spawning.scheduler import (
    SpawnScheduler,
    compute_next_spawn,
    mark_spawn_happened,
    set_spawns_per_day,
    should_spawn_now,
)

__all__ = [
    "SpawnResult",
    "SpawnScheduler",
    "attempt_spawn",
    "compute_next_spawn",
    "expire_spawn",
    "force_clear_spawn",
    "get_active_spawn",
    "is_blackout",
    "mark_first_interaction",
    "mark_spawn_happened",
    "next_allowed_spawn_at",
    "set_spawns_per_day",
    "should_spawn_now",
]
