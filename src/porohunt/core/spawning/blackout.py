"""Blackout window: local hours during which no spawn may be posted."""

from __future__ import annotations

import random
from datetime import date, datetime, time, timedelta

from porohunt.config import settings
from porohunt.core.clock import from_local, local_zone, to_local


def is_blackout(ts: datetime) -> bool:
    """Check whether a stored timestamp falls inside the blackout window."""
    start, end = settings.blackout_start_hour, settings.blackout_end_hour
    if start == end:
        return False

    hour = to_local(ts).hour
    if start < end:
        return start <= hour < end
    # Window wraps past midnight, e.g. 22:00-06:00
    return hour >= start or hour < end


def _jitter(rng: random.Random | None) -> timedelta:
    rng = rng or random
    return timedelta(minutes=rng.randint(0, settings.blackout_jitter_minutes))


def blackout_end_on(day: date, rng: random.Random | None = None) -> datetime:
    """First permissible instant on ``day`` (local), plus jitter, as stored UTC.

    The jitter keeps every room from spawning at exactly the same minute.
    """
    local = datetime.combine(day, time(settings.blackout_end_hour), tzinfo=local_zone())
    return from_local(local) + _jitter(rng)


def next_allowed_spawn_at(ts: datetime, rng: random.Random | None = None) -> datetime:
    """Next blackout end at or after ``ts``, plus jitter.

    Before today's end hour that is today; otherwise it is tomorrow.
    """
    local = to_local(ts)
    day = local.date()
    if local.hour >= settings.blackout_end_hour:
        day += timedelta(days=1)
    return blackout_end_on(day, rng)
