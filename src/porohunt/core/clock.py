"""Time helpers.

Timestamps are stored as naive UTC datetimes. Anything that depends on the
wall clock of the community (blackout hours, "today") goes through
``to_local`` using the configured timezone.
"""

from datetime import date, datetime, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from porohunt.config import settings


@lru_cache
def local_zone(name: str | None = None) -> ZoneInfo:
    """Timezone used for local calendar math."""
    return ZoneInfo(name or settings.timezone)


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_local(ts: datetime) -> datetime:
    """Convert a stored (naive UTC) timestamp to an aware local datetime."""
    return ts.replace(tzinfo=timezone.utc).astimezone(local_zone())


def from_local(dt: datetime) -> datetime:
    """Convert a local datetime back to the naive UTC storage form.

    Naive input is interpreted as local wall-clock time.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=local_zone())
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def local_date(ts: datetime) -> date:
    return to_local(ts).date()


def local_day(ts: datetime) -> str:
    """Local calendar day key, e.g. ``2024-05-01``."""
    return local_date(ts).isoformat()
