"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system are timezone-aware UTC. Rate-limit
windows use integer epoch milliseconds (epoch_ms).
"""

import time
from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def epoch_ms() -> int:
    """Current wall-clock time as integer milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone (SQLite returns naive values)
    - If aware, converts to UTC

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def days_ago(days: int, now: datetime | None = None) -> datetime:
    """UTC cutoff ``days`` before now (or before the given instant)."""
    return (now or utc_now()) - timedelta(days=days)


def minutes_ago(minutes: int, now: datetime | None = None) -> datetime:
    """UTC cutoff ``minutes`` before now (or before the given instant)."""
    return (now or utc_now()) - timedelta(minutes=minutes)
