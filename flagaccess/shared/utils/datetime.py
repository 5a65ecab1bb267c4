"""UTC time helpers.

Event timestamps and stored timestamps are always timezone-aware UTC;
operation durations come from the monotonic clock instead.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime (used for activity timestamps)."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize a datetime read from storage to aware UTC.

    SQLite hands back naive values, which are taken to be UTC already;
    aware values from PostgreSQL are converted. None passes through.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def elapsed_ms(started: float, ended: float) -> int:
    """Milliseconds between two time.perf_counter() readings, never negative."""
    return max(0, round((ended - started) * 1000))
