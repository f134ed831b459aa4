"""Time helpers shared by the rating stages."""

from __future__ import annotations

from datetime import UTC, datetime

SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite returns them without tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def days_between(earlier: datetime, now: datetime) -> int:
    """Whole days elapsed from ``earlier`` to ``now``, never negative."""
    elapsed = (ensure_utc(now) - ensure_utc(earlier)).total_seconds()
    if elapsed <= 0:
        return 0
    return int(elapsed // SECONDS_PER_DAY)
