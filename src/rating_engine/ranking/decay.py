"""Inactivity decay applied to a reviewee's weighted rating."""

from __future__ import annotations

from datetime import datetime

from rating_engine.core.clock import days_between

ACTIVITY_GRACE_DAYS = 30
ACTIVITY_DECAY_HORIZON_DAYS = 365
ACTIVITY_DECAY_FACTOR = 0.3
DEFAULT_INACTIVE_DAYS = 365


def days_since_activity(last_activity: datetime | None, now: datetime) -> int:
    """Days since the user's last activity, 365 when none is recorded."""
    if last_activity is None:
        return DEFAULT_INACTIVE_DAYS
    return days_between(last_activity, now)


def decay_factor(inactive_days: int) -> float:
    """Multiplier for a user inactive for ``inactive_days``.

    1.0 within the 30 day grace period, then falling linearly over a year to
    a floor of 0.7:

    factor = 1 - min((days - 30) / 365, 1) * 0.3
    """
    if inactive_days <= ACTIVITY_GRACE_DAYS:
        return 1.0
    overdue = (inactive_days - ACTIVITY_GRACE_DAYS) / ACTIVITY_DECAY_HORIZON_DAYS
    return 1.0 - min(overdue, 1.0) * ACTIVITY_DECAY_FACTOR


def apply_activity_decay(rating: float, last_activity: datetime | None, now: datetime) -> float:
    """Soften ``rating`` for users inactive beyond the grace period.

    Args:
        rating: Unrounded weighted average.
        last_activity: Latest activity of the reviewee, if any.
        now: Reference time.

    Returns:
        Decayed rating, never below 70% of ``rating``.
    """
    return rating * decay_factor(days_since_activity(last_activity, now))
