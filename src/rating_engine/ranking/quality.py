"""Quality score combining rating level, volume, consistency and recency."""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime

from rating_engine.core.clock import days_between
from rating_engine.models import Review

MAX_RATING = 5.0
COUNT_DIVISOR = 50
MAX_COUNT_MULTIPLIER = 1.5
STDDEV_SCALE = 2.0
CONSISTENCY_BASE = 0.8
CONSISTENCY_RANGE = 0.4
RECENCY_HORIZON_DAYS = 365
RECENCY_BASE = 0.9
RECENCY_RANGE = 0.2


def rating_consistency(reviews: Sequence[Review]) -> float:
    """Consistency in [0, 1] from the population standard deviation.

    consistency = max(0, 1 - stddev / 2), 1.0 with fewer than 2 reviews.
    """
    if len(reviews) < 2:
        return 1.0

    ratings = [r.rating for r in reviews]
    mean = sum(ratings) / len(ratings)
    variance = sum((rating - mean) ** 2 for rating in ratings) / len(ratings)
    return max(0.0, 1.0 - math.sqrt(variance) / STDDEV_SCALE)


def recency_score(reviews: Sequence[Review], now: datetime) -> float:
    """Score in [0, 1] falling linearly to 0 a year after the latest review.

    Args:
        reviews: Eligible reviews, newest first.
        now: Reference time.

    Returns:
        max(0, 1 - days_since_latest / 365), 0.0 for no reviews.
    """
    if not reviews:
        return 0.0
    days = days_between(reviews[0].created_at, now)
    return max(0.0, 1.0 - days / RECENCY_HORIZON_DAYS)


def quality_score(reviews: Sequence[Review], weighted_avg: float, now: datetime) -> float:
    """Composite quality score.

    score = (weighted / 5 * 100)
            * min(1 + n / 50, 1.5)
            * (0.8 + consistency * 0.4)
            * (0.9 + recency * 0.2)

    A perfect baseline is 100, but many consistent recent reviews push the
    score up to 1.5 * 1.2 * 1.1 = 1.98 times that. The score is not capped.

    Args:
        reviews: Eligible reviews, newest first.
        weighted_avg: Unrounded weighted average of the same reviews.
        now: Reference time.

    Returns:
        Unrounded score, 0.0 for no reviews.
    """
    if not reviews:
        return 0.0

    base_score = (weighted_avg / MAX_RATING) * 100
    count_multiplier = min(1.0 + len(reviews) / COUNT_DIVISOR, MAX_COUNT_MULTIPLIER)
    consistency_multiplier = CONSISTENCY_BASE + rating_consistency(reviews) * CONSISTENCY_RANGE
    recency_multiplier = RECENCY_BASE + recency_score(reviews, now) * RECENCY_RANGE
    return base_score * count_multiplier * consistency_multiplier * recency_multiplier
