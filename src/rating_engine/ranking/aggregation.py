"""Rating averages, distribution and trend over one reviewee's reviews.

All functions expect the eligible review set ordered newest first (see
``select_eligible``) and return unrounded values unless stated otherwise.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from rating_engine.core.clock import days_between, ensure_utc
from rating_engine.core.rounding import round_half_up
from rating_engine.models import (
    RATING_VALUES,
    DistributionBucket,
    RatingTrend,
    Review,
    ReviewerCredibility,
    empty_distribution,
)
from rating_engine.ranking.weights import review_weight, time_weight

TREND_THRESHOLD = 0.2

_DEFAULT_CREDIBILITY = ReviewerCredibility()


def select_eligible(reviews: Iterable[Review]) -> list[Review]:
    """Keep public, unflagged reviews and order them newest first."""
    eligible = [r for r in reviews if r.is_eligible]
    return sorted(eligible, key=lambda r: ensure_utc(r.created_at), reverse=True)


def simple_average(reviews: Sequence[Review]) -> float:
    """Arithmetic mean of the ratings, 0.0 for no reviews."""
    if not reviews:
        return 0.0
    return sum(r.rating for r in reviews) / len(reviews)


def weighted_average(
    reviews: Sequence[Review],
    credibilities: Mapping[int, ReviewerCredibility],
    now: datetime,
) -> float:
    """Mean rating weighted by reviewer credibility, recency and job completion.

    Args:
        reviews: Eligible reviews.
        credibilities: Reviewer id -> credibility. Missing reviewers get defaults.
        now: Reference time for review ages.

    Returns:
        sum(rating * weight) / sum(weight), 0.0 for no reviews.
    """
    total_weighted = 0.0
    total_weight = 0.0
    for review in reviews:
        credibility = credibilities.get(review.reviewer_id, _DEFAULT_CREDIBILITY)
        weight = review_weight(review, credibility, now)
        total_weighted += review.rating * weight
        total_weight += weight
    return total_weighted / total_weight if total_weight > 0 else 0.0


def time_weighted_average(reviews: Sequence[Review], now: datetime) -> float:
    """Mean rating weighted by recency alone."""
    total_weighted = 0.0
    total_weight = 0.0
    for review in reviews:
        weight = time_weight(days_between(review.created_at, now))
        total_weighted += review.rating * weight
        total_weight += weight
    return total_weighted / total_weight if total_weight > 0 else 0.0


def rating_distribution(reviews: Sequence[Review]) -> dict[int, DistributionBucket]:
    """Count and percentage (1 decimal) of reviews per star value."""
    if not reviews:
        return empty_distribution()

    counts = dict.fromkeys(RATING_VALUES, 0)
    for review in reviews:
        counts[review.rating] += 1

    total = len(reviews)
    return {
        value: DistributionBucket(count=count, percentage=round_half_up(count / total * 100, 1))
        for value, count in counts.items()
    }


def rating_trend(reviews: Sequence[Review]) -> RatingTrend:
    """Compare the newer half of the reviews against the older half.

    The split is at floor(n / 2); with an odd count the older half is larger.
    A slope beyond +/-0.2 stars marks the trend improving or declining.

    Args:
        reviews: Eligible reviews, newest first.

    Returns:
        Trend with slope and half averages rounded to 2 decimals.
    """
    if len(reviews) < 2:
        single = float(reviews[0].rating) if reviews else 0.0
        return RatingTrend(
            direction="stable", slope=0.0, recent_average=single, previous_average=single
        )

    midpoint = len(reviews) // 2
    recent_average = simple_average(reviews[:midpoint])
    previous_average = simple_average(reviews[midpoint:])
    slope = recent_average - previous_average

    direction = "stable"
    if slope > TREND_THRESHOLD:
        direction = "improving"
    elif slope < -TREND_THRESHOLD:
        direction = "declining"

    return RatingTrend(
        direction=direction,
        slope=round_half_up(slope, 2),
        recent_average=round_half_up(recent_average, 2),
        previous_average=round_half_up(previous_average, 2),
    )
