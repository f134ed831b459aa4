"""Assemble full rating stats from the individual stages."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime

from rating_engine.core.rounding import round_half_up
from rating_engine.models import EMPTY_RATING_STATS, RatingStats, Review, ReviewerCredibility
from rating_engine.ranking.aggregation import (
    rating_distribution,
    rating_trend,
    simple_average,
    time_weighted_average,
    weighted_average,
)
from rating_engine.ranking.decay import apply_activity_decay
from rating_engine.ranking.quality import quality_score


def compute_rating_stats(
    user_id: int,
    reviews: Sequence[Review],
    credibilities: Mapping[int, ReviewerCredibility],
    last_activity: datetime | None,
    now: datetime,
) -> RatingStats:
    """Compute rating stats for one reviewee.

    Every value is computed at full precision and rounded only here.

    Args:
        user_id: The reviewee.
        reviews: The reviewee's eligible reviews, newest first.
        credibilities: Reviewer id -> credibility for the review authors.
        last_activity: Reviewee's latest activity, if any.
        now: Reference time for every age in the computation.

    Returns:
        RatingStats, the empty shape when there are no reviews.
    """
    if not reviews:
        return EMPTY_RATING_STATS.for_user(user_id, now)

    weighted = weighted_average(reviews, credibilities, now)

    return RatingStats(
        user_id=user_id,
        total_reviews=len(reviews),
        simple_average=round_half_up(simple_average(reviews), 2),
        weighted_average=round_half_up(weighted, 2),
        time_weighted_average=round_half_up(time_weighted_average(reviews, now), 2),
        decayed_rating=round_half_up(apply_activity_decay(weighted, last_activity, now), 2),
        quality_score=round_half_up(quality_score(reviews, weighted, now), 2),
        rating_distribution=rating_distribution(reviews),
        trend=rating_trend(reviews),
        last_calculated=now,
    )
