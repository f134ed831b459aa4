"""Rating computation stages.

Pure functions turning a reviewee's reviews into weighted averages, a
distribution, a trend, a quality score and an inactivity-decayed rating,
plus the ordering used for percentile rankings.
"""

from rating_engine.ranking.aggregation import (
    rating_distribution,
    rating_trend,
    select_eligible,
    simple_average,
    time_weighted_average,
    weighted_average,
)
from rating_engine.ranking.credibility import compute_reviewer_credibility
from rating_engine.ranking.decay import apply_activity_decay, decay_factor, days_since_activity
from rating_engine.ranking.positions import find_position, percentile, sort_by_quality
from rating_engine.ranking.quality import quality_score, rating_consistency, recency_score
from rating_engine.ranking.stats import compute_rating_stats
from rating_engine.ranking.weights import (
    completion_weight,
    credibility_weight,
    recency_weight,
    review_weight,
    time_weight,
)

__all__ = [
    "apply_activity_decay",
    "completion_weight",
    "compute_rating_stats",
    "compute_reviewer_credibility",
    "credibility_weight",
    "days_since_activity",
    "decay_factor",
    "find_position",
    "percentile",
    "quality_score",
    "rating_consistency",
    "rating_distribution",
    "rating_trend",
    "recency_score",
    "recency_weight",
    "review_weight",
    "select_eligible",
    "simple_average",
    "sort_by_quality",
    "time_weight",
    "time_weighted_average",
    "weighted_average",
]
