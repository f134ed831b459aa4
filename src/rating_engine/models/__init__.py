from .rating_history import RatingHistoryRecord
from .review import JOB_STATUS_COMPLETED, Review, ReviewRecord
from .stats import (
    EMPTY_RATING_STATS,
    RATING_VALUES,
    DailyRatingSummary,
    DistributionBucket,
    MetricTrend,
    PlatformTrends,
    RankingResult,
    RatingStats,
    RatingTrend,
    ReviewerCredibility,
    TrendDirection,
    empty_distribution,
)
from .user import JobRecord, MessageRecord, SkillRecord, UserRecord

__all__ = [
    "EMPTY_RATING_STATS",
    "JOB_STATUS_COMPLETED",
    "RATING_VALUES",
    "DailyRatingSummary",
    "DistributionBucket",
    "JobRecord",
    "MessageRecord",
    "MetricTrend",
    "PlatformTrends",
    "RankingResult",
    "RatingHistoryRecord",
    "RatingStats",
    "RatingTrend",
    "Review",
    "ReviewRecord",
    "ReviewerCredibility",
    "SkillRecord",
    "TrendDirection",
    "UserRecord",
    "empty_distribution",
]
