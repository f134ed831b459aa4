"""Computed rating results: stats, reviewer credibility and rankings."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

RATING_VALUES = (1, 2, 3, 4, 5)

TrendDirection = Literal["improving", "declining", "stable"]


class DistributionBucket(BaseModel):
    """How many reviews carry one star value, and their share in percent."""

    count: int = 0
    percentage: float = 0.0


def empty_distribution() -> dict[int, DistributionBucket]:
    """Distribution with a zeroed bucket for every star value."""
    return {value: DistributionBucket() for value in RATING_VALUES}


class RatingTrend(BaseModel):
    """Recent half of the reviews compared against the older half."""

    direction: TrendDirection = "stable"
    slope: float = 0.0
    recent_average: float = 0.0
    previous_average: float = 0.0


class RatingStats(BaseModel):
    """Full rating statistics for one reviewee.

    Attributes:
        user_id: The rated user.
        total_reviews: Number of eligible reviews.
        simple_average: Unweighted mean rating.
        weighted_average: Credibility, recency and completion weighted mean.
        time_weighted_average: Recency-only weighted mean.
        decayed_rating: Weighted average reduced for inactivity.
        quality_score: Composite score, 100 for a perfect baseline, unbounded above.
        rating_distribution: Star value -> bucket.
        trend: Direction of recent ratings.
        last_calculated: When these stats were computed.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    total_reviews: int = 0
    simple_average: float = 0.0
    weighted_average: float = 0.0
    time_weighted_average: float = 0.0
    decayed_rating: float = 0.0
    quality_score: float = 0.0
    rating_distribution: dict[int, DistributionBucket] = Field(default_factory=empty_distribution)
    trend: RatingTrend = Field(default_factory=RatingTrend)
    last_calculated: datetime | None = None

    def for_user(self, user_id: int, calculated_at: datetime) -> RatingStats:
        """Copy re-stamped with a user id and calculation time."""
        return self.model_copy(update={"user_id": user_id, "last_calculated": calculated_at})

    def comparable(self) -> dict[str, Any]:
        """Field values without the calculation timestamp."""
        return self.model_dump(exclude={"last_calculated"})


# Shape returned for users without eligible reviews
EMPTY_RATING_STATS = RatingStats(user_id=0)


class ReviewerCredibility(BaseModel):
    """How much weight a reviewer's reviews deserve.

    Attributes:
        average_rating: Mean rating the reviewer has received themselves.
        review_count: Number of reviews the reviewer has written.
        account_age_days: Age of the reviewer's account.
    """

    model_config = ConfigDict(frozen=True)

    average_rating: float = 3.0
    review_count: int = 0
    account_age_days: int = 0


class RankingResult(BaseModel):
    """A user's position among qualified peers."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    position: int | None = None
    total_users: int = 0
    percentile: float | None = None
    quality_score: float = 0.0
    category_id: int | None = None


class MetricTrend(BaseModel):
    """First-to-last movement of one history metric over a period."""

    model_config = ConfigDict(frozen=True)

    direction: TrendDirection = "stable"
    change: float = 0.0
    percentage_change: float = 0.0


class DailyRatingSummary(BaseModel):
    """Rating history snapshots recorded on one day."""

    model_config = ConfigDict(frozen=True)

    day: date
    count: int
    avg_weighted_rating: float
    avg_quality_score: float


class PlatformTrends(BaseModel):
    """Platform-wide rating movement over a period.

    Attributes:
        period: "week", "month", "quarter" or "year".
        start_date: First day of the period.
        end_date: Day the report was made.
        category_id: Skill category filter, None for every user.
        total_updates: History snapshots in the period.
        average_rating_trend: Movement of the weighted average.
        quality_score_trend: Movement of the quality score.
        daily_breakdown: Per-day summaries, oldest first.
    """

    model_config = ConfigDict(frozen=True)

    period: str
    start_date: date
    end_date: date
    category_id: int | None = None
    total_updates: int = 0
    average_rating_trend: MetricTrend = Field(default_factory=MetricTrend)
    quality_score_trend: MetricTrend = Field(default_factory=MetricTrend)
    daily_breakdown: list[DailyRatingSummary] = Field(default_factory=list)
