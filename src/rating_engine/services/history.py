"""Analysis of rating history snapshots."""

from __future__ import annotations

import calendar
from collections import defaultdict
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Literal

from rating_engine.core.clock import ensure_utc
from rating_engine.core.config import HistoryConfig
from rating_engine.core.rounding import round_half_up
from rating_engine.models import (
    DailyRatingSummary,
    MetricTrend,
    PlatformTrends,
    RatingHistoryRecord,
    RatingStats,
    TrendDirection,
)

TRIGGER_NEW_REVIEW = "new_review"
TRIGGER_REVIEW_UPDATED = "review_updated"
TRIGGER_REVIEW_DELETED = "review_deleted"
TRIGGER_REVIEW_RESTORED = "review_restored"
TRIGGER_SCHEDULED = "scheduled"
TRIGGER_MANUAL = "manual"


def rating_change(
    entry: RatingHistoryRecord, previous: RatingHistoryRecord | None
) -> float | None:
    """Weighted-average change since the previous entry, None for the first."""
    if previous is None:
        return None
    return round_half_up(entry.weighted_average - previous.weighted_average, 2)


def quality_score_change(
    entry: RatingHistoryRecord, previous: RatingHistoryRecord | None
) -> float | None:
    """Quality-score change since the previous entry, None for the first."""
    if previous is None:
        return None
    return round_half_up(entry.quality_score - previous.quality_score, 2)


def is_significant_change(change: float | None, threshold: float = 0.2) -> bool:
    return change is not None and abs(change) >= threshold


def history_trend_direction(
    entries: Sequence[RatingHistoryRecord], config: HistoryConfig | None = None
) -> TrendDirection:
    """Direction of the weighted average over the newest history entries.

    Averages the successive deltas of the newest ``trend_window`` entries.

    Args:
        entries: History entries, newest first.
        config: History thresholds.

    Returns:
        "improving" or "declining" beyond the threshold, else "stable".
    """
    config = config or HistoryConfig()
    window = list(entries[: config.trend_window])
    if len(window) < 2:
        return "stable"

    changes = [
        newer.weighted_average - older.weighted_average
        for newer, older in zip(window, window[1:], strict=False)
    ]
    average_change = sum(changes) / len(changes)

    if average_change > config.trend_threshold:
        return "improving"
    if average_change < -config.trend_threshold:
        return "declining"
    return "stable"


def should_record_history(
    trigger: str,
    stats: RatingStats,
    latest: RatingHistoryRecord | None,
    config: HistoryConfig | None = None,
) -> bool:
    """Decide whether a recalculation deserves a history snapshot.

    New reviews and first snapshots are always recorded; otherwise only a
    significant move of the weighted average or quality score is.
    """
    config = config or HistoryConfig()
    if trigger == TRIGGER_NEW_REVIEW or latest is None:
        return True

    rating_delta = abs(stats.weighted_average - latest.weighted_average)
    quality_delta = abs(stats.quality_score - latest.quality_score)
    return (
        rating_delta >= config.significant_rating_change
        or quality_delta >= config.significant_quality_change
    )


# ==================== Platform trends ====================


class TrendPeriod(StrEnum):
    """Look-back window of a platform trend report."""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


_PERIOD_MONTHS = {TrendPeriod.MONTH: 1, TrendPeriod.QUARTER: 3, TrendPeriod.YEAR: 12}

# Movement beyond which a platform metric is improving or declining
PLATFORM_TREND_THRESHOLD = 0.1

TrendMetric = Literal["weighted_average", "quality_score"]


def period_start(period: TrendPeriod, now: datetime) -> datetime:
    """Start of ``period`` counted back from ``now``.

    Months are calendar months. A day missing from the target month is
    clamped to its last day, so March 31 minus one month is February 28/29.
    """
    if period == TrendPeriod.WEEK:
        return now - timedelta(days=7)

    months = now.year * 12 + (now.month - 1) - _PERIOD_MONTHS[period]
    year, month = divmod(months, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def metric_trend(entries: Sequence[RatingHistoryRecord], metric: TrendMetric) -> MetricTrend:
    """Change of ``metric`` from the first to the last entry.

    Args:
        entries: History entries, oldest first.
        metric: "weighted_average" or "quality_score".

    Returns:
        Direction, change and percentage change (2 decimals). The percentage
        is 0 when the first value is not positive.
    """
    if not entries:
        return MetricTrend()

    first = getattr(entries[0], metric)
    last = getattr(entries[-1], metric)
    change = last - first
    percentage_change = change / first * 100 if first > 0 else 0.0

    direction: TrendDirection = "stable"
    if change > PLATFORM_TREND_THRESHOLD:
        direction = "improving"
    elif change < -PLATFORM_TREND_THRESHOLD:
        direction = "declining"

    return MetricTrend(
        direction=direction,
        change=round_half_up(change, 2),
        percentage_change=round_half_up(percentage_change, 2),
    )


def daily_breakdown(entries: Sequence[RatingHistoryRecord]) -> list[DailyRatingSummary]:
    """Count and mean metrics of the entries per UTC day, oldest day first."""
    by_day: dict[date, list[RatingHistoryRecord]] = defaultdict(list)
    for entry in entries:
        by_day[ensure_utc(entry.created_at).date()].append(entry)

    return [
        DailyRatingSummary(
            day=day,
            count=len(day_entries),
            avg_weighted_rating=round_half_up(
                sum(e.weighted_average for e in day_entries) / len(day_entries), 2
            ),
            avg_quality_score=round_half_up(
                sum(e.quality_score for e in day_entries) / len(day_entries), 2
            ),
        )
        for day, day_entries in sorted(by_day.items())
    ]


def platform_trends(
    entries: Sequence[RatingHistoryRecord],
    period: TrendPeriod,
    now: datetime,
    category_id: int | None = None,
) -> PlatformTrends:
    """Summarize history entries recorded since ``period_start(period, now)``.

    Args:
        entries: Entries of the period, oldest first.
        period: Look-back window the entries were selected with.
        now: Report time.
        category_id: Category filter the entries were selected with.

    Returns:
        Trends of the weighted average and quality score with a daily breakdown.
    """
    return PlatformTrends(
        period=str(period),
        start_date=period_start(period, now).date(),
        end_date=now.date(),
        category_id=category_id,
        total_updates=len(entries),
        average_rating_trend=metric_trend(entries, "weighted_average"),
        quality_score_trend=metric_trend(entries, "quality_score"),
        daily_breakdown=daily_breakdown(entries),
    )
