"""Plain-text reports of rating stats, rankings and leaderboards."""

from __future__ import annotations

from collections.abc import Sequence

from tabulate import tabulate

from rating_engine.models import (
    PlatformTrends,
    RankingResult,
    RatingHistoryRecord,
    RatingStats,
    UserRecord,
)
from rating_engine.services.history import (
    is_significant_change,
    quality_score_change,
    rating_change,
)


def format_stats_table(stats: RatingStats, is_rating_eligible: bool | None = None) -> str:
    """Render the headline metrics of ``stats`` as a two-column table.

    Args:
        stats: Computed rating stats.
        is_rating_eligible: Eligibility flag from the user row, omitted when None.

    Returns:
        Markdown table.
    """
    rows: list[tuple[str, object]] = [
        ("Total Reviews", stats.total_reviews),
        ("Simple Average", f"{stats.simple_average:.2f}"),
        ("Weighted Average", f"{stats.weighted_average:.2f}"),
        ("Time Weighted Average", f"{stats.time_weighted_average:.2f}"),
        ("Decayed Rating", f"{stats.decayed_rating:.2f}"),
        ("Quality Score", f"{stats.quality_score:.2f}"),
        ("Trend Direction", stats.trend.direction),
    ]
    if is_rating_eligible is not None:
        rows.append(("Rating Eligible", "yes" if is_rating_eligible else "no"))

    return tabulate(rows, headers=("Metric", "Value"), tablefmt="github")


def format_distribution(stats: RatingStats) -> str:
    """Star value histogram, highest value first."""
    rows = [
        (f"{value} stars", bucket.count, f"{bucket.percentage:.1f}%")
        for value, bucket in sorted(stats.rating_distribution.items(), reverse=True)
    ]
    return tabulate(rows, headers=("Rating", "Count", "Share"), tablefmt="github")


def format_ranking(ranking: RankingResult) -> str:
    scope = f"category {ranking.category_id}" if ranking.category_id is not None else "overall"
    if ranking.position is None:
        position = "unranked"
        percentile = "-"
    else:
        position = f"{ranking.position} of {ranking.total_users}"
        percentile = f"{ranking.percentile:.1f}"

    rows = [
        ("Scope", scope),
        ("Position", position),
        ("Percentile", percentile),
        ("Quality Score", f"{ranking.quality_score:.2f}"),
    ]
    return tabulate(rows, headers=("Metric", "Value"), tablefmt="github")


def format_leaderboard(users: Sequence[UserRecord], title: str = "Top Rated Users") -> str:
    """Leaderboard of users from their cached rating summary.

    Args:
        users: User records, best first.
        title: Report title (markdown heading).

    Returns:
        Markdown report content.
    """
    rows = [
        (
            position,
            user.id,
            user.name,
            f"{user.cached_quality_score:.2f}",
            f"{user.cached_weighted_rating:.2f}",
            user.cached_total_reviews,
        )
        for position, user in enumerate(users, start=1)
    ]
    headers = ("#", "User", "Name", "Quality", "Weighted", "Reviews")

    lines = [f"# {title}", ""]
    if rows:
        lines.append(tabulate(rows, headers=headers, tablefmt="github"))
    else:
        lines.append("No rating-eligible users yet.")
    return "\n".join(lines)


def format_history(entries: Sequence[RatingHistoryRecord]) -> str:
    """Rating history table with the change against each previous entry.

    Args:
        entries: History entries, newest first.

    Returns:
        Markdown table.
    """
    rows = []
    for index, entry in enumerate(entries):
        previous = entries[index + 1] if index + 1 < len(entries) else None
        change = rating_change(entry, previous)
        quality_change = quality_score_change(entry, previous)
        rows.append(
            (
                entry.created_at.strftime("%Y-%m-%d %H:%M"),
                entry.calculation_trigger or "-",
                f"{entry.weighted_average:.2f}",
                _signed(change, mark=is_significant_change(change)),
                f"{entry.quality_score:.2f}",
                _signed(quality_change),
            )
        )
    headers = ("When", "Trigger", "Weighted", "Change", "Quality", "Q Change")
    return tabulate(rows, headers=headers, tablefmt="github")


def _signed(change: float | None, mark: bool = False) -> str:
    if change is None:
        return "-"
    return f"{change:+.2f}" + ("*" if mark else "")


def format_trends(trends: PlatformTrends) -> str:
    """Platform trend report: metric movement then the daily breakdown.

    Args:
        trends: Computed platform trends.

    Returns:
        Markdown report content.
    """
    scope = f"category {trends.category_id}" if trends.category_id is not None else "all users"
    lines = [
        f"# Rating Trends ({trends.period}, {scope})",
        "",
        f"{trends.start_date.isoformat()} to {trends.end_date.isoformat()}, "
        f"{trends.total_updates} updates",
        "",
    ]

    metric_rows = [
        (name, trend.direction, _signed(trend.change), f"{trend.percentage_change:+.2f}%")
        for name, trend in (
            ("Weighted Average", trends.average_rating_trend),
            ("Quality Score", trends.quality_score_trend),
        )
    ]
    lines.append(
        tabulate(metric_rows, headers=("Metric", "Trend", "Change", "Change %"), tablefmt="github")
    )

    if trends.daily_breakdown:
        day_rows = [
            (
                summary.day.isoformat(),
                summary.count,
                f"{summary.avg_weighted_rating:.2f}",
                f"{summary.avg_quality_score:.2f}",
            )
            for summary in trends.daily_breakdown
        ]
        lines.extend(
            [
                "",
                "## Daily Breakdown",
                "",
                tabulate(
                    day_rows,
                    headers=("Day", "Updates", "Avg Weighted", "Avg Quality"),
                    tablefmt="github",
                ),
            ]
        )
    return "\n".join(lines)
