"""Ordering of qualified users by quality score."""

from __future__ import annotations

from collections.abc import Mapping

from rating_engine.core.rounding import round_half_up


def sort_by_quality(scores: Mapping[int, float]) -> list[tuple[int, float]]:
    """Sort users by quality score descending, ties by user id ascending.

    Args:
        scores: User id -> quality score.

    Returns:
        List of (user_id, quality_score) tuples, best first.
    """
    return sorted(scores.items(), key=lambda item: (-item[1], item[0]))


def find_position(leaderboard: list[tuple[int, float]], user_id: int) -> int | None:
    """1-based position of ``user_id`` on the leaderboard, None if absent."""
    for index, (candidate_id, _score) in enumerate(leaderboard, start=1):
        if candidate_id == user_id:
            return index
    return None


def percentile(position: int | None, total: int) -> float | None:
    """Share of users ranked below ``position``, in percent with 1 decimal.

    percentile = (total - position) / total * 100
    """
    if position is None or total <= 0:
        return None
    return round_half_up((total - position) / total * 100, 1)
