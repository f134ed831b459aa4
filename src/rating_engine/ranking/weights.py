"""Per-review weight functions for the rating averages."""

from __future__ import annotations

from datetime import datetime

from rating_engine.core.clock import days_between
from rating_engine.models import Review, ReviewerCredibility

NEUTRAL_RATING = 3.0
REVIEWER_CREDIBILITY_WEIGHT = 0.2
REVIEW_COUNT_DIVISOR = 10
REVIEW_COUNT_WEIGHT = 0.5  # cap on the review-count bonus
RECENCY_WEIGHT = 0.3
RECENCY_DECAY_RATE = 0.01
COMPLETED_JOB_WEIGHT = 1.1
TIME_DECAY_RATE = 0.02


def credibility_weight(credibility: ReviewerCredibility) -> float:
    """Weight from the reviewer's own standing.

    credibility = 1 + (avg - 3.0) * 0.2 + min(count / 10, 0.5)

    Args:
        credibility: Reviewer's received average and given-review count.

    Returns:
        Weight, 0.6 for a 1-star reviewer with no reviews up to 1.9.
    """
    standing = (credibility.average_rating - NEUTRAL_RATING) * REVIEWER_CREDIBILITY_WEIGHT
    volume = min(credibility.review_count / REVIEW_COUNT_DIVISOR, REVIEW_COUNT_WEIGHT)
    return 1.0 + standing + volume


def recency_weight(days_since_review: int) -> float:
    """Mild boost for recent reviews, tending to 1.0 but never below it.

    recency = 1 + (1 / (1 + days * 0.01)) * 0.3
    """
    return 1.0 + (1.0 / (1.0 + days_since_review * RECENCY_DECAY_RATE)) * RECENCY_WEIGHT


def completion_weight(review: Review) -> float:
    """Reviews attached to a completed job count 10% more."""
    return COMPLETED_JOB_WEIGHT if review.job_completed else 1.0


def review_weight(review: Review, credibility: ReviewerCredibility, now: datetime) -> float:
    """Composite weight of a review in the weighted average.

    Args:
        review: The review being weighted.
        credibility: Credibility of the review's author.
        now: Reference time for the review's age.

    Returns:
        credibility * recency * completion, always positive.
    """
    days = days_between(review.created_at, now)
    return credibility_weight(credibility) * recency_weight(days) * completion_weight(review)


def time_weight(days_since_review: int) -> float:
    """Steeper recency-only decay used by the time-weighted average.

    time = 1 / (1 + days * 0.02)
    """
    return 1.0 / (1.0 + days_since_review * TIME_DECAY_RATE)
