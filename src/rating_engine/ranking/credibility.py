"""Reviewer credibility from the reviewer's own review history."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from rating_engine.core.clock import days_between
from rating_engine.models import Review, ReviewerCredibility

DEFAULT_AVERAGE_RATING = 3.0


def compute_reviewer_credibility(
    received: Sequence[Review],
    given: Sequence[Review],
    account_created_at: datetime | None,
    now: datetime,
) -> ReviewerCredibility:
    """Derive a reviewer's credibility.

    Args:
        received: Eligible reviews the reviewer has received.
        given: Eligible reviews the reviewer has written.
        account_created_at: Reviewer's account creation time, if known.
        now: Reference time for the account age.

    Returns:
        Credibility with a 3.0 average and zero count when there is no data.
    """
    if received:
        average = sum(r.rating for r in received) / len(received)
    else:
        average = DEFAULT_AVERAGE_RATING

    age_days = days_between(account_created_at, now) if account_created_at else 0

    return ReviewerCredibility(
        average_rating=average,
        review_count=len(given),
        account_age_days=age_days,
    )
