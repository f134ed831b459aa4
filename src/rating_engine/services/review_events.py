"""Keep rating caches in step with review changes."""

from __future__ import annotations

from collections.abc import Collection

import structlog
from sqlalchemy.exc import SQLAlchemyError

from rating_engine.core.errors import UserNotFoundError
from rating_engine.models import RatingStats, Review
from rating_engine.services.history import (
    TRIGGER_NEW_REVIEW,
    TRIGGER_REVIEW_DELETED,
    TRIGGER_REVIEW_RESTORED,
    TRIGGER_REVIEW_UPDATED,
    should_record_history,
)
from rating_engine.services.rating_service import RatingService
from rating_engine.services.storage import (
    RatingHistoryRepository,
    ReviewRepository,
    UserRepository,
)

logger = structlog.get_logger()

# Review fields whose change affects rating stats
RATING_FIELDS = frozenset({"rating", "is_public", "is_flagged"})


class ReviewChangeHandler:
    """Invalidate and refresh ratings when a review is written or moderated.

    Each event invalidates the reviewee's cache, recomputes their stats,
    stores the summary on the user row and snapshots the stats into the
    rating history when the change is significant. The reviewer's cached
    credibility is dropped too when they have received reviews themselves.
    """

    def __init__(
        self,
        service: RatingService,
        users: UserRepository,
        reviews: ReviewRepository,
        history: RatingHistoryRepository,
    ) -> None:
        """Initialize handler.

        Args:
            service: Rating service whose cache is maintained.
            users: User repository for the cached summary.
            reviews: Review repository.
            history: Rating history repository.
        """
        self.service = service
        self.users = users
        self.reviews = reviews
        self.history = history

    def review_created(self, review: Review) -> RatingStats | None:
        return self._refresh(review, TRIGGER_NEW_REVIEW)

    def review_updated(self, review: Review, changed_fields: Collection[str]) -> RatingStats | None:
        """Refresh only when a rating-related field changed."""
        if not RATING_FIELDS.intersection(changed_fields):
            logger.debug("review_update_ignored", review_id=review.id)
            return None
        return self._refresh(review, TRIGGER_REVIEW_UPDATED)

    def review_deleted(self, review: Review) -> RatingStats | None:
        return self._refresh(review, TRIGGER_REVIEW_DELETED)

    def review_restored(self, review: Review) -> RatingStats | None:
        return self._refresh(review, TRIGGER_REVIEW_RESTORED)

    def _refresh(self, review: Review, trigger: str) -> RatingStats | None:
        """Recompute the reviewee's rating after a review change.

        Returns:
            Fresh stats, or None when the refresh failed (the failure is logged).
        """
        try:
            self.service.invalidate_user_cache(review.reviewee_id)
            if self.reviews.has_received_reviews(review.reviewer_id):
                self.service.invalidate_user_cache(review.reviewer_id)

            stats = self.service.calculate_user_rating_stats(review.reviewee_id, use_cache=False)
            self.users.update_rating_cache(review.reviewee_id, stats)

            latest = self.history.latest(review.reviewee_id)
            if should_record_history(trigger, stats, latest, self.service.config.history):
                self.history.create_from_stats(review.reviewee_id, stats, trigger)
        except (SQLAlchemyError, UserNotFoundError) as e:
            logger.error(
                "rating_refresh_failed",
                review_id=review.id,
                reviewee_id=review.reviewee_id,
                trigger=trigger,
                error=str(e),
            )
            return None

        logger.info(
            "rating_refreshed",
            review_id=review.id,
            reviewee_id=review.reviewee_id,
            trigger=trigger,
            weighted_average=stats.weighted_average,
        )
        return stats
