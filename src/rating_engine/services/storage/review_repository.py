"""Database access to review records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlmodel import Session, col, func, select

from rating_engine.core.clock import ensure_utc
from rating_engine.models import JobRecord, Review, ReviewRecord, SkillRecord

from .repository import SessionRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine


def _to_review(record: ReviewRecord, job_status: str | None) -> Review:
    """Convert a review row and its job status to a Review value."""
    return Review(
        id=record.id or 0,
        rating=record.rating,
        reviewer_id=record.reviewer_id,
        reviewee_id=record.reviewee_id,
        created_at=ensure_utc(record.created_at),
        is_public=record.is_public,
        is_flagged=record.is_flagged,
        job_status=job_status,
    )


class ReviewRepository(SessionRepository):
    """Query review records for the rating engine."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    def _find_eligible(self, *criteria: Any) -> list[Review]:
        def _get(session: Session) -> list[Review]:
            statement = (
                select(ReviewRecord, JobRecord.status)
                .outerjoin(JobRecord, col(ReviewRecord.job_id) == col(JobRecord.id))
                .where(
                    *criteria,
                    col(ReviewRecord.is_public).is_(True),
                    col(ReviewRecord.is_flagged).is_(False),
                )
                .order_by(col(ReviewRecord.created_at).desc(), col(ReviewRecord.id).desc())
            )
            return [_to_review(record, status) for record, status in session.exec(statement)]

        return self._run_session(_get)

    def find_eligible_reviews_for_reviewee(self, user_id: int) -> list[Review]:
        """Public, unflagged reviews the user has received, newest first."""
        return self._find_eligible(col(ReviewRecord.reviewee_id) == user_id)

    def find_eligible_reviews_by_reviewer(self, user_id: int) -> list[Review]:
        """Public, unflagged reviews the user has written, newest first."""
        return self._find_eligible(col(ReviewRecord.reviewer_id) == user_id)

    def find_qualified_reviewees(
        self, min_reviews: int, category_id: int | None = None
    ) -> list[int]:
        """Ids of users with at least ``min_reviews`` public reviews."""

        def _get(session: Session) -> list[int]:
            review_count = func.count(col(ReviewRecord.id))
            statement = (
                select(ReviewRecord.reviewee_id)
                .where(col(ReviewRecord.is_public).is_(True))
                .group_by(col(ReviewRecord.reviewee_id))
                .having(review_count >= min_reviews)
                .order_by(col(ReviewRecord.reviewee_id))
            )
            if category_id is not None:
                skilled = select(SkillRecord.user_id).where(SkillRecord.category_id == category_id)
                statement = statement.where(col(ReviewRecord.reviewee_id).in_(skilled))
            return list(session.exec(statement).all())

        return self._run_session(_get)

    def has_received_reviews(self, user_id: int) -> bool:
        """Whether any review names the user as reviewee."""

        def _get(session: Session) -> bool:
            statement = select(ReviewRecord.id).where(ReviewRecord.reviewee_id == user_id).limit(1)
            return session.exec(statement).first() is not None

        return self._run_session(_get)

    def get_review(self, review_id: int) -> Review | None:
        """Get a single review regardless of visibility."""

        def _get(session: Session) -> Review | None:
            statement = (
                select(ReviewRecord, JobRecord.status)
                .outerjoin(JobRecord, col(ReviewRecord.job_id) == col(JobRecord.id))
                .where(ReviewRecord.id == review_id)
            )
            row = session.exec(statement).first()
            if row is None:
                return None
            record, status = row
            return _to_review(record, status)

        return self._run_session(_get)
