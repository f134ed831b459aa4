"""Review table and the read-only review value the engine computes over."""

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

JOB_STATUS_COMPLETED = "completed"


class ReviewRecord(SQLModel, table=True):
    """A 1-5 star review left by one user for another after a job."""

    __tablename__ = "reviews"
    __table_args__ = (CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating"),)

    id: int | None = Field(default=None, primary_key=True)
    job_id: int | None = Field(default=None, foreign_key="jobs.id")
    reviewer_id: int = Field(foreign_key="users.id", index=True)
    reviewee_id: int = Field(foreign_key="users.id", index=True)
    rating: int = Field(ge=1, le=5)
    is_public: bool = Field(default=True, index=True)
    is_flagged: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class Review:
    """A review as seen by the rating stages.

    Attributes:
        id: Review identifier.
        rating: Star rating, 1-5.
        reviewer_id: User who wrote the review.
        reviewee_id: User being rated.
        created_at: Creation time (timezone-aware).
        is_public: Whether the review is published.
        is_flagged: Whether moderation has flagged it.
        job_status: Status of the associated job, None without a job.
    """

    id: int
    rating: int
    reviewer_id: int
    reviewee_id: int
    created_at: datetime
    is_public: bool = True
    is_flagged: bool = False
    job_status: str | None = None

    @property
    def is_eligible(self) -> bool:
        """Public and unflagged reviews count towards ratings."""
        return self.is_public and not self.is_flagged

    @property
    def job_completed(self) -> bool:
        return self.job_status == JOB_STATUS_COMPLETED
