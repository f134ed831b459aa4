"""Store protocols consumed by the rating service and shared session helpers."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar, runtime_checkable

from sqlmodel import Session

from rating_engine.models import Review

if TYPE_CHECKING:
    from sqlalchemy import Engine

T = TypeVar("T")


@runtime_checkable
class ReviewStore(Protocol):
    """Source of review data for rating computation."""

    def find_eligible_reviews_for_reviewee(self, user_id: int) -> list[Review]:
        """Public, unflagged reviews the user has received, newest first."""
        ...

    def find_eligible_reviews_by_reviewer(self, user_id: int) -> list[Review]:
        """Public, unflagged reviews the user has written, newest first."""
        ...

    def find_qualified_reviewees(
        self, min_reviews: int, category_id: int | None = None
    ) -> list[int]:
        """Ids of users with at least ``min_reviews`` public reviews.

        Args:
            min_reviews: Minimum number of public reviews received.
            category_id: Only users holding a skill in this category.

        Returns:
            User ids in ascending order.
        """
        ...


@runtime_checkable
class UserStore(Protocol):
    """Source of user account and activity data."""

    def get_last_activity_timestamp(self, user_id: int) -> datetime | None:
        """Latest of profile update, job, skill and sent-message activity."""
        ...

    def get_account_created_at(self, user_id: int) -> datetime | None:
        """Account creation time, None for unknown users."""
        ...


class SessionRepository(Generic[T]):
    """Run SQLModel session work against an engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _run_session(self, fn: Callable[[Session], T]) -> T:
        """Run a function inside a fresh Session."""
        with Session(self._engine) as session:
            return fn(session)
