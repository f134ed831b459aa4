"""Database access to users, their activity and cached rating summaries."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog
from sqlmodel import Session, col, func, or_, select

from rating_engine.core.clock import ensure_utc, utc_now
from rating_engine.core.errors import UserNotFoundError
from rating_engine.models import (
    JobRecord,
    MessageRecord,
    RatingStats,
    SkillRecord,
    UserRecord,
)

from .repository import SessionRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()

RATING_ELIGIBLE_MIN_REVIEWS = 3
DEFAULT_CACHE_MAX_AGE_MINUTES = 60


class UserRepository(SessionRepository):
    """Read user activity and persist the denormalized rating summary."""

    def __init__(self, engine: Engine, clock: Callable[[], datetime] = utc_now) -> None:
        super().__init__(engine)
        self._clock = clock

    def get(self, user_id: int) -> UserRecord | None:
        """Get a user record by id."""

        def _get(session: Session) -> UserRecord | None:
            return session.get(UserRecord, user_id)

        return self._run_session(_get)

    def exists(self, user_id: int) -> bool:
        return self.get(user_id) is not None

    def get_account_created_at(self, user_id: int) -> datetime | None:
        user = self.get(user_id)
        return ensure_utc(user.created_at) if user else None

    def get_last_activity_timestamp(self, user_id: int) -> datetime | None:
        """Latest of profile update, job touch, skill touch and sent message.

        Args:
            user_id: User identifier.

        Returns:
            Latest activity time, None when the user has no recorded activity.
        """

        def _get(session: Session) -> list[Any]:
            user = session.get(UserRecord, user_id)
            return [
                user.updated_at if user else None,
                session.exec(
                    select(func.max(JobRecord.updated_at)).where(JobRecord.user_id == user_id)
                ).one(),
                session.exec(
                    select(func.max(SkillRecord.updated_at)).where(SkillRecord.user_id == user_id)
                ).one(),
                session.exec(
                    select(func.max(MessageRecord.created_at)).where(
                        MessageRecord.sender_id == user_id
                    )
                ).one(),
            ]

        timestamps = [ensure_utc(ts) for ts in self._run_session(_get) if ts is not None]
        return max(timestamps) if timestamps else None

    def update_rating_cache(self, user_id: int, stats: RatingStats) -> UserRecord:
        """Store the headline numbers of ``stats`` on the user row.

        Args:
            user_id: User identifier.
            stats: Freshly computed rating stats.

        Returns:
            The updated user record.

        Raises:
            UserNotFoundError: If the user does not exist.
        """

        def _save(session: Session) -> UserRecord:
            user = session.get(UserRecord, user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            user.cached_average_rating = stats.simple_average
            user.cached_weighted_rating = stats.weighted_average
            user.cached_quality_score = stats.quality_score
            user.cached_total_reviews = stats.total_reviews
            user.rating_cache_updated_at = self._clock()
            user.is_rating_eligible = stats.total_reviews >= RATING_ELIGIBLE_MIN_REVIEWS
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

        user = self._run_session(_save)
        logger.debug("rating_cache_stored", user_id=user_id, total_reviews=stats.total_reviews)
        return user

    def is_rating_cache_stale(
        self, user_id: int, max_age_minutes: int = DEFAULT_CACHE_MAX_AGE_MINUTES
    ) -> bool:
        """Whether the user's cached summary is missing or older than ``max_age_minutes``.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        user = self.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        if user.rating_cache_updated_at is None:
            return True
        age = self._clock() - ensure_utc(user.rating_cache_updated_at)
        return age > timedelta(minutes=max_age_minutes)

    def _stale_filter(self, stale_after_minutes: int | None) -> list[Any]:
        if stale_after_minutes is None:
            return []
        cutoff = self._clock() - timedelta(minutes=stale_after_minutes)
        return [
            or_(
                col(UserRecord.rating_cache_updated_at).is_(None),
                col(UserRecord.rating_cache_updated_at) < cutoff,
            )
        ]

    def count_users(self, stale_after_minutes: int | None = None) -> int:
        """Count users, optionally only those with a stale cached summary."""

        def _get(session: Session) -> int:
            statement = select(func.count(col(UserRecord.id))).where(
                *self._stale_filter(stale_after_minutes)
            )
            return session.exec(statement).one()

        return self._run_session(_get)

    def iter_user_ids(
        self, stale_after_minutes: int | None = None, chunk_size: int = 100
    ) -> Iterator[list[int]]:
        """Yield user ids in ascending chunks.

        Args:
            stale_after_minutes: Only users whose summary is older than this.
                None yields every user.
            chunk_size: Maximum ids per chunk.

        Yields:
            Lists of user ids.
        """
        criteria = self._stale_filter(stale_after_minutes)
        chunk = self._ids_after(0, criteria, chunk_size)
        while chunk:
            yield chunk
            chunk = self._ids_after(chunk[-1], criteria, chunk_size)

    def _ids_after(self, after: int, criteria: list[Any], limit: int) -> list[int]:
        def _get(session: Session) -> list[int]:
            statement = (
                select(UserRecord.id)
                .where(col(UserRecord.id) > after, *criteria)
                .order_by(col(UserRecord.id))
                .limit(limit)
            )
            return list(session.exec(statement).all())

        return self._run_session(_get)

    def top_rated(
        self,
        limit: int = 20,
        min_reviews: int = RATING_ELIGIBLE_MIN_REVIEWS,
        category_id: int | None = None,
    ) -> list[UserRecord]:
        """Rating-eligible users ordered by cached quality score.

        Args:
            limit: Maximum number of users.
            min_reviews: Minimum cached review count.
            category_id: Only users with an active skill in this category.

        Returns:
            User records, best first, ties by id.
        """

        def _get(session: Session) -> list[UserRecord]:
            statement = select(UserRecord).where(
                col(UserRecord.is_rating_eligible).is_(True),
                UserRecord.cached_total_reviews >= min_reviews,
            )
            if category_id is not None:
                skilled = select(SkillRecord.user_id).where(
                    SkillRecord.category_id == category_id,
                    col(SkillRecord.is_active).is_(True),
                )
                statement = statement.where(col(UserRecord.id).in_(skilled))
            statement = statement.order_by(
                col(UserRecord.cached_quality_score).desc(), col(UserRecord.id)
            ).limit(limit)
            return list(session.exec(statement).all())

        return self._run_session(_get)
