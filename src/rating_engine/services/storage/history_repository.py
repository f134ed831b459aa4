"""Database persistence for rating history snapshots."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from sqlmodel import Session, col, select

from rating_engine.core.clock import ensure_utc, utc_now
from rating_engine.models import RatingHistoryRecord, RatingStats, SkillRecord

from .repository import SessionRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine


class RatingHistoryRepository(SessionRepository):
    """Persist and query rating history entries."""

    def __init__(self, engine: Engine, clock: Callable[[], datetime] = utc_now) -> None:
        super().__init__(engine)
        self._clock = clock

    def create_from_stats(
        self, user_id: int, stats: RatingStats, trigger: str = "manual"
    ) -> RatingHistoryRecord:
        """Snapshot ``stats`` for ``user_id``.

        Args:
            user_id: User the stats belong to.
            stats: Computed rating stats.
            trigger: What caused the calculation ("new_review", "scheduled", ...).

        Returns:
            The stored history entry.
        """
        data = stats.model_dump(mode="json")
        entry = RatingHistoryRecord(
            user_id=user_id,
            simple_average=stats.simple_average,
            weighted_average=stats.weighted_average,
            time_weighted_average=stats.time_weighted_average,
            decayed_rating=stats.decayed_rating,
            quality_score=stats.quality_score,
            total_reviews=stats.total_reviews,
            rating_distribution=data["rating_distribution"],
            trend_data=data["trend"],
            calculation_trigger=trigger,
            created_at=self._clock(),
        )

        def _save(session: Session) -> RatingHistoryRecord:
            session.add(entry)
            session.commit()
            session.refresh(entry)
            return entry

        return self._run_session(_save)

    def recent(self, user_id: int, limit: int = 5) -> list[RatingHistoryRecord]:
        """Newest history entries for a user, newest first."""

        def _get(session: Session) -> list[RatingHistoryRecord]:
            statement = (
                select(RatingHistoryRecord)
                .where(RatingHistoryRecord.user_id == user_id)
                .order_by(
                    col(RatingHistoryRecord.created_at).desc(),
                    col(RatingHistoryRecord.id).desc(),
                )
                .limit(limit)
            )
            return list(session.exec(statement).all())

        return self._run_session(_get)

    def latest(self, user_id: int) -> RatingHistoryRecord | None:
        entries = self.recent(user_id, limit=1)
        return entries[0] if entries else None

    def since(
        self, start: datetime, category_id: int | None = None
    ) -> list[RatingHistoryRecord]:
        """History entries of every user created at or after ``start``, oldest first.

        Args:
            start: Earliest creation time to include.
            category_id: Only users with a skill in this category.

        Returns:
            Matching entries ordered by creation time.
        """

        def _get(session: Session) -> list[RatingHistoryRecord]:
            statement = (
                select(RatingHistoryRecord)
                .where(col(RatingHistoryRecord.created_at) >= ensure_utc(start))
                .order_by(col(RatingHistoryRecord.created_at), col(RatingHistoryRecord.id))
            )
            if category_id is not None:
                skilled = select(SkillRecord.user_id).where(SkillRecord.category_id == category_id)
                statement = statement.where(col(RatingHistoryRecord.user_id).in_(skilled))
            return list(session.exec(statement).all())

        return self._run_session(_get)
