"""Batch refresh of the cached rating summaries stored on user rows."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog
from sqlalchemy.exc import SQLAlchemyError

from rating_engine.core.config import RefreshConfig
from rating_engine.core.errors import UserNotFoundError
from rating_engine.models import RatingStats
from rating_engine.services.history import TRIGGER_SCHEDULED
from rating_engine.services.rating_service import RatingService
from rating_engine.services.storage import RatingHistoryRepository, UserRepository

logger = structlog.get_logger()


@dataclass
class RefreshSummary:
    """Outcome of a batch refresh.

    Attributes:
        processed: Users refreshed successfully.
        errors: Users whose refresh failed.
        failed_user_ids: Ids of the failed users.
    """

    processed: int = 0
    errors: int = 0
    failed_user_ids: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.errors == 0


class RatingRefresher:
    """Recompute rating stats and store them on user rows, optionally with history."""

    def __init__(
        self,
        service: RatingService,
        users: UserRepository,
        history: RatingHistoryRepository,
        config: RefreshConfig | None = None,
    ) -> None:
        self.service = service
        self.users = users
        self.history = history
        self.config = config or RefreshConfig()

    def refresh_user(
        self, user_id: int, force: bool = False, with_history: bool = False
    ) -> RatingStats | None:
        """Refresh one user's cached summary.

        Args:
            user_id: User to refresh.
            force: Refresh even when the cached summary is still fresh.
            with_history: Also snapshot the stats into the rating history.

        Returns:
            Fresh stats, or None when the summary was fresh and not forced.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        if not self.users.exists(user_id):
            raise UserNotFoundError(user_id)

        if not force and not self.users.is_rating_cache_stale(
            user_id, self.config.stale_after_minutes
        ):
            logger.info("rating_cache_fresh", user_id=user_id)
            return None

        return self._store(user_id, with_history)

    def count_pending(self, force: bool = False) -> int:
        """Number of users a ``refresh_all`` call would visit."""
        return self.users.count_users(None if force else self.config.stale_after_minutes)

    def refresh_all(
        self,
        force: bool = False,
        with_history: bool = False,
        chunk_size: int | None = None,
        on_user: Callable[[int], None] | None = None,
    ) -> RefreshSummary:
        """Refresh every user with a stale summary (every user when forced).

        A failing user is logged and counted; the batch carries on.

        Args:
            force: Include users whose summary is still fresh.
            with_history: Also snapshot each user's stats into the history.
            chunk_size: Users loaded per query. Defaults to config.
            on_user: Called with each visited user id, e.g. to advance a progress bar.

        Returns:
            RefreshSummary with processed and failed counts.
        """
        summary = RefreshSummary()
        stale_after = None if force else self.config.stale_after_minutes
        chunks = self.users.iter_user_ids(stale_after, chunk_size or self.config.chunk_size)

        for chunk in chunks:
            for user_id in chunk:
                try:
                    self._store(user_id, with_history)
                    summary.processed += 1
                except (SQLAlchemyError, UserNotFoundError) as e:
                    summary.errors += 1
                    summary.failed_user_ids.append(user_id)
                    logger.error("rating_refresh_failed", user_id=user_id, error=str(e))
                if on_user is not None:
                    on_user(user_id)

        logger.info("rating_refresh_complete", processed=summary.processed, errors=summary.errors)
        return summary

    def _store(self, user_id: int, with_history: bool) -> RatingStats:
        stats = self.service.calculate_user_rating_stats(user_id, use_cache=False)
        self.users.update_rating_cache(user_id, stats)
        if with_history:
            self.history.create_from_stats(user_id, stats, TRIGGER_SCHEDULED)
        return stats
