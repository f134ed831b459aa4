"""Wiring of the rating engine from configuration."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog

from rating_engine.core.clock import utc_now
from rating_engine.core.config import EngineConfig
from rating_engine.models import PlatformTrends
from rating_engine.services.cache import RatingCache, create_cache_store
from rating_engine.services.history import TrendPeriod, period_start, platform_trends
from rating_engine.services.rating_service import RatingService
from rating_engine.services.refresh import RatingRefresher
from rating_engine.services.review_events import ReviewChangeHandler
from rating_engine.services.storage import (
    RatingHistoryRepository,
    ReviewRepository,
    UserRepository,
    create_db_engine,
)

logger = structlog.get_logger()


class RatingEngine:
    """Repositories, cache and services built over one database.

    Attributes:
        config: Engine configuration.
        clock: Source of the current time.
        reviews: Review repository.
        users: User repository.
        history: Rating history repository.
        service: Rating computation service.
        events: Review change handler.
        refresher: Batch refresher of cached summaries.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Engine configuration. Defaults are used when None.
            clock: Source of the current time, shared by every component.
        """
        self.config = config or EngineConfig()
        self.clock = clock
        database_url = self.config.get_database_url()
        self.db_engine = create_db_engine(database_url)

        self.reviews = ReviewRepository(self.db_engine)
        self.users = UserRepository(self.db_engine, clock=clock)
        self.history = RatingHistoryRepository(self.db_engine, clock=clock)
        self.cache = RatingCache(
            create_cache_store(self.config.cache, clock=clock), self.config.cache
        )

        self.service = RatingService(
            self.reviews, self.users, self.cache, config=self.config, clock=clock
        )
        self.events = ReviewChangeHandler(self.service, self.users, self.reviews, self.history)
        self.refresher = RatingRefresher(
            self.service, self.users, self.history, config=self.config.refresh
        )
        logger.info(
            "rating_engine_ready",
            cache_backend=self.config.cache.backend,
            database=self.db_engine.url.render_as_string(hide_password=True),
        )

    def rating_trends(
        self, period: TrendPeriod = TrendPeriod.MONTH, category_id: int | None = None
    ) -> PlatformTrends:
        """Platform-wide rating movement over ``period`` from the rating history.

        Args:
            period: Look-back window.
            category_id: Only users with a skill in this category.

        Returns:
            PlatformTrends for the period ending now.
        """
        now = self.clock()
        entries = self.history.since(period_start(period, now), category_id)
        return platform_trends(entries, period, now, category_id)

    def close(self) -> None:
        """Release database connections."""
        self.db_engine.dispose()
