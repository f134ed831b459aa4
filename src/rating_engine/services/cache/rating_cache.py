"""Typed, best-effort cache for rating stats, credibility and rankings."""

from __future__ import annotations

from typing import Any, TypeVar

import pydantic
import structlog

from rating_engine.core.config import CacheConfig
from rating_engine.core.errors import CacheUnavailableError
from rating_engine.models import RankingResult, RatingStats, ReviewerCredibility

from .base import CacheStore

logger = structlog.get_logger()

M = TypeVar("M", bound=pydantic.BaseModel)


def stats_key(user_id: int) -> str:
    return f"user_rating_stats_{user_id}"


def credibility_key(reviewer_id: int) -> str:
    return f"reviewer_credibility_{reviewer_id}"


def ranking_key(user_id: int, category_id: int | None = None) -> str:
    key = f"user_ranking_{user_id}"
    if category_id is not None:
        key += f"_{category_id}"
    return key


class RatingCache:
    """Cache rating results in a ``CacheStore``.

    Every backend failure is logged and treated as a miss (reads) or a no-op
    (writes and evictions), so callers always fall back to computing directly.
    """

    def __init__(self, store: CacheStore, config: CacheConfig | None = None) -> None:
        """Initialize rating cache.

        Args:
            store: Cache backend.
            config: Entry lifetimes. Defaults to 60/30/2 minutes.
        """
        self.store = store
        self.config = config or CacheConfig()

    # ==================== Rating stats ====================

    def get_stats(self, user_id: int) -> RatingStats | None:
        return self._get_model(stats_key(user_id), RatingStats)

    def put_stats(self, stats: RatingStats) -> None:
        self._put(
            stats_key(stats.user_id),
            stats.model_dump(mode="json"),
            self.config.stats_ttl_minutes,
        )

    # ==================== Reviewer credibility ====================

    def get_credibility(self, reviewer_id: int) -> ReviewerCredibility | None:
        return self._get_model(credibility_key(reviewer_id), ReviewerCredibility)

    def put_credibility(self, reviewer_id: int, credibility: ReviewerCredibility) -> None:
        self._put(
            credibility_key(reviewer_id),
            credibility.model_dump(mode="json"),
            self.config.credibility_ttl_minutes,
        )

    # ==================== Rankings ====================

    def get_ranking(self, user_id: int, category_id: int | None = None) -> RankingResult | None:
        return self._get_model(ranking_key(user_id, category_id), RankingResult)

    def put_ranking(self, ranking: RankingResult) -> None:
        self._put(
            ranking_key(ranking.user_id, ranking.category_id),
            ranking.model_dump(mode="json"),
            self.config.ranking_ttl_minutes,
        )

    # ==================== Invalidation ====================

    def forget_user(self, user_id: int) -> None:
        """Evict a user's stats and their credibility as a reviewer."""
        self._forget(stats_key(user_id))
        self._forget(credibility_key(user_id))

    # ==================== Backend access ====================

    def _get_model(self, key: str, model: type[M]) -> M | None:
        try:
            data = self.store.get(key)
        except CacheUnavailableError as e:
            logger.warning("cache_unavailable", operation="get", key=key, error=e.reason)
            return None

        if data is None:
            logger.debug("cache_miss", key=key)
            return None

        try:
            value = model.model_validate(data)
        except pydantic.ValidationError:
            logger.warning("cache_entry_invalid", key=key)
            return None

        logger.debug("cache_hit", key=key)
        return value

    def _put(self, key: str, value: Any, ttl_minutes: int) -> None:
        try:
            self.store.put(key, value, ttl_minutes)
        except CacheUnavailableError as e:
            logger.warning("cache_unavailable", operation="put", key=key, error=e.reason)

    def _forget(self, key: str) -> None:
        try:
            self.store.forget(key)
        except CacheUnavailableError as e:
            logger.warning("cache_unavailable", operation="forget", key=key, error=e.reason)
