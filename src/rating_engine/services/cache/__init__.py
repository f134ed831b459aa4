from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import structlog

from rating_engine.core.clock import utc_now
from rating_engine.core.config import CacheConfig
from rating_engine.core.errors import CacheUnavailableError

from .base import CacheStore
from .duckdb_store import DuckDBCache
from .memory import InMemoryCache
from .rating_cache import RatingCache, credibility_key, ranking_key, stats_key

logger = structlog.get_logger()


def create_cache_store(
    config: CacheConfig,
    clock: Callable[[], datetime] = utc_now,
) -> CacheStore:
    """Create the cache backend named in config.

    Args:
        config: Cache configuration.
        clock: Source of the current time for entry expiry.

    Returns:
        CacheStore instance. Falls back to an in-memory cache when the
        DuckDB file cannot be opened.
    """
    if config.backend == "duckdb" and config.path:
        logger.info("using_duckdb_cache", path=config.path)
        try:
            return DuckDBCache(Path(config.path), clock=clock)
        except CacheUnavailableError as e:
            logger.warning("cache_unavailable", operation=e.operation, key=e.key, error=e.reason)

    return InMemoryCache(clock=clock)


__all__ = [
    "CacheStore",
    "DuckDBCache",
    "InMemoryCache",
    "RatingCache",
    "create_cache_store",
    "credibility_key",
    "ranking_key",
    "stats_key",
]
