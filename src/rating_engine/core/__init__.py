"""Core configuration and utilities for the rating engine."""

from rating_engine.core.clock import days_between, ensure_utc, utc_now
from rating_engine.core.config import (
    DEFAULT_DATABASE_URL,
    CacheConfig,
    EngineConfig,
    HistoryConfig,
    RankingConfig,
    RefreshConfig,
    load_config,
)
from rating_engine.core.errors import (
    CacheUnavailableError,
    ConfigurationError,
    MissingFieldError,
    UserNotFoundError,
    ValidationError,
)
from rating_engine.core.progress import RefreshProgress
from rating_engine.core.rounding import round_half_up

__all__ = [
    "DEFAULT_DATABASE_URL",
    "CacheConfig",
    "EngineConfig",
    "HistoryConfig",
    "RankingConfig",
    "RefreshConfig",
    "RefreshProgress",
    "days_between",
    "ensure_utc",
    "load_config",
    "round_half_up",
    "utc_now",
    "CacheUnavailableError",
    "ConfigurationError",
    "MissingFieldError",
    "UserNotFoundError",
    "ValidationError",
]
