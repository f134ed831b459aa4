"""Configuration schemas and loading for the rating engine."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from rating_engine.core.errors import MissingFieldError, ValidationError

DEFAULT_DATABASE_URL = "sqlite:///ratings.db"
DATABASE_URL_ENV = "RATING_ENGINE_DATABASE_URL"


class CacheConfig(BaseModel):
    """Cache backend and entry lifetimes.

    Attributes:
        backend: "memory" for a process-local dict, "duckdb" for a file-backed cache.
        path: DuckDB cache file. Required when backend is "duckdb".
        stats_ttl_minutes: Lifetime of per-user rating stats.
        credibility_ttl_minutes: Lifetime of per-reviewer credibility.
        ranking_ttl_minutes: Lifetime of a ranking result.
    """

    backend: Literal["memory", "duckdb"] = "memory"
    path: str | None = None
    stats_ttl_minutes: int = Field(default=60, ge=1)
    credibility_ttl_minutes: int = Field(default=30, ge=1)
    ranking_ttl_minutes: int = Field(default=2, ge=1)

    @model_validator(mode="after")
    def validate_backend_path(self) -> CacheConfig:
        if self.backend == "duckdb" and not self.path:
            raise MissingFieldError("cache.path", "cache config (required for duckdb backend)")
        return self


class RankingConfig(BaseModel):
    """Qualification rules for the cross-user ranking."""

    min_reviews: int = Field(default=3, ge=1)


class HistoryConfig(BaseModel):
    """Thresholds for rating history snapshots."""

    significant_rating_change: float = 0.2
    significant_quality_change: float = 5.0
    trend_window: int = Field(default=5, ge=2)
    trend_threshold: float = 0.1


class RefreshConfig(BaseModel):
    """Batch refresh of cached rating summaries."""

    stale_after_minutes: int = Field(default=60, ge=1)
    chunk_size: int = Field(default=100, ge=1)


class EngineConfig(BaseModel):
    """Complete rating engine configuration."""

    database_url: str | None = None
    cache: CacheConfig = Field(default_factory=CacheConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)

    def get_database_url(self) -> str:
        """Get database URL from config, environment, or the default."""
        return self.database_url or os.environ.get(DATABASE_URL_ENV) or DEFAULT_DATABASE_URL


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file. None yields the defaults.

    Returns:
        Validated EngineConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If the file does not hold a mapping.
        pydantic.ValidationError: If config is invalid.
    """
    if path is None:
        return EngineConfig()

    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValidationError(str(config_path), "The top level of the file must be a mapping.")

    return EngineConfig.model_validate(data)
