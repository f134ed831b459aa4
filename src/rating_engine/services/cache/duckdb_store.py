"""DuckDB-backed cache for computed rating data."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import duckdb
import structlog

from rating_engine.core.clock import utc_now
from rating_engine.core.errors import CacheUnavailableError

logger = structlog.get_logger()


class DuckDBCache:
    """DuckDB file cache with per-entry expiry, shared across processes."""

    def __init__(self, db_path: Path, clock: Callable[[], datetime] = utc_now) -> None:
        """Initialize cache database.

        Args:
            db_path: Path to DuckDB database file.
            clock: Source of the current time, used for expiry.
        """
        self.db_path = db_path
        self._clock = clock
        self._init_db()

    def _init_db(self) -> None:
        """Create cache table if it doesn't exist.

        Raises:
            CacheUnavailableError: If the cache file cannot be created or opened.
        """
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = duckdb.connect(str(self.db_path))
        except (OSError, duckdb.Error) as e:
            raise CacheUnavailableError("init", str(self.db_path), str(e)) from e
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache (
                    cache_key VARCHAR PRIMARY KEY,
                    value VARCHAR NOT NULL,
                    expires_at DOUBLE NOT NULL
                )
            """
            )
        except duckdb.Error as e:
            raise CacheUnavailableError("init", str(self.db_path), str(e)) from e
        finally:
            conn.close()

    def _connect(self, operation: str, key: str) -> duckdb.DuckDBPyConnection:
        try:
            return duckdb.connect(str(self.db_path))
        except duckdb.Error as e:
            raise CacheUnavailableError(operation, key, str(e)) from e

    def get(self, key: str) -> Any | None:
        """Get a live cached value.

        Args:
            key: Cache key.

        Returns:
            Decoded value, or None when missing or expired.
        """
        conn = self._connect("get", key)
        try:
            result = conn.execute(
                "SELECT value FROM cache WHERE cache_key = ? AND expires_at > ?",
                [key, self._clock().timestamp()],
            ).fetchone()
        except duckdb.Error as e:
            raise CacheUnavailableError("get", key, str(e)) from e
        finally:
            conn.close()

        if not result:
            return None
        try:
            return json.loads(result[0])
        except json.JSONDecodeError:
            logger.warning("cache_entry_corrupt", key=key)
            return None

    def put(self, key: str, value: Any, ttl_minutes: int) -> None:
        """Store a value in cache.

        Args:
            key: Cache key.
            value: JSON-compatible value.
            ttl_minutes: Minutes until the entry expires.
        """
        expires_at = (self._clock() + timedelta(minutes=ttl_minutes)).timestamp()
        conn = self._connect("put", key)
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO cache (cache_key, value, expires_at)
                VALUES (?, ?, ?)
                """,
                [key, json.dumps(value, default=str), expires_at],
            )
        except duckdb.Error as e:
            raise CacheUnavailableError("put", key, str(e)) from e
        finally:
            conn.close()

    def forget(self, key: str) -> None:
        """Remove an entry if present."""
        conn = self._connect("forget", key)
        try:
            conn.execute("DELETE FROM cache WHERE cache_key = ?", [key])
        except duckdb.Error as e:
            raise CacheUnavailableError("forget", key, str(e)) from e
        finally:
            conn.close()

    def purge_expired(self) -> int:
        """Delete expired entries.

        Returns:
            Number of entries removed.
        """
        now = self._clock().timestamp()
        conn = self._connect("purge", "*")
        try:
            (count,) = conn.execute(
                "SELECT COUNT(*) FROM cache WHERE expires_at <= ?", [now]
            ).fetchone()
            conn.execute("DELETE FROM cache WHERE expires_at <= ?", [now])
        except duckdb.Error as e:
            raise CacheUnavailableError("purge", "*", str(e)) from e
        finally:
            conn.close()

        logger.debug("cache_purged", removed=count)
        return count
