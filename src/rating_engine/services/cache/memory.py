"""Process-local cache backend."""

from __future__ import annotations

import copy
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from rating_engine.core.clock import utc_now


class InMemoryCache:
    """Dict-backed cache with expiry, for tests and single-process use."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        """Initialize an empty cache.

        Args:
            clock: Source of the current time, used for expiry.
        """
        self._clock = clock
        self._entries: dict[str, tuple[Any, datetime]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return copy.deepcopy(value)

    def put(self, key: str, value: Any, ttl_minutes: int) -> None:
        expires_at = self._clock() + timedelta(minutes=ttl_minutes)
        self._entries[key] = (copy.deepcopy(value), expires_at)

    def forget(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
