"""Base protocol for cache backends."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for string-keyed caches with per-entry lifetimes.

    Values are JSON-compatible (dicts, lists, strings, numbers). Backends that
    cannot be reached raise ``CacheUnavailableError``.
    """

    def get(self, key: str) -> Any | None:
        """Get a live cached value.

        Args:
            key: Cache key.

        Returns:
            The stored value, or None when missing or expired.
        """
        ...

    def put(self, key: str, value: Any, ttl_minutes: int) -> None:
        """Store a value, replacing any existing entry.

        Args:
            key: Cache key.
            value: JSON-compatible value.
            ttl_minutes: Minutes until the entry expires.
        """
        ...

    def forget(self, key: str) -> None:
        """Remove an entry. Missing keys are ignored.

        Args:
            key: Cache key.
        """
        ...
