"""Cache abstractions."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Cache interface for JSON-compatible key-value data."""

    async def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    async def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL in seconds."""

    async def delete(self, key: str) -> None:
        """Remove a cached value."""

    async def ping(self) -> bool:
        """Return true when the backing store is reachable."""


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime


@dataclass
class InMemoryCache(Cache):
    """Process-local cache used for tests and local runs."""

    _entries: dict[str, _CacheEntry]

    def __init__(self) -> None:
        self._entries = {}

    async def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if datetime.now(tz=UTC) >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    async def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL."""
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def ping(self) -> bool:
        return True

    def ttl(self, key: str) -> float | None:
        """Return remaining seconds for a key, if present."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return (entry.expires_at - datetime.now(tz=UTC)).total_seconds()
