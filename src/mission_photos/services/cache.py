"""Short-lived query cache for public listings."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol, TypeVar

T = TypeVar("T")


class Cache(Protocol):
    """Cache interface for simple key-value data."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL in seconds."""

    def invalidate_prefix(self, prefix: str) -> None:
        """Drop every entry whose key starts with ``prefix``."""


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime


@dataclass
class InMemoryCache(Cache):
    """Process-local cache; other processes see changes once the TTL lapses."""

    _entries: dict[str, _CacheEntry]

    def __init__(self) -> None:
        self._entries = {}

    def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if datetime.now(tz=UTC) >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL; non-positive TTLs are not stored."""
        if ttl_seconds <= 0:
            return
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    def invalidate_prefix(self, prefix: str) -> None:
        """Drop every entry under a key prefix."""
        for key in [key for key in self._entries if key.startswith(prefix)]:
            self._entries.pop(key, None)


async def get_or_load(
    cache: Cache, key: str, ttl_seconds: int, loader: Callable[[], Awaitable[T]]
) -> T:
    """Return the cached value for ``key`` or load and cache it."""
    cached = cache.get(key)
    if cached is not None:
        return cached  # type: ignore[return-value]
    value = await loader()
    cache.set(key, value, ttl_seconds)
    return value
