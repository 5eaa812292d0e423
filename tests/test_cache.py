"""Tests for the in-memory query cache."""

import asyncio

from mission_photos.services.cache import InMemoryCache, get_or_load


def test_cache_set_and_invalidate_prefix() -> None:
    cache = InMemoryCache()
    cache.set("photos:public:20:0", ["a"], ttl_seconds=5)
    cache.set("photos:mission:1", ["b"], ttl_seconds=5)

    cache.invalidate_prefix("photos:public:")

    assert cache.get("photos:public:20:0") is None
    assert cache.get("photos:mission:1") == ["b"]


def test_cache_disabled_with_zero_ttl() -> None:
    cache = InMemoryCache()
    cache.set("key", "value", ttl_seconds=0)

    assert cache.get("key") is None


def test_get_or_load_uses_cached_value() -> None:
    cache = InMemoryCache()
    calls: list[int] = []

    async def loader() -> list[int]:
        calls.append(1)
        return [len(calls)]

    async def run() -> tuple[list[int], list[int]]:
        first = await get_or_load(cache, "key", 5, loader)
        second = await get_or_load(cache, "key", 5, loader)
        return first, second

    first, second = asyncio.run(run())

    assert first == [1]
    assert second == [1]
    assert len(calls) == 1
