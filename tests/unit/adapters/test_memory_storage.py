"""Unit tests for the in-memory cache storage adapter."""

import pytest

from careunity.adapters.cache.memory_storage import MemoryCacheRegistry, MemoryCacheStorage
from careunity.domain.entities import CachedResponse, ExpirationPolicy
from tests.helpers.caching import FakeClock


def _entry(stored_at: float, body: bytes = b"x") -> CachedResponse:
    return CachedResponse(
        url="http://care.test/api/x",
        status_code=200,
        headers=(("content-type", "text/plain"),),
        content=body,
        stored_at=stored_at,
    )


class TestMemoryCacheStorage:
    """Tests for MemoryCacheStorage."""

    @pytest.mark.asyncio
    async def test_put_then_get(self) -> None:
        cache = MemoryCacheStorage("c")
        await cache.put("k", _entry(0.0))
        assert (await cache.get("k")).content == b"x"

    @pytest.mark.asyncio
    async def test_get_missing(self) -> None:
        assert await MemoryCacheStorage("c").get("nope") is None

    @pytest.mark.asyncio
    async def test_max_entries_evicts_oldest(self) -> None:
        cache = MemoryCacheStorage("c", ExpirationPolicy(max_entries=2))
        for key in ("a", "b", "c"):
            await cache.put(key, _entry(0.0))

        assert await cache.keys() == ["b", "c"]
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_rewriting_a_key_makes_it_newest(self) -> None:
        cache = MemoryCacheStorage("c", ExpirationPolicy(max_entries=2))
        await cache.put("a", _entry(0.0))
        await cache.put("b", _entry(0.0))
        await cache.put("a", _entry(0.0, b"new"))
        await cache.put("c", _entry(0.0))

        assert await cache.keys() == ["a", "c"]
        assert (await cache.get("a")).content == b"new"

    @pytest.mark.asyncio
    async def test_expired_entry_is_evicted_on_get(self) -> None:
        clock = FakeClock(start=100.0)
        cache = MemoryCacheStorage("c", ExpirationPolicy(max_age_seconds=60), clock=clock)
        await cache.put("k", _entry(stored_at=100.0))

        clock.advance(60)
        assert await cache.get("k") is not None

        clock.advance(1)
        assert await cache.get("k") is None
        assert await cache.keys() == []

    @pytest.mark.asyncio
    async def test_evict(self) -> None:
        cache = MemoryCacheStorage("c")
        await cache.put("k", _entry(0.0))
        assert await cache.evict("k") is True
        assert await cache.evict("k") is False


class TestMemoryCacheRegistry:
    """Tests for MemoryCacheRegistry."""

    def test_open_reuses_cache(self) -> None:
        registry = MemoryCacheRegistry()
        policy = ExpirationPolicy(max_entries=5)
        assert registry.open("a", policy) is registry.open("a", policy)

    def test_open_applies_expiration(self) -> None:
        registry = MemoryCacheRegistry()
        cache = registry.open("a", ExpirationPolicy(max_entries=5))
        assert cache.expiration.max_entries == 5
        assert cache.name == "a"

    def test_names_sorted(self) -> None:
        registry = MemoryCacheRegistry()
        registry.open("b", ExpirationPolicy())
        registry.open("a", ExpirationPolicy())
        assert registry.names() == ["a", "b"]
