"""
Tests for the TTL caches holding catalog results.
"""
import asyncio
from datetime import date

from app.services.recipe_cache import ResultCache, TTLCache


def test_entry_expires_after_ttl(clock):
    cache = TTLCache(ttl_seconds=60, clock=clock)
    cache.set("a", [1, 2])
    assert cache.get("a") == [1, 2]

    clock.advance(59)
    assert "a" in cache

    clock.advance(1)
    assert cache.get("a") is None
    assert len(cache) == 0


def test_per_entry_ttl_override(clock):
    cache = TTLCache(ttl_seconds=60, clock=clock)
    cache.set("short", 1, ttl_seconds=5)
    cache.set("long", 2)

    clock.advance(10)
    assert cache.keys() == ["long"]


def test_evict_expired_counts_removed(clock):
    cache = ResultCache(search_ttl=10, detail_ttl=100, clock=clock)
    cache.search.set("s", [])
    cache.detail.set("d", object())

    clock.advance(50)
    assert cache.evict_expired() == 1
    assert cache.stats() == {"search_entries": 0, "detail_entries": 1}


def test_key_formats():
    assert ResultCache.search_key(7, date(2024, 3, 4), "breakfast") == "search_7_2024-03-04_breakfast"
    assert ResultCache.detail_key(715538) == "recipe_715538"


def test_sweep_task_starts_and_stops(clock):
    async def scenario():
        cache = ResultCache(check_period=3600, clock=clock)
        cache.start_sweep()
        assert cache._sweep_task is not None
        await cache.stop_sweep()
        assert cache._sweep_task is None

    asyncio.run(scenario())
