"""Unit tests for the QueryAnalysisCache."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from craftmatch.application.services.query_analysis_cache import QueryAnalysisCache
from craftmatch.domain.entities import ProfessionMatch

POTTERY = ProfessionMatch(profession="pottery", confidence=0.75, matched_keywords=("pottery",))
WOOD = ProfessionMatch(profession="woodworking", confidence=0.9)


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_get_returns_stored_match(clock):
    cache = QueryAnalysisCache(now=clock)
    cache.put("traditional pottery", POTTERY)
    assert cache.get("traditional pottery") == POTTERY
    assert cache.get("other") is None

    stats = cache.stats()
    assert (stats.hits, stats.misses, stats.entry_count) == (1, 1, 1)
    assert stats.hit_rate == 0.5


def test_entries_expire_after_ttl(clock):
    cache = QueryAnalysisCache(default_ttl_seconds=60, now=clock)
    cache.put("pottery", POTTERY)
    clock.advance(59)
    assert cache.get("pottery") == POTTERY
    clock.advance(2)
    assert cache.get("pottery") is None
    assert cache.stats().entry_count == 0


def test_per_entry_ttl_overrides_default(clock):
    cache = QueryAnalysisCache(default_ttl_seconds=3600, now=clock)
    cache.put("pottery", POTTERY, ttl_seconds=10)
    clock.advance(11)
    assert cache.get("pottery") is None


def test_put_replaces_existing_entry(clock):
    cache = QueryAnalysisCache(now=clock)
    cache.put("q", POTTERY)
    cache.put("q", WOOD)
    assert cache.get("q") == WOOD
    assert cache.stats().entry_count == 1


def test_oldest_entry_is_evicted_at_capacity(clock):
    cache = QueryAnalysisCache(max_entries=2, now=clock)
    cache.put("first", POTTERY)
    clock.advance(1)
    cache.put("second", POTTERY)
    clock.advance(1)
    cache.put("third", WOOD)

    assert cache.get("first") is None
    assert cache.get("third") == WOOD
    assert cache.stats().evictions == 1


def test_invalidation(clock):
    cache = QueryAnalysisCache(now=clock)
    for key in ("red clay pots", "clay vases", "oak doors"):
        cache.put(key, POTTERY)

    assert cache.invalidate("oak doors") is True
    assert cache.invalidate("oak doors") is False
    assert cache.invalidate_by_pattern("clay") == 2
    assert cache.stats().entry_count == 0


def test_cleanup_expired_and_clear(clock):
    cache = QueryAnalysisCache(default_ttl_seconds=10, now=clock)
    cache.put("a", POTTERY)
    cache.put("b", POTTERY, ttl_seconds=100)
    clock.advance(20)

    assert cache.cleanup_expired() == 1
    assert cache.clear() == 1
    assert cache.stats().hits == 0


def test_concurrent_put_get_invalidate_stay_consistent():
    cache = QueryAnalysisCache(max_entries=16)
    keys = [f"query {i % 24}" for i in range(600)]

    def work(index: int):
        key = keys[index]
        if index % 3 == 0:
            cache.put(key, POTTERY if index % 2 else WOOD)
            return "put"
        if index % 7 == 0:
            cache.invalidate(key)
            return "invalidate"
        return cache.get(key)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(work, range(len(keys))))

    gets = [r for r in results if r not in ("put", "invalidate")]
    assert all(r is None or r in (POTTERY, WOOD) for r in gets)
    assert all(r is None or isinstance(r, ProfessionMatch) for r in gets)

    stats = cache.stats()
    assert stats.hits + stats.misses == len(gets)
    assert stats.hits == sum(1 for r in gets if r is not None)
    assert stats.entry_count <= 16
