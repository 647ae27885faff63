"""Tests for the result caches."""

import asyncio

import fakeredis

from protein_dashboard.services.cache import RedisResultCache, ResultCache


def test_round_trip_returns_stored_data(clock) -> None:
    cache = ResultCache(ttl=300, clock=clock)
    data = {"data": [{"id": 1}], "count": 1}

    cache.set("k", data)

    assert cache.get("k") is data


def test_entry_expires_after_ttl(clock) -> None:
    cache = ResultCache(ttl=300, clock=clock)
    cache.set("k", "value")

    clock.advance(299.9)
    assert cache.get("k") == "value"

    clock.advance(0.1)
    assert cache.get("k") is None
    assert "k" not in cache


def test_new_page_one_search_clears_everything(clock) -> None:
    cache = ResultCache(ttl=300, clock=clock)
    cache.begin_search("kinase", 1)
    cache.set("kinase:1", "a")
    cache.set("kinase:2", "b")

    cleared = cache.begin_search("transporter", 1)

    assert cleared is True
    assert len(cache) == 0


def test_repeating_the_same_search_keeps_entries(clock) -> None:
    cache = ResultCache(ttl=300, clock=clock)
    cache.begin_search("kinase", 1)
    cache.set("kinase:1", "a")

    assert cache.begin_search("kinase", 2) is False
    assert cache.begin_search("kinase", 1) is False
    assert cache.get("kinase:1") == "a"


def test_later_page_of_a_different_search_does_not_clear(clock) -> None:
    cache = ResultCache(ttl=300, clock=clock)
    cache.begin_search("kinase", 1)
    cache.set("kinase:1", "a")

    assert cache.begin_search("transporter", 3) is False
    assert len(cache) == 1


def test_clear_empties_cache(clock) -> None:
    cache = ResultCache(ttl=300, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)

    cache.clear()

    assert len(cache) == 0


async def test_entry_removes_itself_when_timer_fires() -> None:
    cache = ResultCache(ttl=0.01)
    cache.set("k", "value")

    await asyncio.sleep(0.05)

    assert "k" not in cache


async def test_overwrite_resets_the_timer() -> None:
    cache = ResultCache(ttl=0.2)
    cache.set("k", "old")
    await asyncio.sleep(0.12)
    cache.set("k", "new")
    await asyncio.sleep(0.12)

    assert cache.get("k") == "new"


def test_redis_cache_round_trip_and_namespaced_clear() -> None:
    client = fakeredis.FakeRedis()
    mine = RedisResultCache(client, "123456:proteins", ttl=300)
    theirs = RedisResultCache(client, "654321:proteins", ttl=300)

    mine.set("k", {"count": 3})
    theirs.set("k", {"count": 4})

    assert mine.get("k") == {"count": 3}

    mine.clear()

    assert mine.get("k") is None
    assert theirs.get("k") == {"count": 4}


def test_redis_cache_sets_expiry() -> None:
    client = fakeredis.FakeRedis()
    cache = RedisResultCache(client, "ns", ttl=300)

    cache.set("k", "value")

    assert 0 < client.ttl(cache._key("k")) <= 300


def test_redis_cache_new_search_clears() -> None:
    cache = RedisResultCache(fakeredis.FakeRedis(), "ns", ttl=300)
    cache.begin_search("kinase", 1)
    cache.set("kinase:1", "a")

    cache.begin_search("transporter", 1)

    assert cache.get("kinase:1") is None
