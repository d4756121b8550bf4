"""Unit tests for the in-memory TTLCache."""

import asyncio
import threading

import pytest

from gradekit.utils.ttl_cache import CacheKeys, TTLCache


def test_set_then_get_returns_value(clock) -> None:
    cache = TTLCache(max_size=10, clock=clock)

    cache.set("github:octo/hello", {"stars": 3}, ttl_seconds=10)

    assert cache.get("github:octo/hello") == {"stars": 3}


def test_get_missing_returns_default() -> None:
    cache = TTLCache()

    assert cache.get("missing") is None
    assert cache.get("missing", "fallback") == "fallback"


def test_entry_expires_after_ttl_and_is_evicted(clock) -> None:
    cache = TTLCache(clock=clock)
    cache.set("key", "value", ttl_seconds=5)

    clock.advance(5)
    assert cache.get("key") == "value"

    clock.advance(0.001)
    assert cache.get("key") is None
    assert len(cache) == 0
    assert cache.stats()["evictions"] == 1


def test_capacity_evicts_earliest_inserted_key(clock) -> None:
    cache = TTLCache(max_size=2, clock=clock)
    cache.set("a", 1, 10)
    cache.set("b", 2, 10)
    cache.set("c", 3, 10)

    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_reads_do_not_protect_from_eviction(clock) -> None:
    cache = TTLCache(max_size=2, clock=clock)
    cache.set("a", 1, 10)
    cache.set("b", 2, 10)

    # Reading "a" does not make it recent: eviction follows insertion order
    assert cache.get("a") == 1
    cache.set("c", 3, 10)

    assert cache.get("a") is None
    assert cache.get("b") == 2


def test_overwrite_does_not_evict_or_reorder(clock) -> None:
    cache = TTLCache(max_size=2, clock=clock)
    cache.set("a", 1, 10)
    cache.set("b", 2, 10)

    cache.set("a", 10, 10)
    assert len(cache) == 2
    assert cache.get("b") == 2

    cache.set("c", 3, 10)
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_delete_and_clear(clock) -> None:
    cache = TTLCache(clock=clock)
    cache.set("a", 1, 10)
    cache.set("b", 2, 10)
    cache.get("a")

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    assert "a" not in cache

    cache.clear()
    stats = cache.stats()
    assert stats["size"] == 0
    assert stats["hits"] == 0
    assert stats["misses"] == 0


def test_sweep_removes_expired_entries_only(clock) -> None:
    cache = TTLCache(clock=clock)
    cache.set("short", 1, 1)
    cache.set("long", 2, 100)

    clock.advance(2)

    assert cache.sweep() == 1
    assert "long" in cache
    assert len(cache) == 1


def test_stats_reports_hit_rate(clock) -> None:
    cache = TTLCache(max_size=5, clock=clock)
    cache.set("a", 1, 10)
    cache.get("a")
    cache.get("a")
    cache.get("b")
    cache.get("a")

    stats = cache.stats()
    assert stats["hits"] == 3
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 0.75
    assert stats["max_size"] == 5


def test_invalid_max_size() -> None:
    with pytest.raises(ValueError):
        TTLCache(max_size=0)


def test_cache_keys_format() -> None:
    assert CacheKeys.github("octo", "hello") == "github:octo/hello"
    assert CacheKeys.website("https://example.com") == "website:https://example.com"
    assert CacheKeys.document("https://files/x.docx") == "document:https://files/x.docx"


@pytest.mark.asyncio
async def test_with_cache_invokes_producer_once_for_sequential_calls(clock) -> None:
    cache = TTLCache(clock=clock)
    calls = 0

    async def produce() -> str:
        nonlocal calls
        calls += 1
        return "repo-data"

    first = await cache.with_cache("github:o/r", produce, 60)
    second = await cache.with_cache("github:o/r", produce, 60)

    assert first == second == "repo-data"
    assert calls == 1


@pytest.mark.asyncio
async def test_with_cache_refetches_after_expiry(clock) -> None:
    cache = TTLCache(clock=clock)
    calls = 0

    async def produce() -> int:
        nonlocal calls
        calls += 1
        return calls

    assert await cache.with_cache("k", produce, 10) == 1
    clock.advance(11)
    assert await cache.with_cache("k", produce, 10) == 2


@pytest.mark.asyncio
async def test_with_cache_caches_falsy_values(clock) -> None:
    cache = TTLCache(clock=clock)
    calls = 0

    async def produce() -> None:
        nonlocal calls
        calls += 1
        return None

    await cache.with_cache("k", produce, 10)
    await cache.with_cache("k", produce, 10)

    assert calls == 1


@pytest.mark.asyncio
async def test_with_cache_does_not_cache_failures(clock) -> None:
    cache = TTLCache(clock=clock)

    async def fail() -> str:
        raise RuntimeError("github unavailable")

    async def succeed() -> str:
        return "ok"

    with pytest.raises(RuntimeError):
        await cache.with_cache("k", fail, 10)

    assert "k" not in cache
    assert await cache.with_cache("k", succeed, 10) == "ok"


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_producer_call(clock) -> None:
    cache = TTLCache(clock=clock, dedupe_in_flight=True)
    calls = 0
    release = asyncio.Event()

    async def produce() -> str:
        nonlocal calls
        calls += 1
        await release.wait()
        return "value"

    waiters = [asyncio.create_task(cache.with_cache("k", produce, 10)) for _ in range(5)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*waiters)

    assert results == ["value"] * 5
    assert calls == 1


@pytest.mark.asyncio
async def test_concurrent_misses_without_dedupe_call_producer_each_time(clock) -> None:
    cache = TTLCache(clock=clock, dedupe_in_flight=False)
    calls = 0
    release = asyncio.Event()

    async def produce() -> str:
        nonlocal calls
        calls += 1
        await release.wait()
        return "value"

    waiters = [asyncio.create_task(cache.with_cache("k", produce, 10)) for _ in range(2)]
    await asyncio.sleep(0)
    release.set()
    await asyncio.gather(*waiters)

    assert calls == 2


@pytest.mark.asyncio
async def test_concurrent_failure_reaches_every_waiter(clock) -> None:
    cache = TTLCache(clock=clock)
    release = asyncio.Event()

    async def fail() -> str:
        await release.wait()
        raise RuntimeError("boom")

    waiters = [asyncio.create_task(cache.with_cache("k", fail, 10)) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*waiters, return_exceptions=True)

    assert all(isinstance(r, RuntimeError) for r in results)
    assert "k" not in cache


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_fetch(clock) -> None:
    cache = TTLCache(clock=clock)
    release = asyncio.Event()

    async def produce() -> str:
        await release.wait()
        return "value"

    impatient = asyncio.create_task(cache.with_cache("k", produce, 10))
    patient = asyncio.create_task(cache.with_cache("k", produce, 10))
    await asyncio.sleep(0)

    impatient.cancel()
    await asyncio.sleep(0)
    release.set()

    assert await patient == "value"
    assert cache.get("k") == "value"


def test_thread_safety_under_concurrent_sets() -> None:
    cache = TTLCache(max_size=1000)
    total_keys = 50

    def _writer(idx: int) -> None:
        cache.set(f"k-{idx}", {"v": idx}, 30)

    threads = [threading.Thread(target=_writer, args=(i,)) for i in range(total_keys)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == total_keys
    assert cache.get("k-0") == {"v": 0}
    assert cache.get("k-49") == {"v": 49}
