"""Unit tests for the in-memory SimpleTTLCache."""

import asyncio
import threading

import pytest

from projects_api.utils.simple_cache import SimpleTTLCache


class FakeTime:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


def test_set_and_get_updates_hit_miss_counters() -> None:
    cache = SimpleTTLCache("projects", ttl_seconds=10)

    assert cache.get("missing") is None

    cache.set("key", {"name": "Apollo"})

    assert cache.get("key") == {"name": "Apollo"}

    stats = cache.stats()
    assert stats["name"] == "projects"
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_idle_entry_expires() -> None:
    clock = FakeTime()
    cache = SimpleTTLCache("project", ttl_seconds=5, clock=clock)
    cache.set("key", {"data": True})

    clock.advance(6)

    assert cache.get("key") is None
    assert cache.stats()["evictions"] == 1


def test_reads_extend_entry_lifetime() -> None:
    clock = FakeTime()
    cache = SimpleTTLCache("project", ttl_seconds=5, clock=clock)
    cache.set("key", "value")

    for _ in range(3):
        clock.advance(4)
        assert cache.get("key") == "value"

    clock.advance(5.5)
    assert cache.get("key") is None


def test_lru_eviction_removes_least_recently_used() -> None:
    cache = SimpleTTLCache("project", ttl_seconds=100, max_entries=2)
    cache.set("a", {"v": 1})
    cache.set("b", {"v": 2})

    # Access "a" so that "b" becomes least recently used
    assert cache.get("a") == {"v": 1}

    cache.set("c", {"v": 3})

    assert cache.get("a") == {"v": 1}
    assert cache.get("c") == {"v": 3}
    assert cache.get("b") is None
    assert cache.stats()["evictions"] == 1


def test_invalidate_and_invalidate_all() -> None:
    cache = SimpleTTLCache("project", ttl_seconds=100)
    cache.set(1, "one")
    cache.set(2, "two")

    cache.invalidate(1)
    assert 1 not in cache
    assert 2 in cache

    cache.invalidate_all()
    assert len(cache) == 0


def test_purge_expired_returns_count() -> None:
    clock = FakeTime()
    cache = SimpleTTLCache("project", ttl_seconds=5, clock=clock)
    cache.set("a", 1)
    clock.advance(3)
    cache.set("b", 2)
    clock.advance(3)

    assert cache.purge_expired() == 1
    assert "b" in cache


def test_clear_resets_state() -> None:
    cache = SimpleTTLCache("project", ttl_seconds=10)
    cache.set("a", {"v": 1})
    cache.set("b", {"v": 2})
    cache.get("a")

    cache.clear()

    stats = cache.stats()
    assert stats["entries"] == 0
    assert stats["hits"] == 0
    assert stats["misses"] == 0
    assert stats["evictions"] == 0


@pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"max_entries": 0}])
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        SimpleTTLCache("project", **kwargs)


@pytest.mark.asyncio
async def test_get_or_load_loads_once() -> None:
    cache = SimpleTTLCache("project", ttl_seconds=100)
    calls = 0

    async def loader() -> str:
        nonlocal calls
        calls += 1
        return "loaded"

    assert await cache.get_or_load("k", loader) == "loaded"
    assert await cache.get_or_load("k", loader) == "loaded"
    assert calls == 1


@pytest.mark.asyncio
async def test_get_or_load_does_not_cache_failures() -> None:
    cache = SimpleTTLCache("project", ttl_seconds=100)

    async def failing() -> str:
        raise LookupError("missing")

    with pytest.raises(LookupError):
        await cache.get_or_load("k", failing)

    assert "k" not in cache


@pytest.mark.asyncio
async def test_load_racing_an_invalidation_is_not_stored() -> None:
    cache = SimpleTTLCache("project", ttl_seconds=100)
    started = asyncio.Event()
    release = asyncio.Event()

    async def slow_loader() -> str:
        started.set()
        await release.wait()
        return "stale"

    pending = asyncio.create_task(cache.get_or_load("k", slow_loader))
    await started.wait()
    cache.invalidate("k")
    release.set()

    assert await pending == "stale"
    assert "k" not in cache


def test_thread_safety_under_concurrent_sets() -> None:
    cache = SimpleTTLCache("project", ttl_seconds=30, max_entries=None)
    total_keys = 50

    def _writer(idx: int) -> None:
        cache.set(f"k-{idx}", {"v": idx})

    threads = [threading.Thread(target=_writer, args=(i,)) for i in range(total_keys)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.stats()["entries"] == total_keys
    # Ensure a random subset is readable
    assert cache.get("k-0") == {"v": 0}
    assert cache.get("k-25") == {"v": 25}
    assert cache.get("k-49") == {"v": 49}


def test_concurrent_readers_keep_counters_and_order_consistent() -> None:
    cache = SimpleTTLCache("project", ttl_seconds=30, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    reads_per_thread = 200

    def _reader() -> None:
        for _ in range(reads_per_thread):
            assert cache.get("a") == 1

    threads = [threading.Thread(target=_reader) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.stats()["hits"] == 8 * reads_per_thread
    # Every read moved "a" to the most recent position, so "b" goes first.
    cache.set("c", 3)
    assert "b" not in cache
    assert cache.get("a") == 1
