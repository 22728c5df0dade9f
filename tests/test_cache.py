import asyncio

import pytest

from endcat.utils.cache import AsyncLookupCache


async def test_concurrent_calls_share_one_fetch() -> None:
    cache = AsyncLookupCache[str, int]("test")
    calls = 0
    release = asyncio.Event()

    async def fetch() -> int:
        nonlocal calls
        calls += 1
        await release.wait()
        return 42

    first = asyncio.create_task(cache.get_or_fetch("a", fetch))
    second = asyncio.create_task(cache.get_or_fetch("a", fetch))
    await asyncio.sleep(0)
    release.set()

    assert await asyncio.gather(first, second) == [42, 42]
    assert calls == 1
    assert await cache.get_or_fetch("a", fetch) == 42
    assert calls == 1


async def test_different_keys_fetch_separately() -> None:
    cache = AsyncLookupCache[str, str]("test")

    async def fetch_for(key: str) -> str:
        return key.upper()

    assert await cache.get_or_fetch("a", lambda: fetch_for("a")) == "A"
    assert await cache.get_or_fetch("b", lambda: fetch_for("b")) == "B"
    assert len(cache) == 2


async def test_failed_fetch_is_evicted() -> None:
    cache = AsyncLookupCache[str, int]("test")
    attempts = 0

    async def flaky() -> int:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise OSError("disk gone")
        return 7

    with pytest.raises(OSError, match="disk gone"):
        await cache.get_or_fetch("a", flaky)
    await asyncio.sleep(0)
    assert "a" not in cache

    assert await cache.get_or_fetch("a", flaky) == 7
    assert attempts == 2


async def test_cancelled_caller_does_not_cancel_shared_fetch() -> None:
    cache = AsyncLookupCache[str, int]("test")
    release = asyncio.Event()

    async def fetch() -> int:
        await release.wait()
        return 1

    waiter = asyncio.create_task(cache.get_or_fetch("a", fetch))
    await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    release.set()
    assert await cache.get_or_fetch("a", fetch) == 1


async def test_clear_lets_pending_waiters_finish() -> None:
    cache = AsyncLookupCache[str, str]("test")
    release = asyncio.Event()
    calls = 0

    async def fetch() -> str:
        nonlocal calls
        calls += 1
        if calls == 1:
            await release.wait()
            return "old"
        return "new"

    waiter = asyncio.create_task(cache.get_or_fetch("a", fetch))
    await asyncio.sleep(0)
    assert "a" in cache

    cache.clear()
    assert len(cache) == 0
    assert await cache.get_or_fetch("a", fetch) == "new"

    release.set()
    assert await waiter == "old"
    # The stale task finishing does not touch the fresh entry
    assert await cache.get_or_fetch("a", fetch) == "new"
    assert calls == 2


async def test_clear_drops_a_fetch_that_never_resolves() -> None:
    cache = AsyncLookupCache[str, int]("test")
    never = asyncio.Event()

    async def stuck() -> int:
        await never.wait()
        return 0

    waiter = asyncio.create_task(cache.get_or_fetch("a", stuck))
    await asyncio.sleep(0)

    cache.clear()
    assert len(cache) == 0
    assert not waiter.done()

    never.set()
    assert await waiter == 0
    assert "a" not in cache
