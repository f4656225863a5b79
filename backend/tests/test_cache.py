import asyncio
import os
import sys
from types import SimpleNamespace

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from courtside import cache as cache_module
from courtside.cache import TTLCache


@pytest.mark.anyio
async def test_get_or_load_caches_until_invalidated():
    cache = TTLCache(ttl_seconds=60)
    calls = []

    async def load():
        calls.append(1)
        return {"version": len(calls)}

    assert await cache.get_or_load("m1", load) == {"version": 1}
    assert await cache.get_or_load("m1", load) == {"version": 1}
    assert len(calls) == 1

    await cache.invalidate("m1")
    assert await cache.get("m1") is None
    assert await cache.get_or_load("m1", load) == {"version": 2}


@pytest.mark.anyio
async def test_entries_expire(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(cache_module, "time", SimpleNamespace(monotonic=lambda: now[0]))
    cache = TTLCache(ttl_seconds=2)
    await cache.set("m1", "snapshot")
    assert await cache.get("m1") == "snapshot"
    now[0] += 2.5
    assert await cache.get("m1") is None


@pytest.mark.anyio
async def test_zero_ttl_disables_caching():
    cache = TTLCache(ttl_seconds=0)
    await cache.set("m1", "snapshot")
    assert await cache.get("m1") is None


@pytest.mark.anyio
async def test_failed_load_is_not_cached():
    cache = TTLCache(ttl_seconds=60)

    async def boom():
        raise LookupError("gone")

    with pytest.raises(LookupError):
        await cache.get_or_load("m1", boom)
    assert await cache.get("m1") is None


@pytest.mark.anyio
async def test_concurrent_misses_share_one_load():
    cache = TTLCache(ttl_seconds=60)
    calls = []

    async def load():
        calls.append(1)
        for _ in range(3):
            await asyncio.sleep(0)
        return "snapshot"

    results = await asyncio.gather(*(cache.get_or_load("m1", load) for _ in range(5)))
    assert results == ["snapshot"] * 5
    assert await cache.get_or_load("m1", load) == "snapshot"
    assert len(calls) == 1
    assert cache._loading == {}
