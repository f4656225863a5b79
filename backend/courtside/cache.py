from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Hashable

from .config import VIEWER_CACHE_TTL_SECONDS


class TTLCache:
    """Short-lived in-memory cache for match snapshots.

    Viewers poll ``GET /matches/{id}`` every couple of seconds while only the
    scorekeeper writes, so each read is served from here until the entry
    expires or a write invalidates it. Concurrent misses for one key share a
    single load.
    """

    def __init__(self, ttl_seconds: float = 2.0) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._loading: dict[Hashable, asyncio.Lock] = {}

    def _fresh(self, key: Hashable) -> tuple[bool, Any]:
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        expires_at, value = entry
        if expires_at <= time.monotonic():
            self._entries.pop(key, None)
            return False, None
        return True, value

    async def get(self, key: Hashable) -> Any | None:
        return self._fresh(key)[1]

    async def set(self, key: Hashable, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        self._entries[key] = (time.monotonic() + self.ttl_seconds, value)

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        hit, value = self._fresh(key)
        if hit:
            return value
        lock = self._loading.setdefault(key, asyncio.Lock())
        async with lock:
            hit, value = self._fresh(key)
            if hit:
                return value
            try:
                value = await loader()
                await self.set(key, value)
            finally:
                # Queued callers find the stored entry under the old lock.
                if self._loading.get(key) is lock:
                    self._loading.pop(key, None)
            return value

    async def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()
        self._loading.clear()


match_view_cache = TTLCache(ttl_seconds=VIEWER_CACHE_TTL_SECONDS)
