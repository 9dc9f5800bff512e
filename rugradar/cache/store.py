"""Report stores: in-process dict or Redis."""

import time
from collections.abc import Callable
from typing import Protocol

from redis.asyncio import Redis

from config.settings import settings
from rugradar.models.report import Report


class CacheStore(Protocol):
    async def get(self, key: str) -> Report | None: ...

    async def set(self, key: str, report: Report, ttl_sec: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryCacheStore:
    """Single-process store with monotonic expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._items: dict[str, tuple[float, Report]] = {}

    async def get(self, key: str) -> Report | None:
        item = self._items.get(key)
        if item is None:
            return None
        expires_at, report = item
        if self._clock() >= expires_at:
            del self._items[key]
            return None
        return report

    async def set(self, key: str, report: Report, ttl_sec: int) -> None:
        now = self._clock()
        self._evict_expired(now)
        # Whole-report replacement, readers never see a partial update
        self._items[key] = (now + ttl_sec, report)

    async def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._items.items() if now >= expires_at]
        for k in expired:
            del self._items[k]


class RedisCacheStore:
    """Shared store: reports serialized as JSON with a Redis TTL."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    @classmethod
    def from_url(cls, url: str | None = None) -> "RedisCacheStore":
        return cls(Redis.from_url(url or settings.redis_url, decode_responses=True))

    async def get(self, key: str) -> Report | None:
        raw = await self._redis.get(key)
        if raw is None:
            return None
        return Report.model_validate_json(raw)

    async def set(self, key: str, report: Report, ttl_sec: int) -> None:
        await self._redis.set(key, report.model_dump_json(), ex=ttl_sec)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def close(self) -> None:
        await self._redis.aclose()


def build_store(backend: str | None = None) -> CacheStore:
    backend = backend or settings.cache_backend
    if backend == "redis":
        return RedisCacheStore.from_url()
    if backend == "memory":
        return MemoryCacheStore()
    raise ValueError(f"Unknown cache backend: {backend!r}")
