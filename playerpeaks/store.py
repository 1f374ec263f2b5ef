from __future__ import annotations

import asyncio
import bisect
from typing import Protocol

from redis.asyncio import Redis

from .config import Settings
from .logging_config import logger


class SampleStore(Protocol):
    backend: str

    async def get_scalar(self, key: str) -> str | None: ...

    async def set_scalar(self, key: str, value: str) -> None: ...

    async def append_sorted_member(self, key: str, score: float, member: str) -> None: ...

    async def range_by_score(self, key: str, minimum: float, maximum: float) -> list[str]: ...

    async def remove_by_score_range(self, key: str, minimum: float, maximum: float) -> int: ...

    async def ping(self) -> bool: ...


class MemorySampleStore:
    backend = "memory"

    def __init__(self) -> None:
        self._scalars: dict[str, str] = {}
        self._sorted: dict[str, list[tuple[float, str]]] = {}
        self._lock = asyncio.Lock()

    async def get_scalar(self, key: str) -> str | None:
        async with self._lock:
            return self._scalars.get(key)

    async def set_scalar(self, key: str, value: str) -> None:
        async with self._lock:
            self._scalars[key] = str(value)

    async def append_sorted_member(self, key: str, score: float, member: str) -> None:
        async with self._lock:
            entries = self._sorted.setdefault(key, [])
            # ZADD semantics: an existing member only has its score updated
            entries[:] = [entry for entry in entries if entry[1] != member]
            bisect.insort(entries, (score, member))

    async def range_by_score(self, key: str, minimum: float, maximum: float) -> list[str]:
        async with self._lock:
            entries = self._sorted.get(key, [])
            return [member for score, member in entries if minimum <= score <= maximum]

    async def remove_by_score_range(self, key: str, minimum: float, maximum: float) -> int:
        async with self._lock:
            entries = self._sorted.get(key, [])
            kept = [entry for entry in entries if not minimum <= entry[0] <= maximum]
            removed = len(entries) - len(kept)
            self._sorted[key] = kept
            return removed

    async def ping(self) -> bool:
        return True

    def clear(self) -> None:
        self._scalars.clear()
        self._sorted.clear()


class RedisSampleStore:
    backend = "redis"

    def __init__(self, url: str, timeout: float) -> None:
        self._redis = Redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )

    async def get_scalar(self, key: str) -> str | None:
        return await self._redis.get(key)

    async def set_scalar(self, key: str, value: str) -> None:
        await self._redis.set(key, value)

    async def append_sorted_member(self, key: str, score: float, member: str) -> None:
        await self._redis.zadd(key, {member: score})

    async def range_by_score(self, key: str, minimum: float, maximum: float) -> list[str]:
        members = await self._redis.zrangebyscore(key, minimum, maximum)
        return list(members or [])

    async def remove_by_score_range(self, key: str, minimum: float, maximum: float) -> int:
        return int(await self._redis.zremrangebyscore(key, minimum, maximum))

    async def ping(self) -> bool:
        return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()


class StoreProvider:
    def __init__(self) -> None:
        self._store: SampleStore | None = None
        self._url: str | None = None
        self._fallback = MemorySampleStore()

    def get(self, settings: Settings) -> SampleStore:
        if self._store is not None and self._url == settings.redis_url:
            return self._store
        self._url = settings.redis_url
        if settings.redis_url:
            self._store = RedisSampleStore(settings.redis_url, settings.store_timeout_seconds)
        else:
            logger.warning("store.unconfigured", fallback="memory")
            self._store = self._fallback
        return self._store

    async def close(self) -> None:
        if isinstance(self._store, RedisSampleStore):
            await self._store.close()
        self._store = None
        self._url = None

    def reset(self) -> None:
        self._store = None
        self._url = None
        self._fallback.clear()


store_provider = StoreProvider()
