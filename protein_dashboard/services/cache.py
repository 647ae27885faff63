import asyncio
import hashlib
import math
import pickle
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import redis
from loguru import logger

from protein_dashboard.core.config import settings


@dataclass
class CacheEntry:
    data: Any
    timestamp: float


class ResultCache:
    """In-memory query result cache with per-entry TTL.

    Each entry schedules its own removal when it is stored (if an event
    loop is running); lookups also check the age against ``clock`` so an
    expired entry is never served even if its timer has not fired yet.
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._last_search_key: Optional[str] = None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() - entry.timestamp < self.ttl:
            return entry.data
        self.delete(key)
        return None

    def set(self, key: str, data: Any) -> None:
        self._cancel_timer(key)
        self._entries[key] = CacheEntry(data=data, timestamp=self.clock())
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timers[key] = loop.call_later(self.ttl, self._expire, key)

    def delete(self, key: str) -> None:
        self._cancel_timer(key)
        self._entries.pop(key, None)

    def begin_search(self, search_key: str, page: int) -> bool:
        """Register the search about to run; returns True if the cache was cleared.

        A new page-1 search that differs from the previous one drops every
        entry so results from an abandoned search never leak into it.
        """
        cleared = False
        if page == 1 and self._last_search_key is not None and search_key != self._last_search_key:
            self.clear()
            cleared = True
        self._last_search_key = search_key
        return cleared

    def clear(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._entries.clear()

    def _expire(self, key: str) -> None:
        self._timers.pop(key, None)
        self._entries.pop(key, None)

    def _cancel_timer(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()


class RedisResultCache:
    """Same contract as ResultCache, stored in Redis under a namespace"""

    def __init__(self, redis_client, namespace: str, ttl: float = 300.0):
        self.redis_client = redis_client
        self.prefix = f"protein-dashboard:{namespace}:"
        self.ttl = ttl
        self._last_search_key: Optional[str] = None

    def _key(self, key: str) -> str:
        return self.prefix + hashlib.sha256(key.encode()).hexdigest()

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self.redis_client.get(self._key(key))
            if value:
                return pickle.loads(value)
            return None
        except redis.RedisError as e:
            logger.error(f"Cache get error for {key}: {e}")
            return None

    def set(self, key: str, data: Any) -> None:
        try:
            self.redis_client.setex(self._key(key), math.ceil(self.ttl), pickle.dumps(data))
        except redis.RedisError as e:
            logger.error(f"Cache set error for {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self.redis_client.delete(self._key(key))
        except redis.RedisError as e:
            logger.error(f"Cache delete error for {key}: {e}")

    def begin_search(self, search_key: str, page: int) -> bool:
        cleared = False
        if page == 1 and self._last_search_key is not None and search_key != self._last_search_key:
            self.clear()
            cleared = True
        self._last_search_key = search_key
        return cleared

    def clear(self) -> None:
        try:
            keys = list(self.redis_client.scan_iter(match=self.prefix + "*"))
            if keys:
                self.redis_client.delete(*keys)
        except redis.RedisError as e:
            logger.error(f"Cache clear error for {self.prefix}: {e}")


_redis_client = None


def build_result_cache(namespace: str):
    """Cache for one query service, backed by the configured CACHE_BACKEND"""
    global _redis_client
    if settings.CACHE_BACKEND == "redis":
        if _redis_client is None:
            _redis_client = redis.from_url(settings.REDIS_URL)
        return RedisResultCache(_redis_client, namespace, ttl=settings.CACHE_TTL_SECONDS)
    return ResultCache(ttl=settings.CACHE_TTL_SECONDS)
