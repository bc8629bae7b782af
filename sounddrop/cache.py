from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Sequence
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from sounddrop.settings import get_settings

logger = logging.getLogger(__name__)

_DEFAULT_TTL_SECONDS = 600
_CATEGORY_LIST_KEY = "categories:list"
_CATEGORY_DETAIL_PREFIX = "categories:detail"
_STATS_KEY = "stats:summary"

CATEGORY_LIST_TTL_SECONDS = 600
CATEGORY_DETAIL_TTL_SECONDS = 60
STATS_TTL_SECONDS = 300

# Fallback tier used when Redis is unavailable: key -> (expiry timestamp, value).
_LOCAL_DEFAULT_TTL_SECONDS = 300
_local_entries: dict[str, tuple[float, Any]] = {}
_local_lock = asyncio.Lock()

_redis_client: Redis | None = None
_client_lock = asyncio.Lock()
_redis_disabled_until: float = 0.0

_REDIS_UNAVAILABLE = (RedisConnectionError, RedisTimeoutError, OSError)


async def local_cache_get(key: str) -> Any | None:
    async with _local_lock:
        entry = _local_entries.get(key)
        if entry is not None and entry[0] < time.time():
            del _local_entries[key]
            entry = None
    return None if entry is None else entry[1]


async def local_cache_set(key: str, value: Any, ttl: int | None = None) -> None:
    """Store ``value`` locally; a missing or non-positive ``ttl`` uses the default."""
    lifetime = ttl if ttl and ttl > 0 else _LOCAL_DEFAULT_TTL_SECONDS
    async with _local_lock:
        _local_entries[key] = (time.time() + lifetime, value)


async def local_cache_evict(
    *,
    keys: Sequence[str] = (),
    prefixes: Sequence[str] = (),
) -> None:
    """Drop local entries named in ``keys`` or starting with any of ``prefixes``."""
    async with _local_lock:
        doomed = set(keys) | {
            key for key in _local_entries if prefixes and key.startswith(tuple(prefixes))
        }
        for key in doomed:
            _local_entries.pop(key, None)


async def local_cache_clear_all() -> None:
    async with _local_lock:
        _local_entries.clear()


def category_list_key() -> str:
    return _CATEGORY_LIST_KEY


def category_detail_key(slug: str) -> str:
    return f"{_CATEGORY_DETAIL_PREFIX}:{slug.strip().lower()}"


def stats_key() -> str:
    return _STATS_KEY


async def get_redis() -> Redis | None:
    """Get the shared Redis client, returning None while Redis is unreachable.

    A failed connection attempt disables Redis for ``REDIS_RETRY_BACKOFF_SECONDS``
    so request handlers do not pay the connect timeout on every call.
    """
    global _redis_client, _redis_disabled_until

    if time.monotonic() < _redis_disabled_until:
        return None

    async with _client_lock:
        if _redis_client is not None:
            return _redis_client

        if time.monotonic() < _redis_disabled_until:
            return None

        settings = get_settings()
        client: Redis = Redis.from_url(
            settings.redis_url, decode_responses=True, encoding="utf-8"
        )
        try:
            await client.ping()
        except _REDIS_UNAVAILABLE as exc:
            logger.warning("Redis connection failed: %s. Caching will use local fallback.", exc)
            await client.aclose()
            _redis_disabled_until = time.monotonic() + settings.redis_retry_backoff_seconds
            return None

        _redis_client = client
        logger.info("Redis connection established successfully")
        return _redis_client


class CacheClient:
    def __init__(self, redis: Redis | None) -> None:
        self._redis = redis

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def get_json(self, key: str) -> Any:
        if self._redis is None:
            return None
        try:
            payload = await self._redis.get(key)
        except _REDIS_UNAVAILABLE as exc:
            logger.debug("Redis get failed for key %s: %s", key, exc)
            return None
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._redis is None:
            return
        encoded = json.dumps(value, default=str)
        try:
            await self._redis.set(key, encoded, ex=ttl or _DEFAULT_TTL_SECONDS)
        except _REDIS_UNAVAILABLE as exc:
            logger.debug("Redis set failed for key %s: %s", key, exc)

    async def delete(self, *keys: str) -> None:
        if self._redis is None or not keys:
            return
        try:
            await self._redis.delete(*keys)
        except _REDIS_UNAVAILABLE as exc:
            logger.debug("Redis delete failed: %s", exc)

    async def delete_pattern(self, pattern: str) -> None:
        if self._redis is None:
            return
        try:
            async for key in self._redis.scan_iter(match=pattern):
                await self._redis.delete(key)
        except _REDIS_UNAVAILABLE as exc:
            logger.debug("Redis delete_pattern failed for %s: %s", pattern, exc)


async def get_cache_client() -> CacheClient:
    redis = await get_redis()
    return CacheClient(redis)


async def close_redis() -> None:
    """Close the global Redis connection gracefully."""
    global _redis_client, _redis_disabled_until
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    _redis_disabled_until = 0.0


async def invalidate_catalog(cache: CacheClient | None) -> None:
    """Drop cached category listings, category details and the stats summary.

    Called after any library or sample mutation since those change public
    counts shown on the homepage and category pages.
    """

    if cache is not None:
        await cache.delete(_CATEGORY_LIST_KEY, _STATS_KEY)
        await cache.delete_pattern(f"{_CATEGORY_DETAIL_PREFIX}:*")

    await local_cache_evict(
        keys=[_CATEGORY_LIST_KEY, _STATS_KEY],
        prefixes=[_CATEGORY_DETAIL_PREFIX],
    )


__all__ = [
    "CATEGORY_DETAIL_TTL_SECONDS",
    "CATEGORY_LIST_TTL_SECONDS",
    "CacheClient",
    "STATS_TTL_SECONDS",
    "category_detail_key",
    "category_list_key",
    "close_redis",
    "get_cache_client",
    "get_redis",
    "invalidate_catalog",
    "local_cache_clear_all",
    "local_cache_evict",
    "local_cache_get",
    "local_cache_set",
    "stats_key",
]
