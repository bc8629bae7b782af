"""Read-through caching for service methods.

Lookups try Redis (through :class:`~sounddrop.cache.CacheClient`) first and
fall back to the in-process TTL cache; writes go to both tiers.
:func:`sounddrop.cache.invalidate_catalog` clears the two together.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, Concatenate, ParamSpec, TypeVar, cast

from sounddrop.cache import CacheClient, local_cache_get, local_cache_set

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

KeyFor = Callable[Concatenate["CacheableService", P], str | None]
ServiceMethod = Callable[Concatenate["CacheableService", P], Awaitable[T]]


class CacheableService:
    def __init__(self, cache: CacheClient | None = None) -> None:
        self._cache = cache

    async def _cache_get(self, key: str) -> Any:
        if self._cache is not None:
            hit = await self._cache.get_json(key)
            if hit is not None:
                return hit
        return await local_cache_get(key)

    async def _cache_set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if value is None:
            return
        if self._cache is not None:
            await self._cache.set_json(key, value, ttl=ttl)
        await local_cache_set(key, value, ttl=ttl)


def cached(
    key_for: KeyFor[P],
    *,
    ttl: int | None = None,
    serializer: Callable[[T], Any] | None = None,
    deserializer: Callable[[Any], T] | None = None,
) -> Callable[[ServiceMethod], ServiceMethod]:
    """Cache the result of an async :class:`CacheableService` method.

    ``key_for`` is called with the method's arguments; a falsy key bypasses
    the cache for that call. Results are stored as ``serializer(result)`` and
    rebuilt with ``deserializer`` on a hit. ``None`` results are not stored.
    """

    def decorator(method: ServiceMethod) -> ServiceMethod:
        @wraps(method)
        async def wrapper(self: CacheableService, *args: P.args, **kwargs: P.kwargs) -> T:
            key = key_for(self, *args, **kwargs)
            if not key:
                return await method(self, *args, **kwargs)

            hit = await self._cache_get(key)
            if hit is not None:
                if deserializer is None:
                    return cast(T, hit)
                try:
                    return deserializer(hit)
                except ValueError as exc:
                    logger.warning("Ignoring stale cache entry %s: %s", key, exc)

            result = await method(self, *args, **kwargs)
            if result is not None:
                await self._cache_set(
                    key, serializer(result) if serializer is not None else result, ttl=ttl
                )
            return result

        return wrapper

    return decorator


__all__ = ["CacheableService", "cached"]
