from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from sounddrop.cache import CacheClient, local_cache_clear_all
from sounddrop.services.caching import CacheableService, cached


class _RecordingCache(CacheClient):
    def __init__(self) -> None:
        super().__init__(None)
        self.store: dict[str, object] = {}
        self.ttls: dict[str, int | None] = {}

    async def get_json(self, key: str):
        return self.store.get(key)

    async def set_json(self, key: str, value, ttl: int | None = None) -> None:
        self.store[key] = value
        self.ttls[key] = ttl


class _Greeter(CacheableService):
    def __init__(self, cache: CacheClient | None = None) -> None:
        super().__init__(cache=cache)
        self.calls: list[str] = []

    @cached(lambda _self, name: f"greeting:{name}" if name else None, ttl=42)
    async def greet(self, name: str) -> dict[str, str] | None:
        self.calls.append(name)
        if name == "nobody":
            return None
        return {"greeting": f"hello {name}"}

    @cached(
        lambda _self: "greeting:upper",
        serializer=lambda value: {"text": value},
        deserializer=lambda payload: payload["text"],
    )
    async def shout(self) -> str:
        self.calls.append("shout")
        return "HELLO"


@pytest_asyncio.fixture(autouse=True)
async def _clear_local_cache() -> AsyncIterator[None]:
    await local_cache_clear_all()
    yield
    await local_cache_clear_all()


@pytest.mark.asyncio
async def test_second_call_is_served_from_cache():
    cache = _RecordingCache()
    service = _Greeter(cache)

    assert await service.greet("ann") == {"greeting": "hello ann"}
    assert await service.greet("ann") == {"greeting": "hello ann"}

    assert service.calls == ["ann"]
    assert cache.ttls["greeting:ann"] == 42


@pytest.mark.asyncio
async def test_local_tier_serves_when_redis_is_disabled():
    first = _Greeter(cache=None)
    second = _Greeter(cache=None)

    await first.greet("bob")
    assert await second.greet("bob") == {"greeting": "hello bob"}

    assert second.calls == []


@pytest.mark.asyncio
async def test_none_results_and_blank_keys_are_not_cached():
    service = _Greeter(_RecordingCache())

    await service.greet("nobody")
    await service.greet("nobody")
    await service.greet("")
    await service.greet("")

    assert service.calls == ["nobody", "nobody", "", ""]


@pytest.mark.asyncio
async def test_serializer_and_deserializer_wrap_cached_payload():
    cache = _RecordingCache()
    service = _Greeter(cache)

    assert await service.shout() == "HELLO"
    assert cache.store["greeting:upper"] == {"text": "HELLO"}
    assert await service.shout() == "HELLO"
    assert service.calls == ["shout"]
