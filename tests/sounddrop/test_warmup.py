"""Regression tests for startup warmup routines."""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import AsyncMock

import pytest

import sounddrop.cache as cache_module
import sounddrop.warmup as warmup


class _DummyTransaction:
    """Async context manager handing out a mocked connection."""

    def __init__(self) -> None:
        self.connection: AsyncMock = AsyncMock()

    async def __aenter__(self) -> AsyncMock:
        return self.connection

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: Any,
    ) -> bool:
        return False


@pytest.mark.asyncio
async def test_warmup_database_executes_ping(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    caplog.set_level(logging.INFO)
    dummy_txn = _DummyTransaction()
    sentinel_engine = object()
    captured_engines: list[object] = []

    def _capture_engine(engine: object) -> _DummyTransaction:
        captured_engines.append(engine)
        return dummy_txn

    monkeypatch.setattr(warmup, "begin_engine_transaction", _capture_engine)

    await warmup.warmup_database(resolve_engine=lambda: sentinel_engine)

    assert captured_engines == [sentinel_engine]
    executed_statement = dummy_txn.connection.execute.await_args.args[0]
    assert str(executed_statement).strip().upper() == "SELECT 1"
    assert "Database connection warmed up" in caplog.text


@pytest.mark.asyncio
async def test_warmup_database_failure_is_logged_not_raised(
    caplog: pytest.LogCaptureFixture,
) -> None:
    def _broken_engine() -> object:
        raise RuntimeError("database offline")

    with caplog.at_level(logging.WARNING):
        await warmup.warmup_database(resolve_engine=_broken_engine)

    assert "Database warmup failed: database offline" in caplog.text


@pytest.mark.asyncio
async def test_warmup_redis_skips_when_unavailable(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    caplog.set_level(logging.INFO)
    monkeypatch.setattr(cache_module, "get_redis", AsyncMock(return_value=None))

    await warmup.warmup_redis()

    assert "Redis warmup skipped" in caplog.text


@pytest.mark.asyncio
async def test_warmup_redis_pings_live_client(monkeypatch: pytest.MonkeyPatch) -> None:
    client = AsyncMock()
    monkeypatch.setattr(cache_module, "get_redis", AsyncMock(return_value=client))

    await warmup.warmup_redis()

    client.ping.assert_awaited_once()


@pytest.mark.asyncio
async def test_warmup_all_runs_each_step(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    async def _database(resolve_engine=None) -> None:
        calls.append("database")

    async def _redis() -> None:
        calls.append("redis")

    async def _queries() -> None:
        calls.append("queries")

    monkeypatch.setattr(warmup, "warmup_database", _database)
    monkeypatch.setattr(warmup, "warmup_redis", _redis)
    monkeypatch.setattr(warmup, "warmup_repository_queries", _queries)

    await warmup.warmup_all()

    assert calls == ["database", "redis", "queries"]
