from __future__ import annotations

import logging

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from sounddrop.monitoring import _shorten, setup_query_monitoring


@pytest.mark.asyncio
async def test_statements_over_threshold_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    setup_query_monitoring(engine, slow_query_threshold=0.0)

    try:
        with caplog.at_level(logging.WARNING, logger="sounddrop.monitoring"):
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 42"))
    finally:
        await engine.dispose()

    assert "Slow query" in caplog.text
    assert "SELECT 42" in caplog.text


@pytest.mark.asyncio
async def test_fast_statements_stay_quiet(caplog: pytest.LogCaptureFixture) -> None:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    setup_query_monitoring(engine, slow_query_threshold=60.0)

    try:
        with caplog.at_level(logging.WARNING, logger="sounddrop.monitoring"):
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
    finally:
        await engine.dispose()

    assert "Slow query" not in caplog.text


def test_long_statements_are_truncated() -> None:
    shortened = _shorten("SELECT " + "x" * 1000)

    assert len(shortened) == 503
    assert shortened.endswith("...")
