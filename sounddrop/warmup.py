"""Startup warmup so the first request does not pay connection setup costs.

Each step logs its timing and degrades to a warning on failure; the API still
starts when the database or Redis is slow to come up.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from sounddrop.db.connection import begin_engine_transaction

logger = logging.getLogger(__name__)


async def warmup_database(
    resolve_engine: Callable[[], AsyncEngine] | None = None,
) -> None:
    """Open a pooled connection and issue ``SELECT 1``."""

    try:
        if resolve_engine is None:
            from sounddrop.db.connection import get_engine as resolve_engine

        start = time.perf_counter()
        engine = resolve_engine()
        async with begin_engine_transaction(engine) as conn:
            await conn.execute(text("SELECT 1"))

        elapsed = (time.perf_counter() - start) * 1000
        logger.info("Database connection warmed up (%.0fms)", elapsed)
    except Exception as exc:
        logger.warning("Database warmup failed: %s", exc)


async def warmup_redis() -> None:
    from sounddrop.cache import get_redis

    try:
        start = time.perf_counter()
        redis = await get_redis()
        if redis is None:
            logger.info("Redis warmup skipped (connection unavailable)")
            return

        await redis.ping()
        elapsed = (time.perf_counter() - start) * 1000
        logger.info("Redis connection warmed up (%.0fms)", elapsed)
    except Exception as exc:
        logger.warning("Redis warmup failed: %s", exc)


async def warmup_repository_queries() -> None:
    """Prime ORM mappers and loader strategies with a cheap category listing."""

    from sounddrop.db.connection import get_async_session_context
    from sounddrop.db.repositories import CategoryRepository

    try:
        start = time.perf_counter()
        async with get_async_session_context() as session:
            await CategoryRepository(session).list_with_library_counts()
        elapsed = (time.perf_counter() - start) * 1000
        logger.info("Repository warmup executed (%.0fms)", elapsed)
    except Exception as exc:
        logger.warning("Repository warmup failed: %s", exc)


async def warmup_all(
    resolve_engine: Callable[[], AsyncEngine] | None = None,
) -> None:
    logger.info("Warming up database and cache connections...")
    start = time.perf_counter()

    await warmup_database(resolve_engine=resolve_engine)
    await warmup_redis()
    await warmup_repository_queries()

    total_elapsed = (time.perf_counter() - start) * 1000
    logger.info("Warmup complete (%.0fms)", total_elapsed)


__all__ = ["warmup_all", "warmup_database", "warmup_redis", "warmup_repository_queries"]
