"""Slow query logging for the SoundDrop API.

Listeners are attached to the sync engine behind an :class:`AsyncEngine` and
log any statement whose cursor execution exceeds the configured threshold.
"""

import logging
import time
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

_MAX_LOGGED_STATEMENT = 500
_START_TIMES_KEY = "sounddrop_query_started"


def _shorten(statement: str) -> str:
    if len(statement) <= _MAX_LOGGED_STATEMENT:
        return statement
    return statement[:_MAX_LOGGED_STATEMENT] + "..."


def setup_query_monitoring(engine: AsyncEngine, slow_query_threshold: float = 0.1) -> None:
    """Warn about statements slower than ``slow_query_threshold`` seconds."""
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _started(conn: Any, cursor: Any, statement: str, *args: Any) -> None:
        conn.info.setdefault(_START_TIMES_KEY, []).append(time.perf_counter())

    @event.listens_for(sync_engine, "after_cursor_execute")
    def _finished(conn: Any, cursor: Any, statement: str, *args: Any) -> None:
        elapsed = time.perf_counter() - conn.info[_START_TIMES_KEY].pop()
        if elapsed > slow_query_threshold:
            logger.warning(
                "Slow query (%.3fs > %.3fs): %s",
                elapsed,
                slow_query_threshold,
                _shorten(statement),
            )

    logger.debug("Slow query logging enabled at %.3fs", slow_query_threshold)
