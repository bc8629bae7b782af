"""Base repository utilities shared by the per-resource repositories."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from sounddrop.db.models import Library

RowT = TypeVar("RowT")


def visible_library_clause(viewer_id: str | None) -> ColumnElement[bool]:
    """Public libraries plus, for a signed-in viewer, their own private ones."""

    if viewer_id is None:
        return Library.is_public.is_(True)
    return or_(Library.is_public.is_(True), Library.user_id == viewer_id)


def contains_clause(column: Any, term: str | None) -> ColumnElement[bool] | None:
    """Case-insensitive substring match, or ``None`` when ``term`` is blank."""

    if term is None or not term.strip():
        return None
    return column.ilike(f"%{escape_like(term.strip())}%", escape="\\")


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BaseRepository:
    """Base repository holding the request-scoped session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def _count(self, stmt: Select[Any]) -> int:
        """Return the number of rows ``stmt`` would produce, ignoring ordering."""

        count_stmt = select(func.count()).select_from(
            stmt.order_by(None).limit(None).offset(None).subquery()
        )
        result = await self._session.execute(count_stmt)
        return int(result.scalar_one() or 0)

    async def _paginate(
        self, stmt: Select[tuple[RowT]], *, page: int, limit: int
    ) -> tuple[Sequence[RowT], int]:
        """Return one page of ORM entities from ``stmt`` along with the total count."""

        total = await self._count(stmt)
        offset = (page - 1) * limit
        result = await self._session.execute(stmt.offset(offset).limit(limit))
        return result.scalars().unique().all(), total


__all__ = [
    "BaseRepository",
    "contains_clause",
    "escape_like",
    "visible_library_clause",
]
