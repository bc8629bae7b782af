"""Library persistence: visibility-aware listing, CRUD and sample sub-listing."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import and_, asc, delete, desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from sounddrop.db.models import Favorite, Library, Sample, library_name_key
from sounddrop.db.repositories.base import (
    BaseRepository,
    contains_clause,
    visible_library_clause,
)
from sounddrop.db.repositories.samples import SAMPLE_SORT_COLUMNS, sample_loaders
from sounddrop.services.errors import ConflictError

DUPLICATE_LIBRARY_MESSAGE = "You already have a library with this name"


def _library_loaders() -> tuple[Any, ...]:
    return (selectinload(Library.user), selectinload(Library.category))


class LibraryRepository(BaseRepository):
    async def get(self, library_id: str, *, with_samples: bool = False) -> Library | None:
        """Load a library with owner and category (and samples on request)."""

        options = list(_library_loaders())
        if with_samples:
            options.append(selectinload(Library.samples))
        stmt = (
            select(Library)
            .where(Library.id == library_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def name_taken(
        self, user_id: str, name: str, *, exclude_library_id: str | None = None
    ) -> bool:
        stmt = select(Library.id).where(
            Library.user_id == user_id, Library.name_key == library_name_key(name)
        )
        if exclude_library_id is not None:
            stmt = stmt.where(Library.id != exclude_library_id)
        result = await self._session.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    async def list_visible(
        self,
        *,
        viewer_id: str | None,
        owner_id: str | None,
        category_id: str | None,
        search: str | None,
        page: int,
        limit: int,
    ) -> tuple[Sequence[Library], int]:
        """Page through libraries the viewer may see, newest first.

        Filters narrow the visible set; the search term never widens it.
        """

        conditions = [visible_library_clause(viewer_id)]
        if owner_id is not None:
            conditions.append(Library.user_id == owner_id)
        if category_id is not None:
            conditions.append(Library.category_id == category_id)
        name_match = contains_clause(Library.name, search)
        if name_match is not None:
            conditions.append(or_(name_match, contains_clause(Library.description, search)))

        stmt = (
            select(Library)
            .where(and_(*conditions))
            .options(*_library_loaders())
            .order_by(desc(Library.created_at), desc(Library.id))
        )
        return await self._paginate(stmt, page=page, limit=limit)

    async def sample_counts(self, library_ids: Iterable[str]) -> dict[str, int]:
        ids = list(library_ids)
        if not ids:
            return {}
        stmt = (
            select(Sample.library_id, func.count(Sample.id))
            .where(Sample.library_id.in_(ids))
            .group_by(Sample.library_id)
        )
        result = await self._session.execute(stmt)
        return {library_id: int(count) for library_id, count in result.all()}

    async def create(
        self,
        *,
        user_id: str,
        category_id: str,
        name: str,
        description: str | None,
        icon_url: str | None,
        is_public: bool,
    ) -> Library:
        library = Library(
            name=name,
            description=description,
            icon_url=icon_url,
            user_id=user_id,
            category_id=category_id,
            is_public=is_public,
        )
        self._session.add(library)
        await self._flush_unique()
        return library

    async def update(self, library: Library, changes: dict[str, Any]) -> Library:
        for field, value in changes.items():
            setattr(library, field, value)
        await self._flush_unique()
        return library

    async def delete(self, library: Library) -> int:
        """Delete a library with its samples and their favorites.

        Returns the number of samples removed.  Explicit deletes keep the
        cascade independent of database-level foreign key enforcement.
        """

        sample_ids = select(Sample.id).where(Sample.library_id == library.id)
        sample_total = await self._session.scalar(
            select(func.count()).select_from(sample_ids.subquery())
        )
        await self._session.execute(
            delete(Favorite)
            .where(Favorite.sample_id.in_(sample_ids))
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(
            delete(Sample)
            .where(Sample.library_id == library.id)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(
            delete(Library)
            .where(Library.id == library.id)
            .execution_options(synchronize_session=False)
        )
        self._session.expunge(library)
        return int(sample_total or 0)

    async def list_samples(
        self,
        library_id: str,
        *,
        search: str | None,
        sort_by: str,
        sort_order: str,
        page: int,
        limit: int,
    ) -> tuple[Sequence[Sample], int]:
        stmt = select(Sample).where(Sample.library_id == library_id)
        name_match = contains_clause(Sample.name, search)
        if name_match is not None:
            stmt = stmt.where(name_match)

        column = SAMPLE_SORT_COLUMNS.get(sort_by, Sample.created_at)
        direction = asc if sort_order == "asc" else desc
        stmt = stmt.options(*sample_loaders()).order_by(direction(column), desc(Sample.id))
        return await self._paginate(stmt, page=page, limit=limit)

    async def search_public(self, term: str, *, limit: int) -> Sequence[Library]:
        stmt = (
            select(Library)
            .where(Library.is_public.is_(True), contains_clause(Library.name, term))
            .options(*_library_loaders())
            .order_by(desc(Library.updated_at))
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def _flush_unique(self) -> None:
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ConflictError(DUPLICATE_LIBRARY_MESSAGE) from exc


__all__ = ["DUPLICATE_LIBRARY_MESSAGE", "LibraryRepository"]
