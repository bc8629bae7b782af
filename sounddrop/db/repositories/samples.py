"""Sample persistence: public listings, trending, search and play tracking."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import and_, asc, delete, desc, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from sounddrop.db.models import Favorite, Library, Sample, User
from sounddrop.db.repositories.base import (
    BaseRepository,
    contains_clause,
    visible_library_clause,
)
from sounddrop.services.errors import ConflictError

DUPLICATE_SAMPLE_MESSAGE = "A sample with this name already exists in the library"

SAMPLE_SORT_COLUMNS = {
    "createdAt": Sample.created_at,
    "updatedAt": Sample.updated_at,
    "name": Sample.name,
    "playCount": Sample.play_count,
    "duration": Sample.duration,
}

# Trending includes anything played more than this many times, regardless of recency.
TRENDING_ALL_TIME_PLAYS = 10


def sample_loaders() -> tuple[Any, ...]:
    """Eager loaders for a sample's library, owner and category."""

    return (
        selectinload(Sample.library).selectinload(Library.user),
        selectinload(Sample.library).selectinload(Library.category),
    )


class SampleRepository(BaseRepository):
    async def get(self, sample_id: str) -> Sample | None:
        stmt = (
            select(Sample)
            .where(Sample.id == sample_id)
            .options(*sample_loaders())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_visible(self, sample_id: str, viewer_id: str | None) -> Sample | None:
        """Load a sample only when its library is visible to ``viewer_id``."""

        stmt = (
            select(Sample)
            .join(Library)
            .where(Sample.id == sample_id, visible_library_clause(viewer_id))
            .options(*sample_loaders())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_visible(
        self,
        *,
        viewer_id: str | None,
        category_id: str | None,
        library_id: str | None,
        search: str | None,
        sort_by: str,
        sort_order: str,
        page: int,
        limit: int,
    ) -> tuple[Sequence[Sample], int]:
        stmt = (
            select(Sample)
            .join(Library, Sample.library_id == Library.id)
            .join(User, Library.user_id == User.id)
            .where(visible_library_clause(viewer_id))
        )
        if category_id is not None:
            stmt = stmt.where(Library.category_id == category_id)
        if library_id is not None:
            stmt = stmt.where(Sample.library_id == library_id)
        sample_match = contains_clause(Sample.name, search)
        if sample_match is not None:
            stmt = stmt.where(
                or_(
                    sample_match,
                    contains_clause(Library.name, search),
                    contains_clause(User.username, search),
                    contains_clause(User.display_name, search),
                )
            )

        column = SAMPLE_SORT_COLUMNS.get(sort_by, Sample.created_at)
        direction = asc if sort_order == "asc" else desc
        stmt = stmt.options(*sample_loaders()).order_by(direction(column), desc(Sample.id))
        return await self._paginate(stmt, page=page, limit=limit)

    async def list_trending(
        self, *, since: datetime, page: int, limit: int
    ) -> tuple[Sequence[Sample], int]:
        """Public samples played recently, or popular enough to stay listed."""

        recently_played = and_(Sample.updated_at >= since, Sample.play_count > 0)
        stmt = (
            select(Sample)
            .join(Library)
            .where(
                Library.is_public.is_(True),
                or_(recently_played, Sample.play_count > TRENDING_ALL_TIME_PLAYS),
            )
            .options(*sample_loaders())
            .order_by(desc(Sample.play_count), desc(Sample.updated_at), desc(Sample.id))
        )
        return await self._paginate(stmt, page=page, limit=limit)

    async def search_public(self, term: str, *, limit: int) -> Sequence[Sample]:
        stmt = (
            select(Sample)
            .join(Library)
            .where(
                Library.is_public.is_(True),
                or_(contains_clause(Sample.name, term), contains_clause(Library.name, term)),
            )
            .options(*sample_loaders())
            .order_by(desc(Sample.play_count), desc(Sample.created_at))
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def name_taken(self, library_id: str, name: str) -> bool:
        result = await self._session.execute(
            select(Sample.id)
            .where(Sample.library_id == library_id, Sample.name == name.strip())
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def create(
        self,
        *,
        library_id: str,
        name: str,
        file_url: str,
        duration: float,
        file_size: int,
        mime_type: str,
    ) -> Sample:
        sample = Sample(
            library_id=library_id,
            name=name,
            file_url=file_url,
            duration=duration,
            file_size=file_size,
            mime_type=mime_type,
            play_count=0,
        )
        self._session.add(sample)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ConflictError(DUPLICATE_SAMPLE_MESSAGE) from exc
        return sample

    async def delete(self, sample: Sample) -> None:
        await self._session.execute(
            delete(Favorite)
            .where(Favorite.sample_id == sample.id)
            .execution_options(synchronize_session=False)
        )
        await self._session.delete(sample)
        await self._session.flush()

    async def increment_play_count(self, sample_id: str) -> int | None:
        """Atomically add one play and return the new count (``None`` if missing)."""

        result = await self._session.execute(
            update(Sample)
            .where(Sample.id == sample_id)
            .values(play_count=Sample.play_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        play_count = await self._session.scalar(
            select(Sample.play_count).where(Sample.id == sample_id)
        )
        return int(play_count) if play_count is not None else None


__all__ = [
    "DUPLICATE_SAMPLE_MESSAGE",
    "SAMPLE_SORT_COLUMNS",
    "SampleRepository",
    "TRENDING_ALL_TIME_PLAYS",
    "sample_loaders",
]
