"""Database operations for user favorites."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from sounddrop.db.models import Favorite, Library, Sample
from sounddrop.db.repositories.base import BaseRepository
from sounddrop.services.errors import ConflictError

ALREADY_FAVORITED_MESSAGE = "Sample already in favorites"


def _favorite_loaders() -> tuple[Any, ...]:
    library_loader = selectinload(Favorite.sample).selectinload(Sample.library)
    return (
        library_loader.selectinload(Library.user),
        library_loader.selectinload(Library.category),
    )


class FavoriteRepository(BaseRepository):
    async def list_for_user(
        self, user_id: str, *, page: int, limit: int
    ) -> tuple[Sequence[Favorite], int]:
        stmt = (
            select(Favorite)
            .where(Favorite.user_id == user_id)
            .options(*_favorite_loaders())
            .order_by(desc(Favorite.created_at), desc(Favorite.id))
        )
        return await self._paginate(stmt, page=page, limit=limit)

    async def get_for_user(self, favorite_id: str, user_id: str) -> Favorite | None:
        stmt = (
            select(Favorite)
            .where(Favorite.id == favorite_id, Favorite.user_id == user_id)
            .options(*_favorite_loaders())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, user_id: str, sample_id: str) -> bool:
        result = await self._session.execute(
            select(Favorite.id)
            .where(Favorite.user_id == user_id, Favorite.sample_id == sample_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def create(self, user_id: str, sample_id: str) -> Favorite:
        """Insert the favorite; the unique constraint turns a lost race into a conflict."""

        favorite = Favorite(user_id=user_id, sample_id=sample_id)
        self._session.add(favorite)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ConflictError(ALREADY_FAVORITED_MESSAGE) from exc
        return favorite

    async def delete(self, favorite: Favorite) -> None:
        await self._session.delete(favorite)
        await self._session.flush()

    async def counts_for_samples(self, sample_ids: Iterable[str]) -> dict[str, int]:
        ids = list(dict.fromkeys(sample_ids))
        if not ids:
            return {}
        stmt = (
            select(Favorite.sample_id, func.count(Favorite.id))
            .where(Favorite.sample_id.in_(ids))
            .group_by(Favorite.sample_id)
        )
        result = await self._session.execute(stmt)
        return {sample_id: int(count) for sample_id, count in result.all()}

    async def favorited_sample_ids(
        self, user_id: str | None, sample_ids: Iterable[str]
    ) -> set[str]:
        ids = list(dict.fromkeys(sample_ids))
        if user_id is None or not ids:
            return set()
        stmt = select(Favorite.sample_id).where(
            Favorite.user_id == user_id, Favorite.sample_id.in_(ids)
        )
        result = await self._session.execute(stmt)
        return set(result.scalars().all())


__all__ = ["ALREADY_FAVORITED_MESSAGE", "FavoriteRepository"]
