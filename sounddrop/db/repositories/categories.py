"""Category taxonomy queries, including public content counts."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import and_, desc, func, select
from sqlalchemy.orm import selectinload

from sounddrop.db.models import Category, Library, Sample
from sounddrop.db.repositories.base import BaseRepository


class CategoryRepository(BaseRepository):
    async def list_with_library_counts(self) -> list[tuple[Category, int]]:
        """Return every category in display order with its public library count."""

        stmt = (
            select(Category, func.count(Library.id))
            .outerjoin(
                Library,
                and_(Library.category_id == Category.id, Library.is_public.is_(True)),
            )
            .group_by(Category.id)
            .order_by(Category.display_order.asc(), Category.name.asc())
        )
        result = await self._session.execute(stmt)
        return [(category, int(count or 0)) for category, count in result.all()]

    async def get(self, category_id: str) -> Category | None:
        return await self._session.get(Category, category_id)

    async def get_by_slug(self, slug: str) -> Category | None:
        result = await self._session.execute(
            select(Category).where(Category.slug == slug.strip().lower())
        )
        return result.scalar_one_or_none()

    async def public_counts(self, category_id: str) -> tuple[int, int, int]:
        """Return ``(samples, libraries, contributors)`` over public libraries.

        Statements run one after another on the shared session; an
        ``AsyncSession`` does not support concurrent operations.
        """

        public_in_category = and_(
            Library.category_id == category_id, Library.is_public.is_(True)
        )

        sample_count = await self._session.scalar(
            select(func.count(Sample.id)).join(Library).where(public_in_category)
        )
        library_count = await self._session.scalar(
            select(func.count(Library.id)).where(public_in_category)
        )
        contributor_count = await self._session.scalar(
            select(func.count(func.distinct(Library.user_id))).where(public_in_category)
        )
        return int(sample_count or 0), int(library_count or 0), int(contributor_count or 0)

    async def trending_samples(self, category_id: str, *, limit: int = 5) -> Sequence[Sample]:
        stmt = (
            select(Sample)
            .join(Library)
            .where(Library.category_id == category_id, Library.is_public.is_(True))
            .options(
                selectinload(Sample.library).selectinload(Library.user),
                selectinload(Sample.library).selectinload(Library.category),
            )
            .order_by(desc(Sample.play_count), desc(Sample.created_at))
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def existing_slugs(self) -> set[str]:
        result = await self._session.execute(select(Category.slug))
        return set(result.scalars().all())

    async def add_all(self, categories: Sequence[Category]) -> None:
        self._session.add_all(categories)
        await self._session.flush()


__all__ = ["CategoryRepository"]
