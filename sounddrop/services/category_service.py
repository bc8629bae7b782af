"""Category listings and category detail pages with short-lived caching."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sounddrop.cache import (
    CATEGORY_DETAIL_TTL_SECONDS,
    CATEGORY_LIST_TTL_SECONDS,
    CacheClient,
    category_detail_key,
    category_list_key,
    get_cache_client,
)
from sounddrop.db.connection import get_db
from sounddrop.db.repositories.categories import CategoryRepository
from sounddrop.db.repositories.favorites import FavoriteRepository
from sounddrop.schemas.categories import CategoryListResponse, CategoryStats
from sounddrop.schemas.stats import CategoryDetailResponse
from sounddrop.services.caching import CacheableService, cached
from sounddrop.services.presentation import category_with_counts, sample_reads

TRENDING_SAMPLES_PER_CATEGORY = 5


class CategoryService(CacheableService):
    def __init__(
        self,
        categories: CategoryRepository,
        favorites: FavoriteRepository,
        *,
        cache: CacheClient | None = None,
    ) -> None:
        super().__init__(cache=cache)
        self._categories = categories
        self._favorites = favorites

    @cached(
        lambda _self: category_list_key(),
        ttl=CATEGORY_LIST_TTL_SECONDS,
        serializer=lambda response: response.model_dump(mode="json"),
        deserializer=CategoryListResponse.model_validate,
    )
    async def list_categories(self) -> CategoryListResponse:
        rows = await self._categories.list_with_library_counts()
        return CategoryListResponse(
            data=[category_with_counts(category, count) for category, count in rows]
        )

    @cached(
        lambda _self, slug: category_detail_key(slug),
        ttl=CATEGORY_DETAIL_TTL_SECONDS,
        serializer=lambda response: response.model_dump(mode="json"),
        deserializer=CategoryDetailResponse.model_validate,
    )
    async def get_category_detail(self, slug: str) -> CategoryDetailResponse | None:
        """Return the category with public counts and its most played samples."""

        category = await self._categories.get_by_slug(slug)
        if category is None:
            return None

        sample_count, library_count, contributor_count = (
            await self._categories.public_counts(category.id)
        )
        trending = await self._categories.trending_samples(
            category.id, limit=TRENDING_SAMPLES_PER_CATEGORY
        )
        favorite_counts = await self._favorites.counts_for_samples(
            sample.id for sample in trending
        )
        return CategoryDetailResponse(
            category=category_with_counts(category, library_count),
            stats=CategoryStats(
                sample_count=sample_count,
                library_count=library_count,
                contributor_count=contributor_count,
            ),
            trending_samples=sample_reads(trending, favorite_counts=favorite_counts),
        )


async def get_category_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> CategoryService:
    return CategoryService(
        CategoryRepository(session), FavoriteRepository(session), cache=cache
    )


__all__ = ["CategoryService", "get_category_service"]
