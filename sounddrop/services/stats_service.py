"""Homepage statistics and the trending samples feed."""

from __future__ import annotations

from datetime import timedelta

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sounddrop.cache import STATS_TTL_SECONDS, CacheClient, get_cache_client, stats_key
from sounddrop.db.connection import get_db
from sounddrop.db.models import utcnow
from sounddrop.db.repositories.favorites import FavoriteRepository
from sounddrop.db.repositories.samples import SampleRepository
from sounddrop.db.repositories.stats import StatsRepository
from sounddrop.schemas.common import Page, PaginationMeta
from sounddrop.schemas.samples import SampleRead
from sounddrop.schemas.stats import StatsRaw, StatsResponse
from sounddrop.services.caching import CacheableService, cached
from sounddrop.services.presentation import sample_reads

RECENT_SAMPLES_WINDOW = timedelta(days=7)
DEFAULT_TRENDING_HOURS = 24


def format_count(value: int) -> str:
    """Abbreviate large counts for display: ``1.2K``, ``3.4M``."""

    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)


class StatsService(CacheableService):
    def __init__(
        self,
        stats: StatsRepository,
        samples: SampleRepository,
        favorites: FavoriteRepository,
        *,
        cache: CacheClient | None = None,
    ) -> None:
        super().__init__(cache=cache)
        self._stats = stats
        self._samples = samples
        self._favorites = favorites

    @cached(
        lambda _self: stats_key(),
        ttl=STATS_TTL_SECONDS,
        serializer=lambda response: response.model_dump(mode="json"),
        deserializer=StatsResponse.model_validate,
    )
    async def get_stats(self) -> StatsResponse:
        totals = await self._stats.site_totals(recent_since=utcnow() - RECENT_SAMPLES_WINDOW)
        return StatsResponse(
            total_samples=format_count(totals.samples),
            total_libraries=format_count(totals.libraries),
            total_users=format_count(totals.users),
            recent_samples=format_count(totals.recent_samples),
            raw=StatsRaw(
                total_samples=totals.samples,
                total_libraries=totals.libraries,
                total_users=totals.users,
                recent_samples=totals.recent_samples,
            ),
        )

    async def list_trending(
        self, *, hours: int = DEFAULT_TRENDING_HOURS, page: int, limit: int
    ) -> Page[SampleRead]:
        """Public samples played within ``hours``, plus all-time popular ones."""

        samples, total = await self._samples.list_trending(
            since=utcnow() - timedelta(hours=hours), page=page, limit=limit
        )
        favorite_counts = await self._favorites.counts_for_samples(
            sample.id for sample in samples
        )
        return Page[SampleRead](
            data=sample_reads(samples, favorite_counts=favorite_counts),
            pagination=PaginationMeta.build(total=total, page=page, limit=limit),
        )


async def get_stats_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> StatsService:
    return StatsService(
        StatsRepository(session),
        SampleRepository(session),
        FavoriteRepository(session),
        cache=cache,
    )


__all__ = ["StatsService", "format_count", "get_stats_service"]
