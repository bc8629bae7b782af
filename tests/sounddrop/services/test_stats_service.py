from __future__ import annotations

import pytest
import pytest_asyncio

from sounddrop.cache import local_cache_clear_all
from sounddrop.db.repositories.favorites import FavoriteRepository
from sounddrop.db.repositories.samples import SampleRepository
from sounddrop.db.repositories.stats import SiteTotals
from sounddrop.services.stats_service import StatsService, format_count


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0"),
        (999, "999"),
        (1_000, "1.0K"),
        (1_234, "1.2K"),
        (999_999, "1000.0K"),
        (1_000_000, "1.0M"),
        (2_560_000, "2.6M"),
    ],
)
def test_format_count(value, expected):
    assert format_count(value) == expected


class _CountingStatsRepository:
    def __init__(self, totals: SiteTotals) -> None:
        self.totals = totals
        self.calls = 0

    async def site_totals(self, *, recent_since):
        self.calls += 1
        return self.totals


@pytest_asyncio.fixture
async def stats_service(session):
    await local_cache_clear_all()
    repository = _CountingStatsRepository(
        SiteTotals(samples=1_500, libraries=12, users=3_400_000, recent_samples=7)
    )
    service = StatsService(
        repository, SampleRepository(session), FavoriteRepository(session), cache=None
    )
    yield service, repository
    await local_cache_clear_all()


@pytest.mark.asyncio
async def test_stats_are_formatted_and_cached_locally(stats_service):
    service, repository = stats_service

    first = await service.get_stats()
    second = await service.get_stats()

    assert first.total_samples == "1.5K"
    assert first.total_libraries == "12"
    assert first.total_users == "3.4M"
    assert first.raw.recent_samples == 7
    assert second == first
    assert repository.calls == 1


@pytest.mark.asyncio
async def test_trending_is_empty_without_plays(stats_service):
    service, _ = stats_service

    page = await service.list_trending(page=1, limit=5)

    assert page.data == []
    assert page.pagination.total == 0
    assert page.pagination.has_next_page is False
