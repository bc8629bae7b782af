from fastapi import APIRouter, Depends, Query

from sounddrop.schemas.common import Page
from sounddrop.schemas.samples import SampleRead
from sounddrop.schemas.stats import StatsResponse
from sounddrop.services.stats_service import StatsService, get_stats_service
from sounddrop.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()
trending_router = APIRouter()


@router.get("/", response_model=StatsResponse)
@router.get("", response_model=StatsResponse, include_in_schema=False)
async def stats_summary(
    service: StatsService = Depends(get_stats_service),
) -> StatsResponse:
    return await service.get_stats()


@trending_router.get("/", response_model=Page[SampleRead])
@trending_router.get("", response_model=Page[SampleRead], include_in_schema=False)
async def trending_samples(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    hours: int = Query(24, ge=1, le=24 * 365, description="Recency window in hours."),
    service: StatsService = Depends(get_stats_service),
) -> Page[SampleRead]:
    """Public samples ranked by play count, recent plays or all-time popular."""

    return await service.list_trending(hours=hours, page=page, limit=limit)
