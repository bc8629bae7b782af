"""Search endpoint backing the command palette."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from sounddrop.schemas.stats import SearchResponse
from sounddrop.services.search_service import SearchService, get_search_service

router = APIRouter()


@router.get("/", response_model=SearchResponse)
@router.get("", response_model=SearchResponse, include_in_schema=False)
async def search(
    q: str | None = Query(None, description="Search term; at least two characters."),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    return await service.search(q)
