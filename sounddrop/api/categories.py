"""FastAPI router exposing the category taxonomy."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from sounddrop.schemas.categories import CategoryListResponse
from sounddrop.schemas.stats import CategoryDetailResponse
from sounddrop.services.category_service import CategoryService, get_category_service

router = APIRouter()


@router.get("/", response_model=CategoryListResponse)
@router.get("", response_model=CategoryListResponse, include_in_schema=False)
async def list_categories(
    service: CategoryService = Depends(get_category_service),
) -> CategoryListResponse:
    """Return every category in display order with its public library count."""

    return await service.list_categories()


@router.get("/{slug}", response_model=CategoryDetailResponse)
async def get_category(
    slug: str,
    service: CategoryService = Depends(get_category_service),
) -> CategoryDetailResponse:
    detail = await service.get_category_detail(slug)
    if detail is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return detail
