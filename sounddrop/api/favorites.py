"""FastAPI router exposing the caller's favorite samples."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from sounddrop.auth import Principal, require_principal
from sounddrop.schemas.common import Page
from sounddrop.schemas.favorites import (
    FavoriteCreate,
    FavoriteDeleteResponse,
    FavoriteRead,
)
from sounddrop.services.errors import ConflictError
from sounddrop.services.favorite_service import FavoriteService, get_favorite_service
from sounddrop.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()


@router.get("/", response_model=Page[FavoriteRead])
@router.get("", response_model=Page[FavoriteRead], include_in_schema=False)
async def list_favorites(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    principal: Principal = Depends(require_principal),
    service: FavoriteService = Depends(get_favorite_service),
) -> Page[FavoriteRead]:
    """Return the caller's favorites, newest first."""

    return await service.list_favorites(principal, page=page, limit=limit)


@router.post("/", response_model=FavoriteRead, status_code=status.HTTP_201_CREATED)
@router.post(
    "",
    response_model=FavoriteRead,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def add_favorite(
    payload: FavoriteCreate,
    principal: Principal = Depends(require_principal),
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteRead:
    try:
        return await service.add_favorite(principal, payload)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.get("/{favorite_id}", response_model=FavoriteRead)
async def get_favorite(
    favorite_id: str,
    principal: Principal = Depends(require_principal),
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteRead:
    try:
        return await service.get_favorite(favorite_id, principal)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/{favorite_id}", response_model=FavoriteDeleteResponse)
async def remove_favorite(
    favorite_id: str,
    principal: Principal = Depends(require_principal),
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteDeleteResponse:
    try:
        return await service.remove_favorite(favorite_id, principal)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
