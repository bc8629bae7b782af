"""FastAPI router exposing CRUD operations for libraries."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from sounddrop.auth import Principal, get_optional_principal, require_principal
from sounddrop.schemas.common import Page
from sounddrop.schemas.libraries import (
    LibraryCreate,
    LibraryCreateResponse,
    LibraryDeleteResponse,
    LibraryDetail,
    LibraryRead,
    LibraryUpdate,
)
from sounddrop.schemas.samples import SampleRead, SampleSortField, SortOrder
from sounddrop.services.errors import ConflictError
from sounddrop.services.library_service import LibraryService, get_library_service
from sounddrop.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()


@router.get("/", response_model=Page[LibraryRead])
@router.get("", response_model=Page[LibraryRead], include_in_schema=False)
async def list_libraries(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user_id: str | None = Query(
        None,
        alias="userId",
        description="Owner identifier; 'current' selects the caller's libraries.",
    ),
    category_id: str | None = Query(None, alias="categoryId"),
    search: str | None = Query(None, description="Matches name or description."),
    viewer: Principal | None = Depends(get_optional_principal),
    service: LibraryService = Depends(get_library_service),
) -> Page[LibraryRead]:
    """Page through public libraries plus the caller's own, newest first."""

    return await service.list_libraries(
        viewer=viewer,
        user_id=user_id,
        category_id=category_id,
        search=search,
        page=page,
        limit=limit,
    )


@router.post(
    "/",
    response_model=LibraryCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
@router.post(
    "",
    response_model=LibraryCreateResponse,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def create_library(
    payload: LibraryCreate,
    principal: Principal = Depends(require_principal),
    service: LibraryService = Depends(get_library_service),
) -> LibraryCreateResponse:
    try:
        return await service.create_library(principal, payload)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.get("/{library_id}", response_model=LibraryDetail)
async def get_library(
    library_id: str,
    viewer: Principal | None = Depends(get_optional_principal),
    service: LibraryService = Depends(get_library_service),
) -> LibraryDetail:
    """Return a library with its samples; private libraries are 404 to non-owners."""

    try:
        return await service.get_library(library_id, viewer=viewer)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.patch("/{library_id}", response_model=LibraryRead)
async def update_library(
    library_id: str,
    payload: LibraryUpdate,
    principal: Principal = Depends(require_principal),
    service: LibraryService = Depends(get_library_service),
) -> LibraryRead:
    """Apply partial updates to a library owned by the caller."""

    try:
        return await service.update_library(library_id, principal, payload)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.delete("/{library_id}", response_model=LibraryDeleteResponse)
async def delete_library(
    library_id: str,
    principal: Principal = Depends(require_principal),
    service: LibraryService = Depends(get_library_service),
) -> LibraryDeleteResponse:
    """Remove a library together with its samples and their favorites."""

    try:
        return await service.delete_library(library_id, principal)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/{library_id}/samples", response_model=Page[SampleRead])
async def list_library_samples(
    library_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(None),
    sort_by: SampleSortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    viewer: Principal | None = Depends(get_optional_principal),
    service: LibraryService = Depends(get_library_service),
) -> Page[SampleRead]:
    try:
        return await service.list_library_samples(
            library_id,
            viewer=viewer,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
