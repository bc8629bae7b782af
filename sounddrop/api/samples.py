"""FastAPI router for sample registration, browsing and play tracking."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from sounddrop.auth import Principal, get_optional_principal, require_principal
from sounddrop.schemas.common import MessageResponse, Page
from sounddrop.schemas.samples import (
    PlayResponse,
    SampleCreate,
    SampleCreateResponse,
    SampleRead,
    SampleSortField,
    SortOrder,
)
from sounddrop.services.errors import ConflictError, RateLimitedError
from sounddrop.services.sample_service import SampleService, get_sample_service
from sounddrop.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()


@router.get("/", response_model=Page[SampleRead])
@router.get("", response_model=Page[SampleRead], include_in_schema=False)
async def list_samples(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    category_id: str | None = Query(None, alias="categoryId"),
    library_id: str | None = Query(None, alias="libraryId"),
    search: str | None = Query(
        None, description="Matches sample name, library name or owner names."
    ),
    sort_by: SampleSortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    viewer: Principal | None = Depends(get_optional_principal),
    service: SampleService = Depends(get_sample_service),
) -> Page[SampleRead]:
    return await service.list_samples(
        viewer=viewer,
        category_id=category_id,
        library_id=library_id,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.post(
    "/",
    response_model=SampleCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
@router.post(
    "",
    response_model=SampleCreateResponse,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def create_sample(
    payload: SampleCreate,
    principal: Principal = Depends(require_principal),
    service: SampleService = Depends(get_sample_service),
) -> SampleCreateResponse:
    """Register an uploaded audio file in one of the caller's libraries."""

    try:
        return await service.create_sample(principal, payload)
    except RateLimitedError as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=str(exc),
            headers={"Retry-After": str(exc.retry_after)},
        ) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/{sample_id}", response_model=SampleRead)
async def get_sample(
    sample_id: str,
    viewer: Principal | None = Depends(get_optional_principal),
    service: SampleService = Depends(get_sample_service),
) -> SampleRead:
    try:
        return await service.get_sample(sample_id, viewer=viewer)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/{sample_id}", response_model=MessageResponse)
async def delete_sample(
    sample_id: str,
    principal: Principal = Depends(require_principal),
    service: SampleService = Depends(get_sample_service),
) -> MessageResponse:
    try:
        return await service.delete_sample(sample_id, principal)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/{sample_id}/play", response_model=PlayResponse)
async def play_sample(
    sample_id: str,
    viewer: Principal | None = Depends(get_optional_principal),
    service: SampleService = Depends(get_sample_service),
) -> PlayResponse:
    """Increment the play counter of a visible sample by exactly one."""

    try:
        return await service.play_sample(sample_id, viewer=viewer)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
