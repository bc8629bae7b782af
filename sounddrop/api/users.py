"""FastAPI router for the signed-in user's account settings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from sounddrop.auth import Principal, get_optional_principal, require_principal
from sounddrop.schemas.users import (
    UsernameCheckResponse,
    UserSettingsResponse,
    UserSettingsUpdate,
    UserSettingsUpdateResponse,
    UserSyncResponse,
)
from sounddrop.services.errors import ConflictError
from sounddrop.services.user_service import UserService, get_user_service

router = APIRouter()


@router.get("/settings", response_model=UserSettingsResponse)
async def get_settings(
    principal: Principal = Depends(require_principal),
    service: UserService = Depends(get_user_service),
) -> UserSettingsResponse:
    try:
        return await service.get_settings(principal)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.patch("/settings", response_model=UserSettingsUpdateResponse)
async def update_settings(
    payload: UserSettingsUpdate,
    principal: Principal = Depends(require_principal),
    service: UserService = Depends(get_user_service),
) -> UserSettingsUpdateResponse:
    """Change the username and/or display name of the caller."""

    try:
        return await service.update_settings(principal, payload)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/check-username", response_model=UsernameCheckResponse)
async def check_username(
    username: str = Query(..., description="Candidate username to validate."),
    viewer: Principal | None = Depends(get_optional_principal),
    service: UserService = Depends(get_user_service),
) -> UsernameCheckResponse:
    """Report whether ``username`` is well-formed and free for the caller."""

    return await service.check_username(
        username, viewer_id=viewer.id if viewer else None
    )


@router.post("/sync", response_model=UserSyncResponse)
async def sync_user(
    principal: Principal = Depends(require_principal),
    service: UserService = Depends(get_user_service),
) -> UserSyncResponse:
    """Create the account record for the caller when it does not exist yet."""

    return await service.sync(principal)
