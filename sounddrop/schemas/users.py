"""Pydantic schemas for user accounts and settings."""

from __future__ import annotations

from datetime import datetime

from sounddrop.schemas.common import APIModel


class UserSummary(APIModel):
    """Public owner card embedded in library and sample payloads."""

    id: str
    username: str
    display_name: str | None = None
    avatar: str | None = None


class UserProfile(UserSummary):
    """Full account view returned to the account owner only."""

    email: str
    created_at: datetime
    updated_at: datetime


class UserSettingsResponse(APIModel):
    user: UserProfile


class UserSettingsUpdate(APIModel):
    """Partial update payload; omitted keys are left untouched.

    ``displayName`` distinguishes "absent" from ``null``: sending ``null`` or an
    empty string clears the display name.
    """

    username: str | None = None
    display_name: str | None = None


class UserSettingsUpdateResponse(APIModel):
    user: UserProfile
    message: str = "Settings updated successfully"


class UsernameCheckResponse(APIModel):
    username: str
    is_available: bool
    error: str | None = None
    sanitized: str | None = None


class UserSyncResponse(APIModel):
    user: UserProfile
    synced: bool
    message: str


class UserSearchResult(UserSummary):
    library_count: int = 0
