"""Pydantic schemas for audio samples."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from sounddrop.schemas.categories import CategoryRead
from sounddrop.schemas.common import APIModel
from sounddrop.schemas.users import UserSummary

SampleSortField = Literal["createdAt", "updatedAt", "name", "playCount", "duration"]
SortOrder = Literal["asc", "desc"]


class SampleLibrary(APIModel):
    """Library summary embedded in sample payloads."""

    id: str
    name: str
    description: str | None = None
    icon_url: str | None = None
    user_id: str
    category_id: str
    is_public: bool
    user: UserSummary | None = None
    category: CategoryRead | None = None


class SampleRead(APIModel):
    id: str
    name: str
    file_url: str
    duration: float
    file_size: int
    mime_type: str
    library_id: str
    play_count: int = Field(..., ge=0)
    created_at: datetime
    updated_at: datetime
    favorite_count: int = Field(0, ge=0)
    is_favorited: bool = False
    library: SampleLibrary | None = None


class SampleCreate(APIModel):
    """Registers an uploaded audio file as a sample inside a library."""

    name: str = Field(..., max_length=200)
    library_id: str = Field(..., min_length=1)
    file_url: str = Field(..., min_length=1, max_length=1024)
    duration: float = Field(0.0, ge=0)
    file_size: int = Field(..., ge=0)
    mime_type: str = Field(..., min_length=1, max_length=64)

    @field_validator("name")
    @classmethod
    def _trim_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Sample name is required")
        if len(cleaned) > 100:
            raise ValueError("Sample name must be 100 characters or less")
        return cleaned


class SampleCreateResponse(APIModel):
    sample: SampleRead
    message: str = "Audio uploaded successfully"


class PlayResponse(APIModel):
    success: bool = True
    play_count: int
