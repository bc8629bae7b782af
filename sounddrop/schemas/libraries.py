"""Pydantic schemas that power the libraries API surface."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from sounddrop.schemas.categories import CategoryRead
from sounddrop.schemas.common import APIModel
from sounddrop.schemas.samples import SampleRead
from sounddrop.schemas.users import UserSummary

LIBRARY_NAME_MAX_LENGTH = 100
LIBRARY_DESCRIPTION_MAX_LENGTH = 500


def _clean_name(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("Library name is required")
    if len(cleaned) > LIBRARY_NAME_MAX_LENGTH:
        raise ValueError("Library name must be 100 characters or less")
    return cleaned


def _clean_description(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if len(cleaned) > LIBRARY_DESCRIPTION_MAX_LENGTH:
        raise ValueError("Description must be 500 characters or less")
    return cleaned or None


class LibraryCreate(APIModel):
    """Payload for creating a brand-new library."""

    name: str
    description: str | None = None
    category_id: str = Field(..., min_length=1)
    icon_url: str | None = Field(None, max_length=1024)
    is_public: bool = True

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _clean_name(value)

    @field_validator("description")
    @classmethod
    def _validate_description(cls, value: str | None) -> str | None:
        return _clean_description(value)


class LibraryUpdate(APIModel):
    """Partial update payload; only keys present in the request are applied."""

    name: str | None = None
    description: str | None = None
    category_id: str | None = Field(None, min_length=1)
    icon_url: str | None = Field(None, max_length=1024)
    is_public: bool | None = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _clean_name(value)

    @field_validator("description")
    @classmethod
    def _validate_description(cls, value: str | None) -> str | None:
        return _clean_description(value)


class LibraryRead(APIModel):
    id: str
    name: str
    description: str | None = None
    icon_url: str | None = None
    user_id: str
    category_id: str
    is_public: bool
    created_at: datetime
    updated_at: datetime
    user: UserSummary
    category: CategoryRead
    sample_count: int = Field(0, ge=0)


class LibraryDetail(LibraryRead):
    samples: list[SampleRead] = Field(default_factory=list)


class LibraryCreateResponse(APIModel):
    data: LibraryRead


class LibraryDeleteResponse(APIModel):
    message: str = "Library deleted successfully"
    deleted_samples: int = Field(..., ge=0)
