"""Pydantic schemas for the category taxonomy."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from sounddrop.schemas.common import APIModel


class CategoryRead(APIModel):
    """Category as embedded in library and sample payloads."""

    id: str
    slug: str
    name: str
    icon: str
    description: str | None = None
    order: int = Field(0, description="Display position, ascending.")
    created_at: datetime


class CategoryWithCounts(CategoryRead):
    library_count: int = Field(0, ge=0, description="Number of public libraries.")


class CategoryListResponse(APIModel):
    data: list[CategoryWithCounts]


class CategoryStats(APIModel):
    sample_count: int = Field(..., ge=0)
    library_count: int = Field(..., ge=0)
    contributor_count: int = Field(..., ge=0)
