"""Aggregate payloads: site statistics, category detail and search."""

from __future__ import annotations

from pydantic import Field

from sounddrop.schemas.categories import CategoryStats, CategoryWithCounts
from sounddrop.schemas.common import APIModel
from sounddrop.schemas.libraries import LibraryRead
from sounddrop.schemas.samples import SampleRead
from sounddrop.schemas.users import UserSearchResult


class StatsRaw(APIModel):
    total_samples: int = Field(..., ge=0)
    total_libraries: int = Field(..., ge=0)
    total_users: int = Field(..., ge=0)
    recent_samples: int = Field(..., ge=0)


class StatsResponse(APIModel):
    """Homepage counters, pre-formatted for display with raw integers alongside."""

    total_samples: str
    total_libraries: str
    total_users: str
    recent_samples: str
    raw: StatsRaw


class CategoryDetailResponse(APIModel):
    category: CategoryWithCounts
    stats: CategoryStats
    trending_samples: list[SampleRead] = Field(default_factory=list)


class SearchResponse(APIModel):
    samples: list[SampleRead] = Field(default_factory=list)
    libraries: list[LibraryRead] = Field(default_factory=list)
    users: list[UserSearchResult] = Field(default_factory=list)
