"""Shared pydantic building blocks for API payloads."""

from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class APIModel(BaseModel):
    """Base model serialising to camelCase while accepting either key style."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationMeta(APIModel):
    """Pagination block returned alongside every listing payload."""

    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, *, total: int, page: int, limit: int) -> PaginationMeta:
        """Derive page counts so ``hasNextPage``/``hasPrevPage`` stay consistent."""

        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class Page(APIModel, Generic[T]):
    """Container returned by paginated listing endpoints."""

    data: list[T]
    pagination: PaginationMeta


class MessageResponse(APIModel):
    message: str


__all__ = ["APIModel", "MessageResponse", "Page", "PaginationMeta"]
