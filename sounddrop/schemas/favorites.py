"""Pydantic schemas that power the favorites API surface."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, StrictStr

from sounddrop.schemas.common import APIModel
from sounddrop.schemas.samples import SampleRead


class FavoriteCreate(APIModel):
    """Payload for bookmarking a sample."""

    sample_id: StrictStr = Field(..., min_length=1, description="Sample to favorite")


class FavoriteRead(APIModel):
    """Read model exposed in API responses, embedding the full sample."""

    id: str
    user_id: str
    sample_id: str
    created_at: datetime
    sample: SampleRead


class FavoriteDeleteResponse(APIModel):
    success: bool = True
