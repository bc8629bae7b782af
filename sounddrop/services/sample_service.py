"""Sample registration, listing, deletion and play tracking."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sounddrop.auth import Principal
from sounddrop.cache import CacheClient, get_cache_client, invalidate_catalog
from sounddrop.db.connection import get_db
from sounddrop.db.models import Sample
from sounddrop.db.repositories.favorites import FavoriteRepository
from sounddrop.db.repositories.libraries import LibraryRepository
from sounddrop.db.repositories.samples import DUPLICATE_SAMPLE_MESSAGE, SampleRepository
from sounddrop.schemas.common import MessageResponse, Page, PaginationMeta
from sounddrop.schemas.samples import (
    PlayResponse,
    SampleCreate,
    SampleCreateResponse,
    SampleRead,
)
from sounddrop.services.errors import ConflictError
from sounddrop.services.library_service import (
    LIBRARY_NOT_FOUND_MESSAGE,
    PERMISSION_DENIED_MESSAGE,
)
from sounddrop.services.presentation import sample_read, sample_reads
from sounddrop.services.rate_limit import SlidingWindowRateLimiter, get_upload_rate_limiter
from sounddrop.settings import ALLOWED_AUDIO_TYPES, AppSettings, get_settings

logger = logging.getLogger(__name__)

SAMPLE_NOT_FOUND_MESSAGE = "Sample not found"


class SampleService:
    def __init__(
        self,
        *,
        samples: SampleRepository,
        libraries: LibraryRepository,
        favorites: FavoriteRepository,
        rate_limiter: SlidingWindowRateLimiter,
        settings: AppSettings,
        cache: CacheClient | None = None,
    ) -> None:
        self._samples = samples
        self._libraries = libraries
        self._favorites = favorites
        self._rate_limiter = rate_limiter
        self._settings = settings
        self._cache = cache

    async def list_samples(
        self,
        *,
        viewer: Principal | None,
        category_id: str | None,
        library_id: str | None,
        search: str | None,
        sort_by: str,
        sort_order: str,
        page: int,
        limit: int,
    ) -> Page[SampleRead]:
        viewer_id = viewer.id if viewer else None
        samples, total = await self._samples.list_visible(
            viewer_id=viewer_id,
            category_id=category_id,
            library_id=library_id,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
        return Page[SampleRead](
            data=await self._present(samples, viewer_id),
            pagination=PaginationMeta.build(total=total, page=page, limit=limit),
        )

    async def create_sample(
        self, principal: Principal, payload: SampleCreate
    ) -> SampleCreateResponse:
        """Register an uploaded file as a sample in one of the caller's libraries.

        The rate limit is checked first and every validated attempt counts
        against it, whether or not the insert succeeds.
        """

        await self._rate_limiter.check(principal.id)

        if payload.mime_type not in ALLOWED_AUDIO_TYPES:
            raise ValueError(
                f"Invalid file type. Allowed types: {', '.join(ALLOWED_AUDIO_TYPES)}"
            )
        if payload.file_size > self._settings.max_audio_size_bytes:
            raise ValueError(
                f"File too large. Maximum size: {self._settings.max_audio_size_mb}MB"
            )

        library = await self._libraries.get(payload.library_id)
        if library is None:
            raise LookupError(LIBRARY_NOT_FOUND_MESSAGE)
        if library.user_id != principal.id:
            raise PermissionError(PERMISSION_DENIED_MESSAGE)
        if await self._samples.name_taken(library.id, payload.name):
            raise ConflictError(DUPLICATE_SAMPLE_MESSAGE)

        await self._rate_limiter.acquire(principal.id)
        created = await self._samples.create(
            library_id=library.id,
            name=payload.name,
            file_url=payload.file_url,
            duration=payload.duration,
            file_size=payload.file_size,
            mime_type=payload.mime_type,
        )
        sample = await self._require(created.id)
        await invalidate_catalog(self._cache)
        logger.info(
            "User %s uploaded sample %s to library %s", principal.id, sample.id, library.id
        )
        return SampleCreateResponse(sample=sample_read(sample))

    async def get_sample(self, sample_id: str, *, viewer: Principal | None) -> SampleRead:
        viewer_id = viewer.id if viewer else None
        sample = await self._samples.get_visible(sample_id, viewer_id)
        if sample is None:
            raise LookupError(SAMPLE_NOT_FOUND_MESSAGE)
        return (await self._present([sample], viewer_id))[0]

    async def delete_sample(self, sample_id: str, principal: Principal) -> MessageResponse:
        sample = await self._require(sample_id)
        if sample.library.user_id != principal.id:
            raise PermissionError(PERMISSION_DENIED_MESSAGE)
        await self._samples.delete(sample)
        await invalidate_catalog(self._cache)
        logger.info("User %s deleted sample %s", principal.id, sample_id)
        return MessageResponse(message="Sample deleted successfully")

    async def play_sample(self, sample_id: str, *, viewer: Principal | None) -> PlayResponse:
        """Count one play of a visible sample."""

        viewer_id = viewer.id if viewer else None
        if await self._samples.get_visible(sample_id, viewer_id) is None:
            raise LookupError(SAMPLE_NOT_FOUND_MESSAGE)
        play_count = await self._samples.increment_play_count(sample_id)
        if play_count is None:
            raise LookupError(SAMPLE_NOT_FOUND_MESSAGE)
        return PlayResponse(play_count=play_count)

    async def _present(
        self, samples: Sequence[Sample], viewer_id: str | None
    ) -> list[SampleRead]:
        sample_ids = [sample.id for sample in samples]
        favorite_counts = await self._favorites.counts_for_samples(sample_ids)
        favorited = await self._favorites.favorited_sample_ids(viewer_id, sample_ids)
        return sample_reads(
            samples, favorite_counts=favorite_counts, favorited_ids=favorited
        )

    async def _require(self, sample_id: str) -> Sample:
        sample = await self._samples.get(sample_id)
        if sample is None:
            raise LookupError(SAMPLE_NOT_FOUND_MESSAGE)
        return sample


async def get_sample_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> SampleService:
    return SampleService(
        samples=SampleRepository(session),
        libraries=LibraryRepository(session),
        favorites=FavoriteRepository(session),
        rate_limiter=get_upload_rate_limiter(),
        settings=get_settings(),
        cache=cache,
    )


__all__ = ["SAMPLE_NOT_FOUND_MESSAGE", "SampleService", "get_sample_service"]
