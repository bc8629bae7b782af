"""Business rules for user-curated libraries.

Visibility: a private library (and everything in it) behaves as missing for
anyone but its owner.  Ownership: only the owner may update or delete.
Uniqueness: names are unique per owner after trimming and case folding.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sounddrop.auth import Principal
from sounddrop.cache import CacheClient, get_cache_client, invalidate_catalog
from sounddrop.db.connection import get_db
from sounddrop.db.models import Library
from sounddrop.db.repositories.categories import CategoryRepository
from sounddrop.db.repositories.favorites import FavoriteRepository
from sounddrop.db.repositories.libraries import (
    DUPLICATE_LIBRARY_MESSAGE,
    LibraryRepository,
)
from sounddrop.db.repositories.users import UserRepository
from sounddrop.schemas.common import Page, PaginationMeta
from sounddrop.schemas.libraries import (
    LibraryCreate,
    LibraryCreateResponse,
    LibraryDeleteResponse,
    LibraryDetail,
    LibraryRead,
    LibraryUpdate,
)
from sounddrop.schemas.samples import SampleRead
from sounddrop.services.errors import ConflictError
from sounddrop.services.presentation import library_detail, library_read, sample_reads
from sounddrop.services.user_service import ensure_user

logger = logging.getLogger(__name__)

LIBRARY_NOT_FOUND_MESSAGE = "Library not found"
CATEGORY_NOT_FOUND_MESSAGE = "Category not found"
PERMISSION_DENIED_MESSAGE = "Permission denied"
CURRENT_USER_FILTER = "current"


def is_visible(library: Library, viewer_id: str | None) -> bool:
    return library.is_public or (viewer_id is not None and library.user_id == viewer_id)


class LibraryService:
    def __init__(
        self,
        *,
        libraries: LibraryRepository,
        categories: CategoryRepository,
        favorites: FavoriteRepository,
        users: UserRepository,
        cache: CacheClient | None = None,
    ) -> None:
        self._libraries = libraries
        self._categories = categories
        self._favorites = favorites
        self._users = users
        self._cache = cache

    async def list_libraries(
        self,
        *,
        viewer: Principal | None,
        user_id: str | None,
        category_id: str | None,
        search: str | None,
        page: int,
        limit: int,
    ) -> Page[LibraryRead]:
        viewer_id = viewer.id if viewer else None
        owner_id = user_id
        if user_id == CURRENT_USER_FILTER:
            if viewer_id is None:
                return Page[LibraryRead](
                    data=[], pagination=PaginationMeta.build(total=0, page=page, limit=limit)
                )
            owner_id = viewer_id

        libraries, total = await self._libraries.list_visible(
            viewer_id=viewer_id,
            owner_id=owner_id,
            category_id=category_id,
            search=search,
            page=page,
            limit=limit,
        )
        counts = await self._libraries.sample_counts(library.id for library in libraries)
        return Page[LibraryRead](
            data=[
                library_read(library, sample_count=counts.get(library.id, 0))
                for library in libraries
            ],
            pagination=PaginationMeta.build(total=total, page=page, limit=limit),
        )

    async def create_library(
        self, principal: Principal, payload: LibraryCreate
    ) -> LibraryCreateResponse:
        if await self._categories.get(payload.category_id) is None:
            raise LookupError(CATEGORY_NOT_FOUND_MESSAGE)

        user, _ = await ensure_user(self._users, principal)
        if await self._libraries.name_taken(user.id, payload.name):
            raise ConflictError(DUPLICATE_LIBRARY_MESSAGE)

        created = await self._libraries.create(
            user_id=user.id,
            category_id=payload.category_id,
            name=payload.name,
            description=payload.description,
            icon_url=payload.icon_url,
            is_public=payload.is_public,
        )
        library = await self._require(created.id)
        await invalidate_catalog(self._cache)
        logger.info("User %s created library %s", user.id, library.id)
        return LibraryCreateResponse(data=library_read(library, sample_count=0))

    async def get_library(self, library_id: str, *, viewer: Principal | None) -> LibraryDetail:
        """Return a visible library with its samples, newest first."""

        viewer_id = viewer.id if viewer else None
        library = await self._libraries.get(library_id, with_samples=True)
        if library is None or not is_visible(library, viewer_id):
            raise LookupError(LIBRARY_NOT_FOUND_MESSAGE)

        samples = list(library.samples)
        sample_ids = [sample.id for sample in samples]
        favorite_counts = await self._favorites.counts_for_samples(sample_ids)
        favorited = await self._favorites.favorited_sample_ids(viewer_id, sample_ids)
        return library_detail(
            library,
            samples=sample_reads(
                samples,
                favorite_counts=favorite_counts,
                favorited_ids=favorited,
                include_library=False,
            ),
        )

    async def update_library(
        self, library_id: str, principal: Principal, payload: LibraryUpdate
    ) -> LibraryRead:
        library = await self._require_owned(library_id, principal)

        changes: dict[str, Any] = {}
        fields = payload.model_fields_set
        if "name" in fields and payload.name is not None:
            if payload.name != library.name and await self._libraries.name_taken(
                library.user_id, payload.name, exclude_library_id=library.id
            ):
                raise ConflictError(DUPLICATE_LIBRARY_MESSAGE)
            changes["name"] = payload.name
        if "description" in fields:
            changes["description"] = payload.description
        if "category_id" in fields and payload.category_id is not None:
            if payload.category_id != library.category_id:
                if await self._categories.get(payload.category_id) is None:
                    raise LookupError(CATEGORY_NOT_FOUND_MESSAGE)
            changes["category_id"] = payload.category_id
        if "icon_url" in fields:
            changes["icon_url"] = payload.icon_url
        if "is_public" in fields and payload.is_public is not None:
            changes["is_public"] = payload.is_public

        if changes:
            await self._libraries.update(library, changes)
            await invalidate_catalog(self._cache)

        refreshed = await self._require(library_id)
        counts = await self._libraries.sample_counts([refreshed.id])
        return library_read(refreshed, sample_count=counts.get(refreshed.id, 0))

    async def delete_library(
        self, library_id: str, principal: Principal
    ) -> LibraryDeleteResponse:
        library = await self._require_owned(library_id, principal)
        deleted_samples = await self._libraries.delete(library)
        await invalidate_catalog(self._cache)
        logger.info(
            "User %s deleted library %s with %s samples",
            principal.id,
            library_id,
            deleted_samples,
        )
        return LibraryDeleteResponse(deleted_samples=deleted_samples)

    async def list_library_samples(
        self,
        library_id: str,
        *,
        viewer: Principal | None,
        search: str | None,
        sort_by: str,
        sort_order: str,
        page: int,
        limit: int,
    ) -> Page[SampleRead]:
        viewer_id = viewer.id if viewer else None
        library = await self._libraries.get(library_id)
        if library is None or not is_visible(library, viewer_id):
            raise LookupError(LIBRARY_NOT_FOUND_MESSAGE)

        samples, total = await self._libraries.list_samples(
            library_id,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
        sample_ids = [sample.id for sample in samples]
        favorite_counts = await self._favorites.counts_for_samples(sample_ids)
        favorited = await self._favorites.favorited_sample_ids(viewer_id, sample_ids)
        return Page[SampleRead](
            data=sample_reads(
                samples, favorite_counts=favorite_counts, favorited_ids=favorited
            ),
            pagination=PaginationMeta.build(total=total, page=page, limit=limit),
        )

    async def _require(self, library_id: str) -> Library:
        library = await self._libraries.get(library_id)
        if library is None:
            raise LookupError(LIBRARY_NOT_FOUND_MESSAGE)
        return library

    async def _require_owned(self, library_id: str, principal: Principal) -> Library:
        library = await self._require(library_id)
        if library.user_id != principal.id:
            raise PermissionError(PERMISSION_DENIED_MESSAGE)
        return library


async def get_library_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> LibraryService:
    return LibraryService(
        libraries=LibraryRepository(session),
        categories=CategoryRepository(session),
        favorites=FavoriteRepository(session),
        users=UserRepository(session),
        cache=cache,
    )


__all__ = [
    "CATEGORY_NOT_FOUND_MESSAGE",
    "LIBRARY_NOT_FOUND_MESSAGE",
    "LibraryService",
    "PERMISSION_DENIED_MESSAGE",
    "get_library_service",
    "is_visible",
]
