"""Service layer for user favorites."""

from __future__ import annotations

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sounddrop.auth import Principal
from sounddrop.db.connection import get_db
from sounddrop.db.models import Favorite
from sounddrop.db.repositories.favorites import (
    ALREADY_FAVORITED_MESSAGE,
    FavoriteRepository,
)
from sounddrop.db.repositories.samples import SampleRepository
from sounddrop.db.repositories.users import UserRepository
from sounddrop.schemas.common import Page, PaginationMeta
from sounddrop.schemas.favorites import (
    FavoriteCreate,
    FavoriteDeleteResponse,
    FavoriteRead,
)
from sounddrop.services.errors import ConflictError
from sounddrop.services.presentation import favorite_read
from sounddrop.services.sample_service import SAMPLE_NOT_FOUND_MESSAGE
from sounddrop.services.user_service import ensure_user

logger = logging.getLogger(__name__)

FAVORITE_NOT_FOUND_MESSAGE = "Favorite not found"


class FavoriteService:
    """Favorites are always scoped to the calling principal."""

    def __init__(
        self,
        *,
        favorites: FavoriteRepository,
        samples: SampleRepository,
        users: UserRepository,
    ) -> None:
        self._favorites = favorites
        self._samples = samples
        self._users = users

    async def list_favorites(
        self, principal: Principal, *, page: int, limit: int
    ) -> Page[FavoriteRead]:
        favorites, total = await self._favorites.list_for_user(
            principal.id, page=page, limit=limit
        )
        counts = await self._favorites.counts_for_samples(
            favorite.sample_id for favorite in favorites
        )
        return Page[FavoriteRead](
            data=[
                favorite_read(favorite, favorite_count=counts.get(favorite.sample_id, 0))
                for favorite in favorites
            ],
            pagination=PaginationMeta.build(total=total, page=page, limit=limit),
        )

    async def add_favorite(
        self, principal: Principal, payload: FavoriteCreate
    ) -> FavoriteRead:
        if await self._samples.get_visible(payload.sample_id, principal.id) is None:
            raise LookupError(SAMPLE_NOT_FOUND_MESSAGE)
        if await self._favorites.exists(principal.id, payload.sample_id):
            raise ConflictError(ALREADY_FAVORITED_MESSAGE)

        await ensure_user(self._users, principal)
        created = await self._favorites.create(principal.id, payload.sample_id)
        logger.info("User %s favorited sample %s", principal.id, payload.sample_id)
        return await self._read(await self._require(created.id, principal))

    async def get_favorite(self, favorite_id: str, principal: Principal) -> FavoriteRead:
        return await self._read(await self._require(favorite_id, principal))

    async def remove_favorite(
        self, favorite_id: str, principal: Principal
    ) -> FavoriteDeleteResponse:
        favorite = await self._require(favorite_id, principal)
        await self._favorites.delete(favorite)
        logger.info("User %s removed favorite %s", principal.id, favorite_id)
        return FavoriteDeleteResponse()

    async def _require(self, favorite_id: str, principal: Principal) -> Favorite:
        favorite = await self._favorites.get_for_user(favorite_id, principal.id)
        if favorite is None:
            raise LookupError(FAVORITE_NOT_FOUND_MESSAGE)
        return favorite

    async def _read(self, favorite: Favorite) -> FavoriteRead:
        counts = await self._favorites.counts_for_samples([favorite.sample_id])
        return favorite_read(favorite, favorite_count=counts.get(favorite.sample_id, 0))


async def get_favorite_service(session: AsyncSession = Depends(get_db)) -> FavoriteService:
    return FavoriteService(
        favorites=FavoriteRepository(session),
        samples=SampleRepository(session),
        users=UserRepository(session),
    )


__all__ = ["FAVORITE_NOT_FOUND_MESSAGE", "FavoriteService", "get_favorite_service"]
