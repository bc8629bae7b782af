"""Quick search across public samples, public libraries and users."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sounddrop.db.connection import get_db
from sounddrop.db.repositories.favorites import FavoriteRepository
from sounddrop.db.repositories.libraries import LibraryRepository
from sounddrop.db.repositories.samples import SampleRepository
from sounddrop.db.repositories.users import UserRepository
from sounddrop.schemas.stats import SearchResponse
from sounddrop.services.presentation import library_read, sample_reads, user_search_result

MIN_QUERY_LENGTH = 2
RESULTS_PER_KIND = 10


class SearchService:
    def __init__(
        self,
        *,
        samples: SampleRepository,
        libraries: LibraryRepository,
        users: UserRepository,
        favorites: FavoriteRepository,
    ) -> None:
        self._samples = samples
        self._libraries = libraries
        self._users = users
        self._favorites = favorites

    async def search(self, query: str | None) -> SearchResponse:
        term = (query or "").strip()
        if len(term) < MIN_QUERY_LENGTH:
            return SearchResponse()

        samples = await self._samples.search_public(term, limit=RESULTS_PER_KIND)
        libraries = await self._libraries.search_public(term, limit=RESULTS_PER_KIND)
        users = await self._users.search(term, limit=RESULTS_PER_KIND)

        favorite_counts = await self._favorites.counts_for_samples(
            sample.id for sample in samples
        )
        sample_counts = await self._libraries.sample_counts(
            library.id for library in libraries
        )
        return SearchResponse(
            samples=sample_reads(samples, favorite_counts=favorite_counts),
            libraries=[
                library_read(library, sample_count=sample_counts.get(library.id, 0))
                for library in libraries
            ],
            users=[user_search_result(user, count) for user, count in users],
        )


async def get_search_service(session: AsyncSession = Depends(get_db)) -> SearchService:
    return SearchService(
        samples=SampleRepository(session),
        libraries=LibraryRepository(session),
        users=UserRepository(session),
        favorites=FavoriteRepository(session),
    )


__all__ = ["MIN_QUERY_LENGTH", "SearchService", "get_search_service"]
