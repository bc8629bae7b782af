"""Conversions from ORM rows into API schemas.

Derived values (sample counts, favorite counts, per-viewer flags) are computed
by the services and passed in explicitly so these builders never trigger lazy
loads on an async session.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from sounddrop.db.models import Category, Favorite, Library, Sample, User
from sounddrop.schemas.categories import CategoryRead, CategoryWithCounts
from sounddrop.schemas.favorites import FavoriteRead
from sounddrop.schemas.libraries import LibraryDetail, LibraryRead
from sounddrop.schemas.samples import SampleLibrary, SampleRead
from sounddrop.schemas.users import UserProfile, UserSearchResult, UserSummary


def user_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        avatar=user.avatar,
    )


def user_profile(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        avatar=user.avatar,
        email=user.email,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def user_search_result(user: User, library_count: int) -> UserSearchResult:
    return UserSearchResult(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        avatar=user.avatar,
        library_count=library_count,
    )


def category_read(category: Category) -> CategoryRead:
    return CategoryRead(
        id=category.id,
        slug=category.slug,
        name=category.name,
        icon=category.icon,
        description=category.description,
        order=category.display_order,
        created_at=category.created_at,
    )


def category_with_counts(category: Category, library_count: int) -> CategoryWithCounts:
    return CategoryWithCounts(
        **category_read(category).model_dump(),
        library_count=library_count,
    )


def sample_library(library: Library) -> SampleLibrary:
    return SampleLibrary(
        id=library.id,
        name=library.name,
        description=library.description,
        icon_url=library.icon_url,
        user_id=library.user_id,
        category_id=library.category_id,
        is_public=library.is_public,
        user=user_summary(library.user),
        category=category_read(library.category),
    )


def sample_read(
    sample: Sample,
    *,
    favorite_count: int = 0,
    is_favorited: bool = False,
    include_library: bool = True,
) -> SampleRead:
    return SampleRead(
        id=sample.id,
        name=sample.name,
        file_url=sample.file_url,
        duration=sample.duration,
        file_size=sample.file_size,
        mime_type=sample.mime_type,
        library_id=sample.library_id,
        play_count=sample.play_count,
        created_at=sample.created_at,
        updated_at=sample.updated_at,
        favorite_count=favorite_count,
        is_favorited=is_favorited,
        library=sample_library(sample.library) if include_library else None,
    )


def sample_reads(
    samples: Sequence[Sample],
    *,
    favorite_counts: Mapping[str, int],
    favorited_ids: set[str] | frozenset[str] = frozenset(),
    include_library: bool = True,
) -> list[SampleRead]:
    return [
        sample_read(
            sample,
            favorite_count=favorite_counts.get(sample.id, 0),
            is_favorited=sample.id in favorited_ids,
            include_library=include_library,
        )
        for sample in samples
    ]


def library_read(library: Library, *, sample_count: int) -> LibraryRead:
    return LibraryRead(
        id=library.id,
        name=library.name,
        description=library.description,
        icon_url=library.icon_url,
        user_id=library.user_id,
        category_id=library.category_id,
        is_public=library.is_public,
        created_at=library.created_at,
        updated_at=library.updated_at,
        user=user_summary(library.user),
        category=category_read(library.category),
        sample_count=sample_count,
    )


def library_detail(library: Library, *, samples: list[SampleRead]) -> LibraryDetail:
    return LibraryDetail(
        **library_read(library, sample_count=len(samples)).model_dump(),
        samples=samples,
    )


def favorite_read(favorite: Favorite, *, favorite_count: int) -> FavoriteRead:
    return FavoriteRead(
        id=favorite.id,
        user_id=favorite.user_id,
        sample_id=favorite.sample_id,
        created_at=favorite.created_at,
        sample=sample_read(
            favorite.sample, favorite_count=favorite_count, is_favorited=True
        ),
    )


__all__ = [
    "category_read",
    "category_with_counts",
    "favorite_read",
    "library_detail",
    "library_read",
    "sample_library",
    "sample_read",
    "sample_reads",
    "user_profile",
    "user_search_result",
    "user_summary",
]
