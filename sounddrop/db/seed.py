"""Default category taxonomy and an idempotent seeding helper."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from sounddrop.db.models import Category
from sounddrop.db.repositories.categories import CategoryRepository

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: tuple[dict[str, str | int], ...] = (
    {
        "name": "Memes",
        "slug": "memes",
        "icon": "Laugh",
        "description": "Popular internet memes and viral sounds",
        "order": 1,
    },
    {
        "name": "Movies",
        "slug": "movies",
        "icon": "Film",
        "description": "Iconic movie quotes and sound effects",
        "order": 2,
    },
    {
        "name": "TV Shows",
        "slug": "tv-shows",
        "icon": "Tv",
        "description": "Memorable TV show moments and catchphrases",
        "order": 3,
    },
    {
        "name": "Games",
        "slug": "games",
        "icon": "Gamepad2",
        "description": "Video game sounds and music",
        "order": 4,
    },
    {
        "name": "Reactions",
        "slug": "reactions",
        "icon": "MessageCircle",
        "description": "Reaction sounds for any situation",
        "order": 5,
    },
    {
        "name": "Music",
        "slug": "music",
        "icon": "Music",
        "description": "Music clips and beats",
        "order": 6,
    },
    {
        "name": "Animals",
        "slug": "animals",
        "icon": "Cat",
        "description": "Animal sounds and nature clips",
        "order": 7,
    },
    {
        "name": "Sports",
        "slug": "sports",
        "icon": "Trophy",
        "description": "Sports commentary and crowd reactions",
        "order": 8,
    },
    {
        "name": "Sound Effects",
        "slug": "sound-effects",
        "icon": "Volume2",
        "description": "Various sound effects and audio clips",
        "order": 9,
    },
    {
        "name": "Other",
        "slug": "other",
        "icon": "FolderOpen",
        "description": "Miscellaneous sounds that don't fit elsewhere",
        "order": 10,
    },
)


async def seed_categories(session: AsyncSession) -> int:
    """Insert any default categories that are missing; return how many were added."""

    repository = CategoryRepository(session)
    existing = await repository.existing_slugs()
    missing = [
        Category(
            name=str(entry["name"]),
            slug=str(entry["slug"]),
            icon=str(entry["icon"]),
            description=str(entry["description"]),
            display_order=int(entry["order"]),
        )
        for entry in DEFAULT_CATEGORIES
        if entry["slug"] not in existing
    ]
    if missing:
        await repository.add_all(missing)
    logger.info("Seeded %s categories (%s already present)", len(missing), len(existing))
    return len(missing)


__all__ = ["DEFAULT_CATEGORIES", "seed_categories"]
