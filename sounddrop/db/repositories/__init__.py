from sounddrop.db.repositories.categories import CategoryRepository
from sounddrop.db.repositories.favorites import FavoriteRepository
from sounddrop.db.repositories.libraries import LibraryRepository
from sounddrop.db.repositories.samples import SampleRepository
from sounddrop.db.repositories.stats import SiteTotals, StatsRepository
from sounddrop.db.repositories.users import UserRepository

__all__ = [
    "CategoryRepository",
    "FavoriteRepository",
    "LibraryRepository",
    "SampleRepository",
    "SiteTotals",
    "StatsRepository",
    "UserRepository",
]
