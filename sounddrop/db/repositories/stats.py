"""Aggregate counts backing the homepage statistics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select

from sounddrop.db.models import Library, Sample, User
from sounddrop.db.repositories.base import BaseRepository


@dataclass(frozen=True, slots=True)
class SiteTotals:
    samples: int
    libraries: int
    users: int
    recent_samples: int


class StatsRepository(BaseRepository):
    async def site_totals(self, *, recent_since: datetime) -> SiteTotals:
        """Count public samples and libraries, all users and recent public samples."""

        public_samples = select(func.count(Sample.id)).join(Library).where(
            Library.is_public.is_(True)
        )
        samples = await self._session.scalar(public_samples)
        libraries = await self._session.scalar(
            select(func.count(Library.id)).where(Library.is_public.is_(True))
        )
        users = await self._session.scalar(select(func.count(User.id)))
        recent = await self._session.scalar(
            public_samples.where(Sample.created_at >= recent_since)
        )
        return SiteTotals(
            samples=int(samples or 0),
            libraries=int(libraries or 0),
            users=int(users or 0),
            recent_samples=int(recent or 0),
        )


__all__ = ["SiteTotals", "StatsRepository"]
