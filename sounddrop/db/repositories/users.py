"""User account persistence."""

from __future__ import annotations

from typing import Any

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError

from sounddrop.db.models import Library, User
from sounddrop.db.repositories.base import BaseRepository, contains_clause
from sounddrop.services.errors import ConflictError

USERNAME_TAKEN_MESSAGE = "This username is already taken"


class UserRepository(BaseRepository):
    async def get(self, user_id: str) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        result = await self._session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        user_id: str,
        email: str,
        username: str,
        display_name: str | None = None,
        avatar: str | None = None,
    ) -> User:
        user = User(
            id=user_id,
            email=email,
            username=username,
            display_name=display_name,
            avatar=avatar,
        )
        self._session.add(user)
        await self._flush_unique()
        return user

    async def update(self, user: User, changes: dict[str, Any]) -> User:
        for field, value in changes.items():
            setattr(user, field, value)
        await self._flush_unique()
        return user

    async def search(self, term: str, *, limit: int) -> list[tuple[User, int]]:
        """Match users by username or display name with their public library count."""

        stmt = (
            select(User, func.count(Library.id))
            .outerjoin(
                Library, and_(Library.user_id == User.id, Library.is_public.is_(True))
            )
            .where(
                or_(
                    contains_clause(User.username, term),
                    contains_clause(User.display_name, term),
                )
            )
            .group_by(User.id)
            .order_by(User.username.asc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [(user, int(count or 0)) for user, count in result.all()]

    async def count(self) -> int:
        return int(await self._session.scalar(select(func.count(User.id))) or 0)

    async def _flush_unique(self) -> None:
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ConflictError(USERNAME_TAKEN_MESSAGE) from exc


__all__ = ["USERNAME_TAKEN_MESSAGE", "UserRepository"]
