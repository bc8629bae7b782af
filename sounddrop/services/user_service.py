"""Account settings, username checks and principal-to-user synchronisation."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sounddrop.auth import Principal
from sounddrop.db.connection import get_db
from sounddrop.db.models import User
from sounddrop.db.repositories.users import UserRepository
from sounddrop.schemas.users import (
    UsernameCheckResponse,
    UserSettingsResponse,
    UserSettingsUpdate,
    UserSettingsUpdateResponse,
    UserSyncResponse,
)
from sounddrop.services import usernames
from sounddrop.services.errors import ConflictError
from sounddrop.services.presentation import user_profile

logger = logging.getLogger(__name__)

USER_NOT_FOUND_MESSAGE = "User not found"


async def ensure_user(users: UserRepository, principal: Principal) -> tuple[User, bool]:
    """Return the account for ``principal``, creating it on first sight.

    The second element reports whether a new record was created.
    """

    existing = await users.get(principal.id)
    if existing is not None:
        return existing, False

    async def is_taken(candidate: str) -> bool:
        return await users.get_by_username(candidate) is not None

    if principal.email:
        username = await usernames.generate_username_from_email(
            principal.email, is_taken=is_taken
        )
    else:
        username = await usernames.generate_random_username(is_taken=is_taken)

    display_name = principal.name
    if display_name is not None:
        try:
            display_name = usernames.validate_display_name(display_name)
        except ValueError:
            display_name = None

    try:
        user = await users.create(
            user_id=principal.id,
            email=principal.email or "",
            username=username,
            display_name=display_name,
            avatar=principal.avatar,
        )
    except ConflictError:
        # A concurrent request for the same principal inserted the row first.
        provisioned = await users.get(principal.id)
        if provisioned is None:
            raise
        return provisioned, False
    logger.info("Provisioned user %s with username %s", user.id, user.username)
    return user, True


class UserService:
    def __init__(self, users: UserRepository) -> None:
        self._users = users

    async def get_settings(self, principal: Principal) -> UserSettingsResponse:
        user = await self._users.get(principal.id)
        if user is None:
            raise LookupError(USER_NOT_FOUND_MESSAGE)
        return UserSettingsResponse(user=user_profile(user))

    async def update_settings(
        self, principal: Principal, payload: UserSettingsUpdate
    ) -> UserSettingsUpdateResponse:
        user = await self._users.get(principal.id)
        if user is None:
            raise LookupError(USER_NOT_FOUND_MESSAGE)

        changes: dict[str, Any] = {}
        if "username" in payload.model_fields_set and payload.username is not None:
            changes["username"] = await self._validated_username(
                payload.username, exclude_user_id=user.id
            )
        if "display_name" in payload.model_fields_set:
            changes["display_name"] = usernames.validate_display_name(payload.display_name)

        if changes:
            await self._users.update(user, changes)
        return UserSettingsUpdateResponse(user=user_profile(user))

    async def check_username(
        self, username: str, *, viewer_id: str | None
    ) -> UsernameCheckResponse:
        check = await usernames.check_username(
            username, is_taken=self._taken_by_other(viewer_id)
        )
        return UsernameCheckResponse(
            username=username,
            is_available=check.is_valid,
            error=check.error,
            sanitized=check.sanitized if check.is_valid else None,
        )

    async def sync(self, principal: Principal) -> UserSyncResponse:
        user, created = await ensure_user(self._users, principal)
        return UserSyncResponse(
            user=user_profile(user),
            synced=created,
            message="User created successfully" if created else "User already exists",
        )

    async def _validated_username(self, raw: str, *, exclude_user_id: str) -> str:
        check = await usernames.check_username(
            raw, is_taken=self._taken_by_other(exclude_user_id)
        )
        if check.is_valid and check.sanitized is not None:
            return check.sanitized
        if check.error == usernames.USERNAME_TAKEN_ERROR:
            raise ConflictError(check.error)
        raise ValueError(check.error or "Invalid username format")

    def _taken_by_other(self, exclude_user_id: str | None) -> usernames.UsernameTaken:
        async def is_taken(candidate: str) -> bool:
            holder = await self._users.get_by_username(candidate)
            return holder is not None and holder.id != exclude_user_id

        return is_taken


async def get_user_service(session: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(UserRepository(session))


__all__ = ["USER_NOT_FOUND_MESSAGE", "UserService", "ensure_user", "get_user_service"]
