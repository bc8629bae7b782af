from __future__ import annotations

import pytest

from sounddrop.auth import Principal
from sounddrop.db.repositories import UserRepository
from sounddrop.services.errors import ConflictError
from sounddrop.services.user_service import ensure_user


class _LaggingUserRepository(UserRepository):
    """Misses the row on the first lookup, as a request racing another one would."""

    def __init__(self, session) -> None:
        super().__init__(session)
        self.reads = 0

    async def get(self, user_id: str):
        self.reads += 1
        if self.reads == 1:
            return None
        return await super().get(user_id)


@pytest.mark.asyncio
async def test_ensure_user_creates_account_once(session):
    principal = Principal(id="u1", email="jane.doe@example.com", name="Jane")
    users = UserRepository(session)

    user, created = await ensure_user(users, principal)
    again, created_again = await ensure_user(users, principal)

    assert created is True
    assert created_again is False
    assert again.id == user.id
    assert user.username == "jane_doe"


@pytest.mark.asyncio
async def test_ensure_user_returns_row_inserted_by_concurrent_request(session):
    await UserRepository(session).create(
        user_id="u1", email="u1@example.com", username="first_writer"
    )
    await session.commit()
    session.expunge_all()

    user, created = await ensure_user(
        _LaggingUserRepository(session), Principal(id="u1", email="u1@example.com")
    )

    assert created is False
    assert user.id == "u1"
    assert user.username == "first_writer"


@pytest.mark.asyncio
async def test_ensure_user_still_reports_real_conflicts(session, monkeypatch):
    users = UserRepository(session)

    async def _clash(**_kwargs):
        raise ConflictError("This username is already taken")

    monkeypatch.setattr(users, "create", _clash)

    with pytest.raises(ConflictError):
        await ensure_user(users, Principal(id="u2", email="u2@example.com"))
