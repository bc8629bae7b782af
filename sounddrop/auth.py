"""Resolve the calling principal from headers set by the authenticating gateway.

Authentication itself happens upstream; the API trusts ``X-User-Id`` and the
accompanying profile headers.  Endpoints that need a signed-in caller depend
on :func:`require_principal`, everything else on :func:`get_optional_principal`.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status

USER_ID_HEADER = "X-User-Id"
USER_EMAIL_HEADER = "X-User-Email"
USER_NAME_HEADER = "X-User-Name"
USER_AVATAR_HEADER = "X-User-Avatar"


@dataclass(frozen=True, slots=True)
class Principal:
    id: str
    email: str | None = None
    name: str | None = None
    avatar: str | None = None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


async def get_optional_principal(
    user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    email: str | None = Header(default=None, alias=USER_EMAIL_HEADER),
    name: str | None = Header(default=None, alias=USER_NAME_HEADER),
    avatar: str | None = Header(default=None, alias=USER_AVATAR_HEADER),
) -> Principal | None:
    """Return the forwarded principal, or ``None`` for anonymous requests."""

    resolved_id = _clean(user_id)
    if resolved_id is None:
        return None
    return Principal(
        id=resolved_id,
        email=_clean(email),
        name=_clean(name),
        avatar=_clean(avatar),
    )


async def require_principal(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return principal


__all__ = [
    "Principal",
    "USER_AVATAR_HEADER",
    "USER_EMAIL_HEADER",
    "USER_ID_HEADER",
    "USER_NAME_HEADER",
    "get_optional_principal",
    "require_principal",
]
