"""Username validation and generation rules.

Usernames are stored lower-cased, 3 to 30 characters of ``[a-z0-9_]``, never
starting or ending with an underscore and never containing ``__``.  A small
set of reserved names is rejected outright.
"""

from __future__ import annotations

import random
import re
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
GENERATED_BASE_MAX_LENGTH = 20
FALLBACK_BASE_USERNAME = "sounddrop_user"
USERNAME_TAKEN_ERROR = "This username is already taken"
USERNAME_RESERVED_ERROR = "This username is reserved and cannot be used"

RESERVED_USERNAMES = frozenset(
    {
        "admin",
        "administrator",
        "root",
        "moderator",
        "mod",
        "support",
        "help",
        "api",
        "www",
        "mail",
        "email",
        "sounddrop",
        "system",
        "user",
        "users",
        "guest",
        "null",
        "undefined",
        "anonymous",
        "unknown",
    }
)

_ADJECTIVES = (
    "cool", "awesome", "epic", "super", "mega", "ultra", "pro", "elite",
    "swift", "bright", "sharp", "smart", "quick", "fast", "wild", "bold",
)  # fmt: skip
_NOUNS = (
    "beat", "sound", "wave", "drop", "mix", "tune", "vibe", "echo",
    "rhythm", "bass", "pulse", "flow", "track", "loop", "sonic",
)  # fmt: skip

_USERNAME_CHARS = re.compile(r"^[a-zA-Z0-9_]+$")
_DISPLAY_NAME_CHARS = re.compile(r"^[a-zA-Z0-9\s\-_.]+$")
_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_LEADING_NON_ALNUM = re.compile(r"^[^a-zA-Z0-9]+")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")

DISPLAY_NAME_MAX_LENGTH = 50

UsernameTaken = Callable[[str], Awaitable[bool]]


@dataclass(frozen=True, slots=True)
class UsernameCheck:
    is_valid: bool
    error: str | None = None
    sanitized: str | None = None


def sanitize_username(raw: str) -> str:
    return raw.strip().lower()


def format_error(username: str) -> str | None:
    """Return the first format rule ``username`` breaks, or ``None``."""

    if len(username) < USERNAME_MIN_LENGTH:
        return "Username must be at least 3 characters"
    if len(username) > USERNAME_MAX_LENGTH:
        return "Username must be at most 30 characters"
    if not _USERNAME_CHARS.match(username):
        return "Username can only contain letters, numbers, and underscores"
    if username.startswith("_"):
        return "Username cannot start with underscore"
    if username.endswith("_"):
        return "Username cannot end with underscore"
    if "__" in username:
        return "Username cannot contain consecutive underscores"
    return None


def validate_username_format(raw: str) -> UsernameCheck:
    sanitized = sanitize_username(raw)
    error = format_error(sanitized)
    if error is not None:
        return UsernameCheck(is_valid=False, error=error)
    return UsernameCheck(is_valid=True, sanitized=sanitized)


def is_reserved(username: str) -> bool:
    return username.lower() in RESERVED_USERNAMES


async def check_username(raw: str, *, is_taken: UsernameTaken) -> UsernameCheck:
    """Run format, reserved-name and availability checks in that order."""

    check = validate_username_format(raw)
    if not check.is_valid or check.sanitized is None:
        return check
    if is_reserved(check.sanitized):
        return UsernameCheck(is_valid=False, error=USERNAME_RESERVED_ERROR)
    if await is_taken(check.sanitized):
        return UsernameCheck(is_valid=False, error=USERNAME_TAKEN_ERROR)
    return check


def validate_display_name(raw: str | None) -> str | None:
    """Return the cleaned display name; ``None`` or blank clears it.

    Raises ``ValueError`` when the name is too long or has disallowed characters.
    """

    if raw is None or raw == "":
        return None
    cleaned = raw.strip()
    if (
        not cleaned
        or len(cleaned) > DISPLAY_NAME_MAX_LENGTH
        or not _DISPLAY_NAME_CHARS.match(cleaned)
    ):
        raise ValueError("Display name format is invalid")
    return cleaned


def base_username_from_email(email: str) -> str:
    prefix = email.split("@", 1)[0]
    base = _INVALID_CHARS.sub("_", prefix)
    base = _LEADING_NON_ALNUM.sub("", base)
    base = _REPEATED_UNDERSCORES.sub("_", base).strip("_")
    if len(base) < USERNAME_MIN_LENGTH:
        base = FALLBACK_BASE_USERNAME
    return base[:GENERATED_BASE_MAX_LENGTH].rstrip("_").lower()


async def generate_username_from_email(
    email: str, *, is_taken: UsernameTaken, rng: random.Random | None = None
) -> str:
    """Derive a free username from the email prefix, adding a numeric suffix on clashes."""

    rng = rng or random.Random()
    base = base_username_from_email(email)
    if not is_reserved(base) and not await is_taken(base):
        return base

    for _ in range(10):
        candidate = f"{base}_{rng.randrange(10000):04d}"
        if not await is_taken(candidate):
            return candidate

    return f"sounddrop_{str(time.time_ns() // 1_000_000)[-6:]}"


async def generate_random_username(
    *, is_taken: UsernameTaken, rng: random.Random | None = None
) -> str:
    rng = rng or random.Random()
    for _ in range(20):
        candidate = f"{rng.choice(_ADJECTIVES)}_{rng.choice(_NOUNS)}_{rng.randrange(1000)}"
        if not await is_taken(candidate):
            return candidate
    return f"user_{str(time.time_ns() // 1_000_000)[-8:]}"


__all__ = [
    "RESERVED_USERNAMES",
    "USERNAME_RESERVED_ERROR",
    "USERNAME_TAKEN_ERROR",
    "UsernameCheck",
    "base_username_from_email",
    "check_username",
    "generate_random_username",
    "generate_username_from_email",
    "is_reserved",
    "sanitize_username",
    "validate_display_name",
    "validate_username_format",
]
