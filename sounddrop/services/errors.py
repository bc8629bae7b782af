"""Domain exceptions raised by services and translated by the routers.

Services otherwise use the builtin ``LookupError`` (missing or invisible
resource), ``PermissionError`` (ownership violation) and ``ValueError``
(invalid input).
"""

from __future__ import annotations


class ConflictError(ValueError):
    """A uniqueness rule would be violated (duplicate name, favorite, username)."""


class RateLimitedError(RuntimeError):
    """The caller exceeded a per-user quota."""

    def __init__(self, message: str, *, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


__all__ = ["ConflictError", "RateLimitedError"]
