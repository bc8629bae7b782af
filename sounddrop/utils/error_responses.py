"""Builders for structured API error payloads.

Each builder stamps the current request id and a timezone-aware timestamp so
every error body shares one shape regardless of which handler produced it.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from http import HTTPStatus

from sounddrop.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from sounddrop.utils.request_context import get_request_id

__all__ = [
    "build_error_response",
    "build_validation_error_response",
    "error_type_for_status",
]

_STATUS_ERROR_TYPES: dict[int, ErrorType] = {
    HTTPStatus.BAD_REQUEST: ErrorType.VALIDATION_ERROR,
    HTTPStatus.UNAUTHORIZED: ErrorType.AUTHENTICATION_ERROR,
    HTTPStatus.FORBIDDEN: ErrorType.AUTHORIZATION_ERROR,
    HTTPStatus.NOT_FOUND: ErrorType.NOT_FOUND,
    HTTPStatus.CONFLICT: ErrorType.CONFLICT,
    HTTPStatus.UNPROCESSABLE_ENTITY: ErrorType.VALIDATION_ERROR,
    HTTPStatus.TOO_MANY_REQUESTS: ErrorType.RATE_LIMITED,
    HTTPStatus.SERVICE_UNAVAILABLE: ErrorType.DATABASE_ERROR,
    HTTPStatus.GATEWAY_TIMEOUT: ErrorType.TIMEOUT_ERROR,
}


def _current_timestamp() -> datetime:
    """Return the timestamp stamped on error payloads (patched in tests)."""

    return datetime.now(UTC)


def error_type_for_status(status_code: int) -> ErrorType:
    """Map an HTTP status code onto the error taxonomy."""

    return _STATUS_ERROR_TYPES.get(status_code, ErrorType.INTERNAL_ERROR)


def build_validation_error_response(
    *,
    errors: Sequence[ValidationErrorDetail],
    message: str,
    detail: str,
    status_code: int,
    path: str,
    request_id: str | None = None,
) -> ValidationErrorResponse:
    """Construct a ``ValidationErrorResponse`` listing every failing field."""

    return ValidationErrorResponse(
        error=message,
        error_type=ErrorType.VALIDATION_ERROR,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        errors=list(errors),
    )


def build_error_response(
    *,
    error_type: ErrorType,
    message: str,
    status_code: int,
    path: str,
    detail: str | None = None,
    retry_after: int | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    """Construct a generic ``ErrorResponse`` enriched with request metadata."""

    return ErrorResponse(
        error=message,
        error_type=error_type,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        retry_after=retry_after,
    )
