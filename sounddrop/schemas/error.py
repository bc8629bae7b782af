"""Error response schemas for consistent error handling."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from sounddrop.schemas.common import APIModel


class ErrorType(str, Enum):
    """Types of errors that can occur."""

    VALIDATION_ERROR = "validation_error"
    AUTHENTICATION_ERROR = "authentication_error"
    AUTHORIZATION_ERROR = "authorization_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    DATABASE_ERROR = "database_error"
    TIMEOUT_ERROR = "timeout_error"
    INTERNAL_ERROR = "internal_error"


class ErrorResponse(APIModel):
    """Standardized error response model."""

    error: str = Field(..., description="Human-readable error message")
    error_type: ErrorType = Field(..., description="Category of error")
    detail: str | None = Field(None, description="Additional error details or context")
    status_code: int = Field(..., description="HTTP status code")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When error occurred"
    )
    request_id: str | None = Field(None, description="Unique request identifier for tracking")
    path: str | None = Field(None, description="Request path that caused the error")
    retry_after: int | None = Field(
        None, description="Seconds to wait before retrying (for rate limit/timeout errors)"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "You already have a library with this name",
                "errorType": "conflict",
                "statusCode": 409,
                "timestamp": "2025-11-03T10:30:00Z",
                "requestId": "5f0c1c3e-8d6f-4a51-9f0b-6d7c6a1f1f9e",
                "path": "/api/libraries",
            }
        }
    )


class ValidationErrorDetail(APIModel):
    """Details for validation errors."""

    field: str = Field(..., description="Field that failed validation")
    message: str = Field(..., description="Validation error message")
    value: Any = Field(None, description="Value that failed validation")


class ValidationErrorResponse(ErrorResponse):
    """Extended error response for validation errors."""

    error_type: ErrorType = Field(default=ErrorType.VALIDATION_ERROR)
    errors: list[ValidationErrorDetail] = Field(
        default_factory=list, description="List of validation errors"
    )
