import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import (
    DatabaseError,
    DBAPIError,
    IntegrityError,
    OperationalError,
)
from sqlalchemy.exc import (
    TimeoutError as SQLAlchemyTimeoutError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from sounddrop.api import categories, favorites, libraries, samples, search, stats, users
from sounddrop.cache import close_redis
from sounddrop.db.connection import dispose_engine, get_database_type, get_database_url
from sounddrop.schemas.error import ErrorType, ValidationErrorDetail
from sounddrop.settings import get_settings
from sounddrop.utils.error_responses import (
    build_error_response,
    build_validation_error_response,
    error_type_for_status,
)
from sounddrop.utils.request_context import get_request_id, set_request_id
from sounddrop.warmup import warmup_all

settings = get_settings()

logging.basicConfig(
    level=settings.log_level_numeric,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_PYDANTIC_VALUE_ERROR_PREFIX = "Value error, "


def validate_environment() -> None:
    """Log warnings for optional settings that were left unset."""

    warnings = settings.optional_config_warnings()
    if warnings:
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning("  - %s", warning)


def _sanitize_database_url(url: str) -> str:
    """Mask the password component of ``url`` so it can be logged."""
    scheme, sep, rest = url.partition("://")
    credentials, at, location = rest.rpartition("@")
    if not sep or not at or ":" not in credentials:
        return url
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{location}"


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_environment()

    database_type = get_database_type()
    logger.info(
        "Starting SoundDrop API on %s (%s)",
        database_type,
        _sanitize_database_url(get_database_url()),
    )
    if database_type == "sqlite":
        logger.info("Run scripts/init_db.py if the SQLite tables do not exist yet")

    await warmup_all()

    yield

    logger.info("Shutting down SoundDrop API")
    await close_redis()
    await dispose_engine()


app = FastAPI(
    title="SoundDrop API",
    version="0.1.0",
    description="Share, organise and favorite short audio samples.",
    lifespan=lifespan,
    redirect_slashes=False,
)

# Local frontend dev servers (Next.js and Vite).
_DEV_PORTS = (*range(3000, 3011), 5173)


def _default_origins() -> list[str]:
    return [
        f"http://{host}:{port}" for host in ("localhost", "127.0.0.1") for port in _DEV_PORTS
    ]


def _combine_origins(*origin_groups: list[str]) -> list[str]:
    """Flatten ``origin_groups`` keeping first occurrences only."""
    normalized = (origin.rstrip("/") for group in origin_groups for origin in group)
    return list(dict.fromkeys(origin for origin in normalized if origin))


allow_origins = _combine_origins(_default_origins(), settings.cors_allow_origins)
cors_origin_regex = settings.cors_allow_origin_regex or None
if cors_origin_regex:
    logger.info("CORS origin regex enabled: %s", cors_origin_regex)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_origin_regex=cors_origin_regex,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Tag each request with an id, reusing one supplied by the caller."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    set_request_id(request_id)
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def _json_error(
    request: Request,
    *,
    error_type: ErrorType,
    message: str,
    status_code: int,
    detail: str | None = None,
    retry_after: int | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = build_error_response(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        path=str(request.url.path),
        retry_after=retry_after,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True),
        headers=headers,
    )


def _validation_details(raw_errors) -> list[ValidationErrorDetail]:
    details = []
    for error in raw_errors:
        message = str(error.get("msg", "Invalid value")).removeprefix(
            _PYDANTIC_VALUE_ERROR_PREFIX
        )
        details.append(
            ValidationErrorDetail(
                field=".".join(str(loc) for loc in error.get("loc", ())),
                message=message,
                value=error.get("input"),
            )
        )
    return details


def _validation_response(request: Request, raw_errors) -> JSONResponse:
    """Every validation failure is a 400 whose ``error`` is the first field message."""
    errors = _validation_details(raw_errors)
    logger.warning(
        "Rejected %s: %d invalid field(s) (request %s)",
        request.url.path,
        len(errors),
        get_request_id(),
    )
    body = build_validation_error_response(
        message=errors[0].message if errors else "Request validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_400_BAD_REQUEST,
        path=str(request.url.path),
        errors=errors,
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=body.model_dump(mode="json", by_alias=True),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    headers = dict(exc.headers or {})
    retry_after = headers.get("Retry-After")
    return _json_error(
        request,
        error_type=error_type_for_status(exc.status_code),
        message=str(exc.detail),
        status_code=exc.status_code,
        retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
        headers=headers or None,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _validation_response(request, exc.errors())


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    """Models built inside services can still fail validation after routing."""
    return _validation_response(request, exc.errors())


def _log_database_failure(kind: str, request: Request, exc: Exception) -> None:
    logger.error("%s on %s (request %s): %s", kind, request.url.path, get_request_id(), exc)


@app.exception_handler(OperationalError)
@app.exception_handler(DBAPIError)
async def database_connection_exception_handler(request: Request, exc: Exception):
    _log_database_failure("Database unreachable", request, exc)
    return _json_error(
        request,
        error_type=ErrorType.DATABASE_ERROR,
        message="Database connection failed",
        detail="The database is unavailable right now; retry shortly.",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        retry_after=5,
    )


@app.exception_handler(SQLAlchemyTimeoutError)
async def database_timeout_exception_handler(request: Request, exc: SQLAlchemyTimeoutError):
    """Connection pool exhaustion surfaces as a gateway timeout."""
    _log_database_failure("Database pool timeout", request, exc)
    return _json_error(
        request,
        error_type=ErrorType.TIMEOUT_ERROR,
        message="Database query timeout",
        detail="No database connection became available in time.",
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        retry_after=3,
    )


@app.exception_handler(IntegrityError)
async def database_integrity_exception_handler(request: Request, exc: IntegrityError):
    """Constraint violations that slipped past the services' own conflict checks."""
    _log_database_failure("Constraint violation", request, exc)
    return _json_error(
        request,
        error_type=ErrorType.CONFLICT,
        message="Resource conflicts with existing data",
        detail="A uniqueness or reference constraint rejected the write.",
        status_code=status.HTTP_409_CONFLICT,
    )


@app.exception_handler(DatabaseError)
async def database_generic_exception_handler(request: Request, exc: DatabaseError):
    _log_database_failure("Database failure", request, exc)
    return _json_error(
        request,
        error_type=ErrorType.DATABASE_ERROR,
        message="Database operation failed",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        retry_after=3,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled %s on %s (request %s)",
        type(exc).__name__,
        request.url.path,
        get_request_id(),
    )
    return _json_error(
        request,
        error_type=ErrorType.INTERNAL_ERROR,
        message="Internal server error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
app.include_router(libraries.router, prefix="/api/libraries", tags=["libraries"])
app.include_router(samples.router, prefix="/api/samples", tags=["samples"])
app.include_router(favorites.router, prefix="/api/favorites", tags=["favorites"])
app.include_router(users.router, prefix="/api/user", tags=["user"])
app.include_router(stats.router, prefix="/api/stats", tags=["stats"])
app.include_router(stats.trending_router, prefix="/api/trending", tags=["trending"])
app.include_router(search.router, prefix="/api/search", tags=["search"])
