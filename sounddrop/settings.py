"""Configuration for the SoundDrop API, read from the environment and ``.env``."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Populate os.environ from .env once, at import time, so scripts and the app agree.
load_dotenv()

DEFAULT_SQLITE_DATABASE_URL = "sqlite+aiosqlite:///./data/sounddrop.db"
POSTGRES_ASYNC_PREFIX = "postgresql+psycopg://"
POSTGRES_SYNC_PREFIXES = ("postgres://", "postgresql://")
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_REDIS_RETRY_BACKOFF_SECONDS = 30.0
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_MAX_AUDIO_SIZE_MB = 50
DEFAULT_UPLOAD_RATE_LIMIT_PER_HOUR = 10

ALLOWED_AUDIO_TYPES: tuple[str, ...] = (
    "audio/mpeg",
    "audio/wav",
    "audio/mp3",
    "audio/mp4",
    "audio/ogg",
)


def _env_is_set(name: str) -> bool:
    value = os.getenv(name)
    return bool(value and value.strip())


class AppSettings(BaseSettings):
    """Environment-backed settings for the API, the cache and the database layer.

    Field names are snake_case; the environment variable for each field is its
    upper-case alias. Keyword overrides passed to the constructor count as
    "configured" for the purpose of :meth:`optional_config_warnings`.
    """

    _redis_configured: bool = PrivateAttr(default=False)
    _cors_configured: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        overrides = {str(key).lower() for key in values}
        super().__init__(**values)
        self._redis_configured = bool(overrides & {"redis_url"}) or _env_is_set("REDIS_URL")
        self._cors_configured = bool(
            overrides & {"cors_allow_origins_raw", "cors_allow_origins"}
        ) or _env_is_set("CORS_ALLOW_ORIGINS")

    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="PostgreSQL URL; plain postgres:// forms are rewritten for psycopg.",
    )
    use_sqlite: bool = Field(
        default=False,
        alias="USE_SQLITE",
        description="Use the bundled SQLite file even when DATABASE_URL is present.",
    )
    redis_url: str = Field(default=DEFAULT_REDIS_URL, alias="REDIS_URL")
    redis_retry_backoff_seconds: float = Field(
        default=DEFAULT_REDIS_RETRY_BACKOFF_SECONDS,
        alias="REDIS_RETRY_BACKOFF_SECONDS",
        description="Seconds to wait before retrying Redis after a failed connect.",
    )
    cors_allow_origins_raw: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGINS",
        description="Extra allowed origins, comma separated.",
    )
    cors_allow_origin_regex: str | None = Field(default=None, alias="CORS_ALLOW_ORIGIN_REGEX")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, alias="LOG_LEVEL")
    slow_query_threshold: float = Field(
        default=0.1,
        alias="SLOW_QUERY_THRESHOLD",
        description="Queries slower than this many seconds are logged.",
    )
    max_audio_size_mb: int = Field(
        default=DEFAULT_MAX_AUDIO_SIZE_MB,
        alias="MAX_AUDIO_SIZE_MB",
        ge=1,
        description="Largest accepted audio upload in megabytes.",
    )
    upload_rate_limit_per_hour: int = Field(
        default=DEFAULT_UPLOAD_RATE_LIMIT_PER_HOUR,
        alias="UPLOAD_RATE_LIMIT_PER_HOUR",
        ge=1,
        description="Sample registrations allowed per user in a rolling hour.",
    )
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE, alias="DEFAULT_PAGE_SIZE", ge=1)
    max_page_size: int = Field(default=MAX_PAGE_SIZE, alias="MAX_PAGE_SIZE", ge=1)

    @property
    def resolved_database_url(self) -> str:
        """Async SQLAlchemy URL, falling back to SQLite when nothing is configured."""

        if self.use_sqlite or not self.database_url:
            return DEFAULT_SQLITE_DATABASE_URL

        url = self.database_url.strip()
        if url.startswith((POSTGRES_ASYNC_PREFIX, "sqlite+aiosqlite")):
            return url

        prefix = next((p for p in POSTGRES_SYNC_PREFIXES if url.startswith(p)), None)
        if prefix is None:
            raise RuntimeError(f"Unsupported DATABASE_URL scheme: {url}")
        return POSTGRES_ASYNC_PREFIX + url[len(prefix):]

    @property
    def database_type(self) -> str:
        return "sqlite" if self.resolved_database_url.startswith("sqlite") else "postgresql"

    @property
    def cors_allow_origins(self) -> list[str]:
        raw = self.cors_allow_origins_raw or ""
        origins = (chunk.strip().rstrip("/") for chunk in raw.split(","))
        return [origin for origin in origins if origin]

    @property
    def max_audio_size_bytes(self) -> int:
        return self.max_audio_size_mb * 1024 * 1024

    @property
    def log_level_numeric(self) -> int:
        """Numeric logging level; unknown names map to ``INFO``."""

        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Messages describing optional settings that were left at their defaults."""

        warnings: list[str] = []
        if not self._redis_configured and self.redis_url == DEFAULT_REDIS_URL:
            warnings.append(
                "REDIS_URL is not set - responses are cached in process memory only"
            )
        if not self._cors_configured and not self.cors_allow_origins:
            warnings.append(
                "CORS_ALLOW_ORIGINS is not set - only localhost origins are allowed"
            )
        if not self.database_url and not self.use_sqlite:
            warnings.append(
                "DATABASE_URL is not set - falling back to the local SQLite database"
            )
        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()

__all__ = [
    "ALLOWED_AUDIO_TYPES",
    "AppSettings",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SQLITE_DATABASE_URL",
    "MAX_PAGE_SIZE",
    "POSTGRES_ASYNC_PREFIX",
    "get_settings",
    "settings",
]
