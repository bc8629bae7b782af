"""Shared fixtures: an in-memory database, the ASGI app and request helpers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from sounddrop.auth import USER_EMAIL_HEADER, USER_ID_HEADER, USER_NAME_HEADER
from sounddrop.cache import CacheClient, get_cache_client, local_cache_clear_all
from sounddrop.db.connection import get_db
from sounddrop.db.models import Base, Category
from sounddrop.db.seed import seed_categories
from sounddrop.main import app
from sounddrop.services.rate_limit import get_upload_rate_limiter


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """In-memory SQLite engine shared across connections, with FKs enforced."""

    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with factory() as seed_session:
        await seed_categories(seed_session)
        await seed_session.commit()
    return factory


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Session for repository-level tests; uncommitted work is rolled back."""

    async with session_factory() as db_session:
        yield db_session
        if db_session.in_transaction():
            await db_session.rollback()


@pytest_asyncio.fixture
async def category_ids(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, str]:
    """Map of seeded category slug to id."""

    async with session_factory() as db_session:
        result = await db_session.execute(select(Category.slug, Category.id))
        return {slug: category_id for slug, category_id in result.all()}


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client bound to the app with the database and cache swapped out."""

    async def _override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as db_session:
            try:
                yield db_session
                await db_session.commit()
            except Exception:
                await db_session.rollback()
                raise

    async def _override_get_cache_client() -> CacheClient:
        return CacheClient(None)

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_cache_client] = _override_get_cache_client
    await local_cache_clear_all()
    get_upload_rate_limiter().reset()

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()
    await local_cache_clear_all()
    get_upload_rate_limiter().reset()


def user_headers(user_id: str, *, email: str | None = None, name: str | None = None) -> dict[str, str]:
    """Identity headers the gateway would forward for ``user_id``."""

    headers = {USER_ID_HEADER: user_id}
    headers[USER_EMAIL_HEADER] = email or f"{user_id}@example.com"
    if name:
        headers[USER_NAME_HEADER] = name
    return headers


class SoundDropApi:
    """Thin wrapper creating fixtures through the public HTTP surface."""

    def __init__(self, http: httpx.AsyncClient, category_ids: dict[str, str]) -> None:
        self.http = http
        self.category_ids = category_ids

    async def create_library(
        self,
        user_id: str,
        name: str,
        *,
        category: str = "music",
        is_public: bool = True,
        description: str | None = None,
    ) -> dict[str, Any]:
        response = await self.http.post(
            "/api/libraries",
            json={
                "name": name,
                "categoryId": self.category_ids[category],
                "isPublic": is_public,
                "description": description,
            },
            headers=user_headers(user_id),
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    async def create_sample(
        self,
        user_id: str,
        library_id: str,
        name: str,
        *,
        mime_type: str = "audio/mpeg",
        file_size: int = 1024,
        duration: float = 2.5,
    ) -> dict[str, Any]:
        response = await self.http.post(
            "/api/samples",
            json={
                "name": name,
                "libraryId": library_id,
                "fileUrl": f"https://cdn.example.com/{name}.mp3",
                "duration": duration,
                "fileSize": file_size,
                "mimeType": mime_type,
            },
            headers=user_headers(user_id),
        )
        assert response.status_code == 201, response.text
        return response.json()["sample"]

    async def favorite(self, user_id: str, sample_id: str) -> dict[str, Any]:
        response = await self.http.post(
            "/api/favorites",
            json={"sampleId": sample_id},
            headers=user_headers(user_id),
        )
        assert response.status_code == 201, response.text
        return response.json()


@pytest_asyncio.fixture
async def api(client: httpx.AsyncClient, category_ids: dict[str, str]) -> SoundDropApi:
    return SoundDropApi(client, category_ids)


@pytest.fixture
def headers_for():
    """Expose :func:`user_headers` to tests without importing the conftest."""

    return user_headers
