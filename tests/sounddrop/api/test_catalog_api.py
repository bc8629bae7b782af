"""Categories, homepage stats, trending feed and quick search."""

from __future__ import annotations

import pytest

from sounddrop.db.seed import DEFAULT_CATEGORIES


@pytest.mark.asyncio
async def test_health_endpoint_echoes_request_id(client):
    response = await client.get("/health", headers={"X-Request-ID": "req-42"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"] == "req-42"


@pytest.mark.asyncio
async def test_error_body_carries_generated_request_id(client):
    response = await client.get("/api/libraries/missing")

    assert response.status_code == 404
    body = response.json()
    assert body["requestId"] == response.headers["X-Request-ID"]
    assert body["path"] == "/api/libraries/missing"
    assert body["error"] == "Library not found"


@pytest.mark.asyncio
async def test_categories_listed_in_display_order_with_public_counts(api):
    await api.create_library("u1", "Beats", category="music")
    await api.create_library("u1", "Hidden Beats", category="music", is_public=False)

    response = await api.http.get("/api/categories")

    assert response.status_code == 200
    data = response.json()["data"]
    assert [item["slug"] for item in data] == [entry["slug"] for entry in DEFAULT_CATEGORIES]
    assert [item["order"] for item in data] == list(range(1, 11))
    counts = {item["slug"]: item["libraryCount"] for item in data}
    assert counts["music"] == 1
    assert counts["memes"] == 0


@pytest.mark.asyncio
async def test_category_list_is_refreshed_after_library_mutation(api):
    before = await api.http.get("/api/categories")
    assert {item["slug"]: item["libraryCount"] for item in before.json()["data"]}["games"] == 0

    await api.create_library("u1", "Arcade", category="games")

    after = await api.http.get("/api/categories")
    assert {item["slug"]: item["libraryCount"] for item in after.json()["data"]}["games"] == 1


@pytest.mark.asyncio
async def test_category_detail_reports_stats_and_trending(api):
    first = await api.create_library("u1", "Beats", category="music")
    second = await api.create_library("u2", "Loops", category="music")
    hidden = await api.create_library("u3", "Private", category="music", is_public=False)
    kick = await api.create_sample("u1", first["id"], "Kick")
    await api.create_sample("u2", second["id"], "Loop")
    await api.create_sample("u3", hidden["id"], "Secret")
    await api.http.post(f"/api/samples/{kick['id']}/play")

    response = await api.http.get("/api/categories/music")

    assert response.status_code == 200
    body = response.json()
    assert body["category"]["slug"] == "music"
    assert body["category"]["libraryCount"] == 2
    assert body["stats"] == {"sampleCount": 2, "libraryCount": 2, "contributorCount": 2}
    assert [item["name"] for item in body["trendingSamples"]] == ["Kick", "Loop"]


@pytest.mark.asyncio
async def test_unknown_category_returns_404(client):
    response = await client.get("/api/categories/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error"] == "Category not found"


@pytest.mark.asyncio
async def test_stats_count_public_content_and_refresh_after_upload(api):
    empty = await api.http.get("/api/stats")
    assert empty.json()["raw"] == {
        "totalSamples": 0,
        "totalLibraries": 0,
        "totalUsers": 0,
        "recentSamples": 0,
    }

    library = await api.create_library("u1", "Beats")
    await api.create_library("u1", "Hidden", is_public=False)
    await api.create_sample("u1", library["id"], "Kick")

    stats = (await api.http.get("/api/stats")).json()

    assert stats["totalSamples"] == "1"
    assert stats["totalLibraries"] == "1"
    assert stats["totalUsers"] == "1"
    assert stats["raw"]["recentSamples"] == 1


@pytest.mark.asyncio
async def test_trending_lists_recently_played_public_samples(api):
    library = await api.create_library("u1", "Beats")
    hidden = await api.create_library("u1", "Hidden", is_public=False)
    kick = await api.create_sample("u1", library["id"], "Kick")
    snare = await api.create_sample("u1", library["id"], "Snare")
    await api.create_sample("u1", library["id"], "Never Played")
    secret = await api.create_sample("u1", hidden["id"], "Secret")

    for _ in range(2):
        await api.http.post(f"/api/samples/{snare['id']}/play")
    await api.http.post(f"/api/samples/{kick['id']}/play")
    await api.http.post(f"/api/samples/{secret['id']}/play", headers={"X-User-Id": "u1"})

    response = await api.http.get("/api/trending")

    assert response.status_code == 200
    assert [item["name"] for item in response.json()["data"]] == ["Snare", "Kick"]
    assert (await api.http.get("/api/trending", params={"hours": 0})).status_code == 400


@pytest.mark.asyncio
async def test_search_requires_two_characters(client):
    for query in (None, "", " a "):
        params = {} if query is None else {"q": query}
        response = await client.get("/api/search", params=params)
        assert response.json() == {"samples": [], "libraries": [], "users": []}


@pytest.mark.asyncio
async def test_search_covers_samples_libraries_and_users(api, headers_for):
    sync = await api.http.post(
        "/api/user/sync", headers=headers_for("u1", email="drummer@example.com")
    )
    assert sync.status_code == 200
    library = await api.create_library("u1", "Drum Kit")
    hidden = await api.create_library("u1", "Drum Secrets", is_public=False)
    await api.create_sample("u1", library["id"], "Kick")
    await api.create_sample("u1", hidden["id"], "Drum Solo")

    response = await api.http.get("/api/search", params={"q": "drum"})

    body = response.json()
    assert [item["name"] for item in body["samples"]] == ["Kick"]
    assert [item["name"] for item in body["libraries"]] == ["Drum Kit"]
    assert body["libraries"][0]["sampleCount"] == 1
    assert [item["username"] for item in body["users"]] == ["drummer"]
    assert body["users"][0]["libraryCount"] == 1
