from __future__ import annotations

import pytest

from sounddrop.services.rate_limit import get_upload_rate_limiter


def _sample_payload(library_id: str, name: str = "Kick", **overrides):
    payload = {
        "name": name,
        "libraryId": library_id,
        "fileUrl": "https://cdn.example.com/kick.mp3",
        "duration": 1.5,
        "fileSize": 2048,
        "mimeType": "audio/mpeg",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_sample_returns_sample_payload(api):
    library = await api.create_library("u1", "Beats")

    sample = await api.create_sample("u1", library["id"], "Kick", duration=1.25)

    assert sample["name"] == "Kick"
    assert sample["libraryId"] == library["id"]
    assert sample["playCount"] == 0
    assert sample["duration"] == 1.25
    assert sample["library"]["user"]["id"] == "u1"


@pytest.mark.asyncio
async def test_create_sample_rejects_unsupported_mime_type(api, headers_for):
    library = await api.create_library("u1", "Beats")

    response = await api.http.post(
        "/api/samples",
        json=_sample_payload(library["id"], mimeType="video/mp4"),
        headers=headers_for("u1"),
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid file type. Allowed types: audio/mpeg")


@pytest.mark.asyncio
async def test_create_sample_rejects_oversized_file(api, headers_for):
    library = await api.create_library("u1", "Beats")

    response = await api.http.post(
        "/api/samples",
        json=_sample_payload(library["id"], fileSize=50 * 1024 * 1024 + 1),
        headers=headers_for("u1"),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "File too large. Maximum size: 50MB"


@pytest.mark.asyncio
async def test_create_sample_in_foreign_library_is_forbidden(api, headers_for):
    library = await api.create_library("u1", "Beats")

    forbidden = await api.http.post(
        "/api/samples", json=_sample_payload(library["id"]), headers=headers_for("u2")
    )
    missing = await api.http.post(
        "/api/samples", json=_sample_payload("nope"), headers=headers_for("u2")
    )

    assert forbidden.status_code == 403
    assert missing.status_code == 404
    assert missing.json()["error"] == "Library not found"


@pytest.mark.asyncio
async def test_create_sample_rejects_duplicate_name_in_library(api, headers_for):
    library = await api.create_library("u1", "Beats")
    await api.create_sample("u1", library["id"], "Kick")

    response = await api.http.post(
        "/api/samples", json=_sample_payload(library["id"], " Kick "), headers=headers_for("u1")
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_upload_rate_limit_returns_429_with_retry_after(api, headers_for):
    library = await api.create_library("u1", "Beats")
    limiter = get_upload_rate_limiter()

    for index in range(limiter.max_events):
        await api.create_sample("u1", library["id"], f"Sample {index}")

    response = await api.http.post(
        "/api/samples",
        json=_sample_payload(library["id"], "One Too Many"),
        headers=headers_for("u1"),
    )

    assert response.status_code == 429
    body = response.json()
    assert body["errorType"] == "rate_limited"
    assert body["error"] == f"Upload limit exceeded. Maximum {limiter.max_events} uploads per hour."
    assert int(response.headers["Retry-After"]) > 0
    assert body["retryAfter"] == int(response.headers["Retry-After"])

    other_user = await api.create_library("u2", "Mine")
    assert (await api.create_sample("u2", other_user["id"], "Fine"))["name"] == "Fine"


@pytest.mark.asyncio
async def test_play_increments_count_once_per_call(api):
    library = await api.create_library("u1", "Beats")
    sample = await api.create_sample("u1", library["id"], "Kick")

    first = await api.http.post(f"/api/samples/{sample['id']}/play")
    second = await api.http.post(f"/api/samples/{sample['id']}/play")

    assert first.json() == {"success": True, "playCount": 1}
    assert second.json() == {"success": True, "playCount": 2}
    fetched = await api.http.get(f"/api/samples/{sample['id']}")
    assert fetched.json()["playCount"] == 2


@pytest.mark.asyncio
async def test_play_on_private_sample_is_hidden_from_others(api, headers_for):
    library = await api.create_library("u1", "Secret", is_public=False)
    sample = await api.create_sample("u1", library["id"], "Whisper")

    hidden = await api.http.post(f"/api/samples/{sample['id']}/play", headers=headers_for("u2"))
    owner = await api.http.post(f"/api/samples/{sample['id']}/play", headers=headers_for("u1"))

    assert hidden.status_code == 404
    assert owner.json()["playCount"] == 1


@pytest.mark.asyncio
async def test_list_samples_hides_private_libraries(api, headers_for):
    public = await api.create_library("u1", "Open")
    private = await api.create_library("u1", "Closed", is_public=False)
    await api.create_sample("u1", public["id"], "Shared")
    await api.create_sample("u1", private["id"], "Hidden")

    anonymous = await api.http.get("/api/samples")
    owner = await api.http.get("/api/samples", headers=headers_for("u1"))

    assert [item["name"] for item in anonymous.json()["data"]] == ["Shared"]
    assert {item["name"] for item in owner.json()["data"]} == {"Shared", "Hidden"}


@pytest.mark.asyncio
async def test_list_samples_filters_and_sorts(api):
    beats = await api.create_library("u1", "Beats", category="music")
    lines = await api.create_library("u1", "Lines", category="movies")
    await api.create_sample("u1", beats["id"], "Bass", duration=3.0)
    await api.create_sample("u1", beats["id"], "Clap", duration=1.0)
    await api.create_sample("u1", lines["id"], "Quote", duration=2.0)

    by_category = await api.http.get(
        "/api/samples", params={"categoryId": api.category_ids["movies"]}
    )
    by_library = await api.http.get(
        "/api/samples",
        params={"libraryId": beats["id"], "sortBy": "duration", "sortOrder": "asc"},
    )
    by_search = await api.http.get("/api/samples", params={"search": "lines"})

    assert [item["name"] for item in by_category.json()["data"]] == ["Quote"]
    assert [item["name"] for item in by_library.json()["data"]] == ["Clap", "Bass"]
    assert [item["name"] for item in by_search.json()["data"]] == ["Quote"]


@pytest.mark.asyncio
async def test_list_samples_rejects_unknown_sort_field(api):
    response = await api.http.get("/api/samples", params={"sortBy": "fileSize"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_sample_requires_library_owner(api, headers_for):
    library = await api.create_library("u1", "Beats")
    sample = await api.create_sample("u1", library["id"], "Kick")
    path = f"/api/samples/{sample['id']}"

    assert (await api.http.delete(path, headers=headers_for("u2"))).status_code == 403
    deleted = await api.http.delete(path, headers=headers_for("u1"))
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Sample deleted successfully"}
    assert (await api.http.get(path, headers=headers_for("u1"))).status_code == 404
    assert (await api.http.delete(path, headers=headers_for("u1"))).status_code == 404
