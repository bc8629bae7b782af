from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_favoriting_twice_conflicts(api, headers_for):
    library = await api.create_library("u1", "Beats")
    sample = await api.create_sample("u1", library["id"], "Kick")

    created = await api.favorite("u2", sample["id"])
    again = await api.http.post(
        "/api/favorites", json={"sampleId": sample["id"]}, headers=headers_for("u2")
    )

    assert created["sampleId"] == sample["id"]
    assert created["userId"] == "u2"
    assert created["sample"]["favoriteCount"] == 1
    assert again.status_code == 409
    assert again.json()["error"] == "Sample already in favorites"


@pytest.mark.asyncio
async def test_favorite_requires_visible_sample(api, headers_for):
    library = await api.create_library("u1", "Secret", is_public=False)
    sample = await api.create_sample("u1", library["id"], "Whisper")

    hidden = await api.http.post(
        "/api/favorites", json={"sampleId": sample["id"]}, headers=headers_for("u2")
    )
    missing = await api.http.post(
        "/api/favorites", json={"sampleId": "nope"}, headers=headers_for("u2")
    )
    own = await api.http.post(
        "/api/favorites", json={"sampleId": sample["id"]}, headers=headers_for("u1")
    )

    assert hidden.status_code == 404
    assert missing.status_code == 404
    assert own.status_code == 201


@pytest.mark.asyncio
async def test_favorite_payload_is_validated(api, headers_for):
    wrong_type = await api.http.post(
        "/api/favorites", json={"sampleId": 42}, headers=headers_for("u1")
    )
    empty = await api.http.post("/api/favorites", json={}, headers=headers_for("u1"))
    anonymous = await api.http.post("/api/favorites", json={"sampleId": "x"})

    assert wrong_type.status_code == 400
    assert empty.status_code == 400
    assert anonymous.status_code == 401


@pytest.mark.asyncio
async def test_list_favorites_is_scoped_and_newest_first(api, headers_for):
    library = await api.create_library("u1", "Beats")
    kick = await api.create_sample("u1", library["id"], "Kick")
    snare = await api.create_sample("u1", library["id"], "Snare")
    await api.favorite("u2", kick["id"])
    await api.favorite("u2", snare["id"])
    await api.favorite("u3", kick["id"])

    response = await api.http.get("/api/favorites", headers=headers_for("u2"))

    body = response.json()
    assert response.status_code == 200
    assert {item["sampleId"] for item in body["data"]} == {kick["id"], snare["id"]}
    assert all(item["userId"] == "u2" for item in body["data"])
    kick_entry = next(item for item in body["data"] if item["sampleId"] == kick["id"])
    assert kick_entry["sample"]["favoriteCount"] == 2
    assert body["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_get_and_delete_favorite_only_for_owner(api, headers_for):
    library = await api.create_library("u1", "Beats")
    sample = await api.create_sample("u1", library["id"], "Kick")
    favorite = await api.favorite("u2", sample["id"])
    path = f"/api/favorites/{favorite['id']}"

    assert (await api.http.get(path, headers=headers_for("u2"))).status_code == 200
    assert (await api.http.get(path, headers=headers_for("u3"))).status_code == 404
    assert (await api.http.delete(path, headers=headers_for("u3"))).status_code == 404

    deleted = await api.http.delete(path, headers=headers_for("u2"))
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True}
    assert (await api.http.delete(path, headers=headers_for("u2"))).status_code == 404

    again = await api.http.post(
        "/api/favorites", json={"sampleId": sample["id"]}, headers=headers_for("u2")
    )
    assert again.status_code == 201
