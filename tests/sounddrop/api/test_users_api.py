from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_sync_creates_user_once(client, headers_for):
    headers = headers_for("u1", email="Jane.Doe@example.com", name="Jane Doe")

    first = await client.post("/api/user/sync", headers=headers)
    second = await client.post("/api/user/sync", headers=headers)

    assert first.status_code == 200
    assert first.json()["synced"] is True
    assert first.json()["message"] == "User created successfully"
    user = first.json()["user"]
    assert user["username"] == "jane_doe"
    assert user["displayName"] == "Jane Doe"
    assert user["email"] == "Jane.Doe@example.com"
    assert second.json()["synced"] is False
    assert second.json()["user"]["id"] == user["id"]


@pytest.mark.asyncio
async def test_generated_usernames_do_not_collide(client, headers_for):
    first = await client.post("/api/user/sync", headers=headers_for("u1", email="beat@one.test"))
    second = await client.post("/api/user/sync", headers=headers_for("u2", email="beat@two.test"))

    assert first.json()["user"]["username"] == "beat"
    generated = second.json()["user"]["username"]
    assert generated != "beat"
    assert generated.startswith("beat_")


@pytest.mark.asyncio
async def test_settings_require_principal_and_existing_account(client, headers_for):
    assert (await client.get("/api/user/settings")).status_code == 401

    missing = await client.get("/api/user/settings", headers=headers_for("ghost"))
    assert missing.status_code == 404
    assert missing.json()["error"] == "User not found"


@pytest.mark.asyncio
async def test_update_settings_changes_username_and_display_name(client, headers_for):
    headers = headers_for("u1", email="first@example.com")
    await client.post("/api/user/sync", headers=headers)

    response = await client.patch(
        "/api/user/settings",
        json={"username": "  NewName ", "displayName": "DJ New"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Settings updated successfully"
    assert body["user"]["username"] == "newname"
    assert body["user"]["displayName"] == "DJ New"

    cleared = await client.patch("/api/user/settings", json={"displayName": ""}, headers=headers)
    assert cleared.json()["user"]["displayName"] is None
    assert cleared.json()["user"]["username"] == "newname"


@pytest.mark.asyncio
async def test_update_settings_rejects_taken_reserved_and_malformed(client, headers_for):
    await client.post("/api/user/sync", headers=headers_for("u1", email="taken@example.com"))
    headers = headers_for("u2", email="other@example.com")
    await client.post("/api/user/sync", headers=headers)

    taken = await client.patch("/api/user/settings", json={"username": "Taken"}, headers=headers)
    reserved = await client.patch("/api/user/settings", json={"username": "admin"}, headers=headers)
    malformed = await client.patch("/api/user/settings", json={"username": "a__b"}, headers=headers)
    bad_display = await client.patch(
        "/api/user/settings", json={"displayName": "<script>"}, headers=headers
    )

    assert taken.status_code == 409
    assert taken.json()["error"] == "This username is already taken"
    assert reserved.status_code == 400
    assert reserved.json()["error"] == "This username is reserved and cannot be used"
    assert malformed.status_code == 400
    assert malformed.json()["error"] == "Username cannot contain consecutive underscores"
    assert bad_display.status_code == 400


@pytest.mark.asyncio
async def test_keeping_own_username_is_allowed(client, headers_for):
    headers = headers_for("u1", email="steady@example.com")
    await client.post("/api/user/sync", headers=headers)

    response = await client.patch("/api/user/settings", json={"username": "steady"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["user"]["username"] == "steady"


@pytest.mark.asyncio
async def test_check_username_reports_availability(client, headers_for):
    await client.post("/api/user/sync", headers=headers_for("u1", email="owner@example.com"))

    free = await client.get("/api/user/check-username", params={"username": " Fresh_Name "})
    taken = await client.get("/api/user/check-username", params={"username": "owner"})
    mine = await client.get(
        "/api/user/check-username", params={"username": "owner"}, headers=headers_for("u1")
    )
    short = await client.get("/api/user/check-username", params={"username": "ab"})

    assert free.json() == {
        "username": " Fresh_Name ",
        "isAvailable": True,
        "error": None,
        "sanitized": "fresh_name",
    }
    assert taken.json()["isAvailable"] is False
    assert taken.json()["error"] == "This username is already taken"
    assert mine.json()["isAvailable"] is True
    assert short.json()["error"] == "Username must be at least 3 characters"


@pytest.mark.asyncio
async def test_check_username_requires_parameter(client):
    response = await client.get("/api/user/check-username")

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "query.username"
