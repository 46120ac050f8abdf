"""
Tests for profile, preferences, location, public profiles and user search.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient


async def _befriend(client: AsyncClient, requester_headers: dict, addressee, addressee_headers: dict):
    request = await client.post(f"/api/v1/social/friends/request/{addressee.id}", headers=requester_headers)
    assert request.status_code == 201
    accepted = await client.post(
        f"/api/v1/social/friends/accept/{request.json()['id']}", headers=addressee_headers
    )
    assert accepted.status_code == 200


# Profile

@pytest.mark.asyncio
async def test_get_me(client: AsyncClient, test_user, auth_headers):
    response = await client.get("/api/v1/users/me", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "testuser@example.com"
    assert data["onboarding_completed"] is False
    assert data["preferences"]["radius_miles"] == 25
    assert "password_hash" not in data


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient, test_user, auth_headers):
    response = await client.patch(
        "/api/v1/users/me",
        json={"display_name": "Night Owl", "bio": "Out most weekends", "username": "NightOwl"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["display_name"] == "Night Owl"
    assert data["bio"] == "Out most weekends"
    assert data["username"] == "nightowl"


@pytest.mark.asyncio
async def test_update_profile_username_taken(client: AsyncClient, test_user, other_user, auth_headers):
    """Taking someone else's username is 409 AUTH_006, case-insensitively."""
    response = await client.patch("/api/v1/users/me", json={"username": "OtherUser"}, headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "AUTH_006"

    me = await client.get("/api/v1/users/me", headers=auth_headers)
    assert me.json()["username"] == "testuser"


@pytest.mark.asyncio
async def test_update_profile_keeping_own_username(client: AsyncClient, test_user, auth_headers):
    response = await client.patch(
        "/api/v1/users/me", json={"username": "testuser", "bio": "hi"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["username"] == "testuser"


# Preferences

@pytest.mark.asyncio
async def test_update_preferences_is_partial(client: AsyncClient, test_user, auth_headers):
    first = await client.patch(
        "/api/v1/users/me/preferences",
        json={"favorite_genres": ["Rock", "Jazz"], "interests": ["concerts"]},
        headers=auth_headers,
    )
    assert first.status_code == 200
    assert first.json()["favorite_genres"] == ["Rock", "Jazz"]
    assert first.json()["radius_miles"] == 25

    second = await client.patch(
        "/api/v1/users/me/preferences", json={"radius_miles": 50}, headers=auth_headers
    )
    assert second.status_code == 200
    data = second.json()
    assert data["radius_miles"] == 50
    assert data["favorite_genres"] == ["Rock", "Jazz"]
    assert data["interests"] == ["concerts"]


@pytest.mark.asyncio
async def test_saving_preferences_completes_onboarding(client: AsyncClient, test_user, auth_headers):
    response = await client.patch(
        "/api/v1/users/me/preferences",
        json={"sports_teams": [{"name": "New York Knicks", "league": "NBA"}]},
        headers=auth_headers,
    )
    assert response.status_code == 200

    me = await client.get("/api/v1/users/me", headers=auth_headers)
    assert me.json()["onboarding_completed"] is True
    assert me.json()["preferences"]["sports_teams"] == [{"name": "New York Knicks", "league": "NBA"}]


@pytest.mark.asyncio
async def test_update_preferences_radius_out_of_range(client: AsyncClient, test_user, auth_headers):
    response = await client.patch(
        "/api/v1/users/me/preferences", json={"radius_miles": 500}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_001"


# Location

@pytest.mark.asyncio
async def test_update_location(client: AsyncClient, test_user, auth_headers):
    response = await client.patch(
        "/api/v1/users/me/location",
        json={"latitude": 41.8781, "longitude": -87.6298},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["latitude"] == pytest.approx(41.8781)
    assert response.json()["longitude"] == pytest.approx(-87.6298)


@pytest.mark.asyncio
async def test_update_location_rejects_bad_coordinates(client: AsyncClient, test_user, auth_headers):
    response = await client.patch(
        "/api/v1/users/me/location", json={"latitude": 91, "longitude": 0}, headers=auth_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_location_requires_auth(client: AsyncClient):
    response = await client.patch("/api/v1/users/me/location", json={"latitude": 0, "longitude": 0})
    assert response.status_code == 401


# Public profiles

@pytest.mark.asyncio
async def test_get_public_profile(client: AsyncClient, other_user, auth_headers):
    response = await client.get(f"/api/v1/users/{other_user.id}", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["username"] == "otheruser"
    assert "email" not in data


@pytest.mark.asyncio
async def test_get_unknown_user(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/users/00000000-0000-0000-0000-000000000000", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "USER_001"


# Search

@pytest.mark.asyncio
async def test_search_excludes_blocks_in_both_directions(
    client: AsyncClient, user_factory, test_user, other_user, auth_headers, other_headers
):
    blocked_by_me = await user_factory("othersider")
    await user_factory("otherfan")

    # otheruser blocks the caller; the caller blocks othersider
    await client.post("/api/v1/blocks", json={"user_id": str(test_user.id)}, headers=other_headers)
    await client.post("/api/v1/blocks", json={"user_id": str(blocked_by_me.id)}, headers=auth_headers)

    response = await client.get("/api/v1/users/search", params={"q": "other"}, headers=auth_headers)
    assert response.status_code == 200
    assert [u["username"] for u in response.json()] == ["otherfan"]


@pytest.mark.asyncio
async def test_search_never_returns_caller(client: AsyncClient, test_user, auth_headers):
    response = await client.get("/api/v1/users/search", params={"q": "testuser"}, headers=auth_headers)
    assert response.json() == []


# Friends sort

@pytest.mark.asyncio
async def test_list_sort_by_friends(
    client: AsyncClient, event_factory, other_user, auth_headers, other_headers
):
    soon = await event_factory("Soon", start_time=datetime.now(timezone.utc) + timedelta(hours=3))
    later = await event_factory("Later", start_time=datetime.now(timezone.utc) + timedelta(days=4))

    await _befriend(client, auth_headers, other_user, other_headers)
    await client.post(f"/api/v1/events/{later.id}/rsvp", json={"status": "going"}, headers=other_headers)

    response = await client.get("/api/v1/events/", params={"sort_by": "friends"}, headers=auth_headers)
    items = response.json()["items"]
    assert [e["id"] for e in items] == [str(later.id), str(soon.id)]
    assert [f["username"] for f in items[0]["friends_attending"]] == ["otheruser"]

    # Without a caller there are no friends to rank by
    anonymous = await client.get("/api/v1/events/", params={"sort_by": "friends"})
    assert [e["id"] for e in anonymous.json()["items"]] == [str(soon.id), str(later.id)]
