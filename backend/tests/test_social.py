"""
Tests for friendships, blocks, invites and user search.
"""

import pytest
from httpx import AsyncClient


async def _befriend(client: AsyncClient, requester_headers: dict, addressee, addressee_headers: dict) -> dict:
    request = await client.post(f"/api/v1/social/friends/request/{addressee.id}", headers=requester_headers)
    assert request.status_code == 201
    accepted = await client.post(
        f"/api/v1/social/friends/accept/{request.json()['id']}", headers=addressee_headers
    )
    assert accepted.status_code == 200
    return accepted.json()


@pytest.mark.asyncio
async def test_friend_request_and_accept(client: AsyncClient, test_user, other_user, auth_headers, other_headers):
    request = await client.post(f"/api/v1/social/friends/request/{other_user.id}", headers=auth_headers)
    assert request.status_code == 201
    assert request.json()["status"] == "pending"
    assert request.json()["addressee"]["username"] == "otheruser"

    pending = await client.get("/api/v1/social/friends/requests", headers=other_headers)
    assert [r["requester"]["id"] for r in pending.json()] == [str(test_user.id)]

    notifications = await client.get("/api/v1/notifications", headers=other_headers)
    assert notifications.json()["items"][0]["type"] == "friend_request"

    accepted = await client.post(
        f"/api/v1/social/friends/accept/{request.json()['id']}", headers=other_headers
    )
    assert accepted.json()["status"] == "accepted"

    friends = await client.get("/api/v1/social/friends", headers=auth_headers)
    assert [f["username"] for f in friends.json()["items"]] == ["otheruser"]

    # Requester is told the request was accepted
    count = await client.get("/api/v1/notifications/unread-count", headers=auth_headers)
    assert count.json() == {"count": 1}


@pytest.mark.asyncio
async def test_friend_request_conflicts(client: AsyncClient, test_user, other_user, auth_headers, other_headers):
    self_request = await client.post(f"/api/v1/social/friends/request/{test_user.id}", headers=auth_headers)
    assert self_request.status_code == 409
    assert self_request.json()["error"]["code"] == "SOCIAL_004"

    await client.post(f"/api/v1/social/friends/request/{other_user.id}", headers=auth_headers)

    # Pending in either direction
    duplicate = await client.post(f"/api/v1/social/friends/request/{test_user.id}", headers=other_headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "SOCIAL_002"


@pytest.mark.asyncio
async def test_friend_request_already_friends(client: AsyncClient, other_user, auth_headers, other_headers):
    await _befriend(client, auth_headers, other_user, other_headers)

    response = await client.post(f"/api/v1/social/friends/request/{other_user.id}", headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "SOCIAL_001"


@pytest.mark.asyncio
async def test_friend_request_unknown_user(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/social/friends/request/00000000-0000-0000-0000-000000000000", headers=auth_headers
    )
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "USER_001"


@pytest.mark.asyncio
async def test_only_addressee_can_accept(client: AsyncClient, other_user, auth_headers):
    request = await client.post(f"/api/v1/social/friends/request/{other_user.id}", headers=auth_headers)

    response = await client.post(
        f"/api/v1/social/friends/accept/{request.json()['id']}", headers=auth_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_decline_and_remove_friend(client: AsyncClient, other_user, auth_headers, other_headers):
    request = await client.post(f"/api/v1/social/friends/request/{other_user.id}", headers=auth_headers)
    declined = await client.post(
        f"/api/v1/social/friends/decline/{request.json()['id']}", headers=other_headers
    )
    assert declined.status_code == 200

    # A declined request can be sent again
    await _befriend(client, auth_headers, other_user, other_headers)

    removed = await client.delete(f"/api/v1/social/friends/{other_user.id}", headers=auth_headers)
    assert removed.status_code == 200
    again = await client.delete(f"/api/v1/social/friends/{other_user.id}", headers=auth_headers)
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_friend_events_requires_friendship(
    client: AsyncClient, test_event, other_user, auth_headers, other_headers
):
    await client.post(f"/api/v1/events/{test_event.id}/rsvp", json={"status": "going"}, headers=other_headers)

    strangers = await client.get(f"/api/v1/social/friends/{other_user.id}/events", headers=auth_headers)
    assert strangers.status_code == 404

    await _befriend(client, auth_headers, other_user, other_headers)
    friends = await client.get(f"/api/v1/social/friends/{other_user.id}/events", headers=auth_headers)
    assert [e["id"] for e in friends.json()] == [str(test_event.id)]

    # ...and the listing now shows the friend as attending
    listing = await client.get("/api/v1/events/", headers=auth_headers)
    assert [f["username"] for f in listing.json()["items"][0]["friends_attending"]] == ["otheruser"]


# Blocks

@pytest.mark.asyncio
async def test_block_removes_friendship(client: AsyncClient, other_user, auth_headers, other_headers):
    await _befriend(client, auth_headers, other_user, other_headers)

    response = await client.post("/api/v1/blocks", json={"user_id": str(other_user.id)}, headers=auth_headers)
    assert response.status_code == 201

    friends = await client.get("/api/v1/social/friends", headers=auth_headers)
    assert friends.json()["total"] == 0

    blocked = await client.get("/api/v1/blocks", headers=auth_headers)
    assert [u["username"] for u in blocked.json()["blocked_users"]] == ["otheruser"]

    check = await client.get(f"/api/v1/blocks/check/{other_user.id}", headers=auth_headers)
    assert check.json() == {"blocked": True}

    # Neither side can send a request while the block stands
    request = await client.post(f"/api/v1/social/friends/request/{other_user.id}", headers=auth_headers)
    assert request.json()["error"]["code"] == "SOCIAL_003"


@pytest.mark.asyncio
async def test_block_conflicts(client: AsyncClient, test_user, other_user, auth_headers):
    self_block = await client.post("/api/v1/blocks", json={"user_id": str(test_user.id)}, headers=auth_headers)
    assert self_block.status_code == 400

    await client.post("/api/v1/blocks", json={"user_id": str(other_user.id)}, headers=auth_headers)
    duplicate = await client.post("/api/v1/blocks", json={"user_id": str(other_user.id)}, headers=auth_headers)
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_unblock(client: AsyncClient, other_user, auth_headers, other_headers):
    await client.post(f"/api/v1/social/friends/block/{other_user.id}", headers=auth_headers)

    response = await client.post(f"/api/v1/social/friends/unblock/{other_user.id}", headers=auth_headers)
    assert response.status_code == 200

    again = await client.delete(f"/api/v1/blocks/{other_user.id}", headers=auth_headers)
    assert again.status_code == 404

    # Friendship can start over after an unblock
    request = await client.post(f"/api/v1/social/friends/request/{other_user.id}", headers=other_headers)
    assert request.status_code == 201


# Search

@pytest.mark.asyncio
async def test_user_search(client: AsyncClient, user_factory, other_user, auth_headers):
    await user_factory("anna", display_name="Anna Smith")
    await user_factory("joanna", display_name="Jo")

    response = await client.get("/api/v1/users/search", params={"q": "anna"}, headers=auth_headers)
    assert [u["username"] for u in response.json()] == ["anna", "joanna"]

    await client.post(f"/api/v1/social/friends/block/{other_user.id}", headers=auth_headers)
    response = await client.get("/api/v1/users/search", params={"q": "other"}, headers=auth_headers)
    assert response.json() == []


# Invites

@pytest.mark.asyncio
async def test_invite_flow(client: AsyncClient, test_event, test_user, other_user, auth_headers, other_headers):
    not_friends = await client.post(
        "/api/v1/invites/",
        json={"event_id": str(test_event.id), "recipient_id": str(other_user.id)},
        headers=auth_headers,
    )
    assert not_friends.status_code == 403

    await _befriend(client, auth_headers, other_user, other_headers)

    created = await client.post(
        "/api/v1/invites/",
        json={"event_id": str(test_event.id), "recipient_id": str(other_user.id), "message": "Come!"},
        headers=auth_headers,
    )
    assert created.status_code == 201
    invite = created.json()
    assert invite["status"] == "pending"
    assert invite["event"]["id"] == str(test_event.id)
    assert invite["sender"]["id"] == str(test_user.id)

    duplicate = await client.post(
        "/api/v1/invites/",
        json={"event_id": str(test_event.id), "recipient_id": str(other_user.id)},
        headers=auth_headers,
    )
    assert duplicate.json()["error"]["code"] == "INVITE_EXISTS"

    received = await client.get("/api/v1/invites/received", headers=other_headers)
    assert [i["id"] for i in received.json()["items"]] == [invite["id"]]

    # Only the recipient may respond
    wrong_user = await client.patch(
        f"/api/v1/invites/{invite['id']}", json={"status": "accepted"}, headers=auth_headers
    )
    assert wrong_user.status_code == 404

    accepted = await client.patch(
        f"/api/v1/invites/{invite['id']}", json={"status": "accepted"}, headers=other_headers
    )
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"
    assert accepted.json()["responded_at"] is not None

    # Answered invites leave the inbox and cannot be answered twice
    received = await client.get("/api/v1/invites/received", headers=other_headers)
    assert received.json()["total"] == 0
    twice = await client.patch(
        f"/api/v1/invites/{invite['id']}", json={"status": "declined"}, headers=other_headers
    )
    assert twice.status_code == 404

    sent = await client.get("/api/v1/invites/sent", headers=auth_headers)
    assert sent.json()["items"][0]["status"] == "accepted"


@pytest.mark.asyncio
async def test_self_invite(client: AsyncClient, test_event, test_user, auth_headers):
    response = await client.post(
        "/api/v1/invites/",
        json={"event_id": str(test_event.id), "recipient_id": str(test_user.id)},
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "SELF_INVITE"
