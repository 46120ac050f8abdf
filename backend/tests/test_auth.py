"""
Tests for authentication endpoints: registration, login, refresh rotation,
logout and password reset.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from nightout.core.security import create_access_token
from nightout.models.session import Session
from nightout.services import auth_service

TEST_PASSWORD = "Testpassword123"


async def _login(client: AsyncClient, email: str = "testuser@example.com", password: str = TEST_PASSWORD):
    return await client.post("/api/v1/auth/login", json={"email": email, "password": password})


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient):
    """Successful registration returns the user and a token pair."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "New@Example.com",
        "username": "NewUser",
        "password": "Securepassword123",
        "display_name": "New User",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "new@example.com"
    assert data["user"]["username"] == "newuser"
    assert data["user"]["onboarding_completed"] is False
    assert "password_hash" not in data["user"]  # Never expose password hash
    assert data["tokens"]["token_type"] == "bearer"
    assert data["tokens"]["expires_in"] == 15 * 60
    assert len(data["tokens"]["refresh_token"]) == 64


@pytest.mark.asyncio
async def test_register_creates_default_preferences(client: AsyncClient):
    response = await client.post("/api/v1/auth/register", json={
        "email": "prefs@example.com",
        "username": "prefs",
        "password": "Securepassword123",
        "display_name": "Prefs",
    })
    token = response.json()["tokens"]["access_token"]

    me = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["preferences"]["radius_miles"] == 25


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, test_user):
    """Duplicate email returns 409 AUTH_005."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "testuser@example.com",
        "username": "different",
        "password": "Securepassword123",
        "display_name": "Different",
    })
    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "error": {"code": "AUTH_005", "message": "Email already registered"},
    }


@pytest.mark.asyncio
async def test_register_duplicate_username(client: AsyncClient, test_user):
    """Duplicate username returns 409 AUTH_006."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "different@example.com",
        "username": "TestUser",
        "password": "Securepassword123",
        "display_name": "Different",
    })
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "AUTH_006"


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient):
    """Password without an uppercase letter fails validation with field details."""
    response = await client.post("/api/v1/auth/register", json={
        "email": "weak@example.com",
        "username": "weakuser",
        "password": "weakpassword1",
        "display_name": "Weak",
    })
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_001"
    assert "password" in error["details"]


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, test_user):
    """Valid credentials return a token pair."""
    response = await _login(client)
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["id"] == str(test_user.id)
    assert "access_token" in data["tokens"]
    assert "refresh_token" in data["tokens"]


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user, db_session):
    """Wrong password returns 401 AUTH_001 and counts the failure."""
    response = await _login(client, password="Wrongpassword1")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_001"

    await db_session.refresh(test_user)
    assert test_user.failed_login_attempts == 1


@pytest.mark.asyncio
async def test_login_nonexistent_email(client: AsyncClient):
    """Non-existent email returns the same 401 as a wrong password."""
    response = await _login(client, email="nobody@example.com")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_001"


@pytest.mark.asyncio
async def test_login_locks_after_repeated_failures(client: AsyncClient, test_user):
    for _ in range(10):
        response = await _login(client, password="Wrongpassword1")
        assert response.json()["error"]["code"] == "AUTH_001"

    # Even the right password is refused while locked
    response = await _login(client)
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_004"


@pytest.mark.asyncio
async def test_login_after_lock_expires(client: AsyncClient, test_user, db_session):
    test_user.failed_login_attempts = 10
    test_user.locked_until = datetime.now(timezone.utc) - timedelta(minutes=1)
    await db_session.commit()

    response = await _login(client)
    assert response.status_code == 200

    await db_session.refresh(test_user)
    assert test_user.failed_login_attempts == 0
    assert test_user.locked_until is None


@pytest.mark.asyncio
async def test_refresh_rotates_token(client: AsyncClient, test_user):
    tokens = (await _login(client)).json()["tokens"]

    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    rotated = response.json()
    assert rotated["refresh_token"] != tokens["refresh_token"]

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {rotated['access_token']}"})
    assert me.status_code == 200
    assert me.json()["id"] == str(test_user.id)


@pytest.mark.asyncio
async def test_refresh_reuse_revokes_every_session(client: AsyncClient, test_user, db_session):
    first = (await _login(client)).json()["tokens"]
    second = (await _login(client)).json()["tokens"]

    rotated = await client.post("/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]})
    assert rotated.status_code == 200

    # Replaying the already-rotated token is treated as theft
    replay = await client.post("/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]})
    assert replay.status_code == 401
    assert replay.json()["error"]["code"] == "AUTH_003"

    # ...which also kills the other device's session
    other = await client.post("/api/v1/auth/refresh", json={"refresh_token": second["refresh_token"]})
    assert other.status_code == 401

    result = await db_session.execute(
        select(Session).where(Session.user_id == test_user.id, Session.revoked_at.is_(None))
    )
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_refresh_unknown_token(client: AsyncClient):
    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": "not-a-real-token"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_003"


@pytest.mark.asyncio
async def test_logout_revokes_refresh_token(client: AsyncClient, test_user, auth_headers):
    tokens = (await _login(client)).json()["tokens"]

    response = await client.post(
        "/api/v1/auth/logout",
        json={"refresh_token": tokens["refresh_token"]},
        headers=auth_headers,
    )
    assert response.status_code == 200

    refresh = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refresh.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_003"


@pytest.mark.asyncio
async def test_me_expired_token(client: AsyncClient, test_user):
    token = create_access_token(str(test_user.id), expires_delta=timedelta(seconds=-1))
    response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_002"


@pytest.mark.asyncio
async def test_forgot_password_does_not_enumerate(client: AsyncClient, test_user):
    known = await client.post("/api/v1/auth/forgot-password", json={"email": "testuser@example.com"})
    unknown = await client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


@pytest.mark.asyncio
async def test_reset_password_flow(client: AsyncClient, test_user, monkeypatch):
    monkeypatch.setattr(auth_service, "generate_secure_token", lambda: "a" * 64)
    await client.post("/api/v1/auth/forgot-password", json={"email": "testuser@example.com"})

    response = await client.post(
        "/api/v1/auth/reset-password",
        json={"token": "a" * 64, "password": "Brandnewpass9"},
    )
    assert response.status_code == 200

    assert (await _login(client, password="Brandnewpass9")).status_code == 200

    # Tokens are single-use
    again = await client.post(
        "/api/v1/auth/reset-password",
        json={"token": "a" * 64, "password": "Anotherpass9"},
    )
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "VALIDATION_001"
