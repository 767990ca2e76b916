"""
Tests for authentication endpoints: registration and login.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient):
    """Successful registration returns user data."""
    response = await client.post("/api/auth/register", json={
        "email": "New.Member@alumni.org",
        "fullName": "New Member",
        "password": "securepassword123",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["email"] == "new.member@alumni.org"
    assert body["data"]["fullName"] == "New Member"
    assert body["data"]["role"] == "USER"
    assert "hashedPassword" not in body["data"]  # Never expose password hash


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, test_user):
    """Duplicate email returns 409."""
    response = await client.post("/api/auth/register", json={
        "email": "MEMBER@alumni.org",
        "fullName": "Someone Else",
        "password": "securepassword123",
    })
    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "EMAIL_EXISTS"


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient):
    """Password under 8 chars is a validation failure."""
    response = await client.post("/api/auth/register", json={
        "email": "weak@alumni.org",
        "fullName": "Weak Password",
        "password": "short",
    })
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert any(error["field"] == "password" for error in body["errors"])


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, test_user):
    """Valid credentials return JWT token."""
    response = await client.post("/api/auth/login", json={
        "email": "member@alumni.org",
        "password": "testpassword123",
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["accessToken"]
    assert data["tokenType"] == "bearer"
    assert data["expiresIn"] == 8 * 60 * 60

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['accessToken']}"})
    assert me.status_code == 200
    assert me.json()["data"]["id"] == test_user.id


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user):
    """Wrong password returns 401."""
    response = await client.post("/api/auth/login", json={
        "email": "member@alumni.org",
        "password": "wrongpassword",
    })
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"
    assert response.json()["code"] == "INVALID_CREDENTIALS"
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client: AsyncClient):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_deactivated_account(client: AsyncClient, db_session, test_user):
    test_user.is_active = False
    db_session.add(test_user)
    await db_session.commit()

    response = await client.post("/api/auth/login", json={
        "email": "member@alumni.org",
        "password": "testpassword123",
    })
    assert response.status_code == 403
    assert response.json()["code"] == "ACCOUNT_INACTIVE"
