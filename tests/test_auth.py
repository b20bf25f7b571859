"""Tests for authentication."""
import pytest

from app.config import settings
from app.core.security import Permission
from app.services.auth_service import AuthService
from app.utils.security import create_access_token, create_refresh_token, decode_token, verify_password


def test_password_hashing():
    """Test password hashing and verification."""
    password = "testpassword123"
    hashed = AuthService.hash_password(password)

    assert hashed != password
    assert verify_password(password, hashed)
    assert not verify_password("wrongpassword", hashed)
    assert not verify_password(password, "not-a-bcrypt-hash")


def test_jwt_token_creation():
    """Test JWT token creation and decoding."""
    token = create_access_token({"sub": "12", "username": "admin"})

    decoded = decode_token(token)
    assert decoded["sub"] == "12"
    assert decoded["username"] == "admin"
    assert decoded["type"] == "access"


def test_invalid_token_raises_value_error():
    with pytest.raises(ValueError):
        decode_token("not.a.token")


@pytest.mark.asyncio
async def test_authenticate_user(db_session, admin_user):
    """Test user authentication."""
    user = await AuthService.authenticate_user(
        db_session, settings.DEFAULT_ADMIN_USERNAME, settings.DEFAULT_ADMIN_PASSWORD
    )
    assert user is not None
    assert user.id == admin_user.id

    assert await AuthService.authenticate_user(db_session, settings.DEFAULT_ADMIN_USERNAME, "wrong") is None
    assert await AuthService.authenticate_user(db_session, "nobody", "password") is None


@pytest.mark.asyncio
async def test_login_and_me(client, admin_user):
    response = await client.post(
        "/api/v1/auth/login",
        data={"username": settings.DEFAULT_ADMIN_USERNAME, "password": settings.DEFAULT_ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    tokens = response.json()

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})

    assert me.status_code == 200
    body = me.json()
    assert body["username"] == settings.DEFAULT_ADMIN_USERNAME
    assert Permission.ITEM_CREATE.value in body["permissions"]
    assert "password_hash" not in body


@pytest.mark.asyncio
async def test_json_login_rejects_bad_password(client, admin_user):
    response = await client.post(
        "/api/v1/auth/login/json",
        json={"username": settings.DEFAULT_ADMIN_USERNAME, "password": "nope"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token(client, admin_user):
    refresh_token = create_refresh_token({"sub": str(admin_user.id)})

    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == 200
    assert decode_token(response.json()["access_token"])["type"] == "access"

    wrong_type = await client.post(
        "/api/v1/auth/refresh", json={"refresh_token": create_access_token({"sub": str(admin_user.id)})}
    )
    assert wrong_type.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_cannot_access_api(client, admin_user):
    refresh_token = create_refresh_token({"sub": str(admin_user.id)})

    response = await client.get("/api/v1/items", headers={"Authorization": f"Bearer {refresh_token}"})

    assert response.status_code == 401
