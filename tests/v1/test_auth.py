"""Tests for authentication endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from fastapi import status
from jose import jwt

from chat_logger.api.v1.endpoints.auth import create_access_token
from chat_logger.core.settings import settings


def test_simple_login_registers_local_user(client, directory) -> None:
    """A bare username becomes ``<username>@local`` with a working token."""
    response = client.post("/api/v1/auth/simple", json={"username": "  alice  "})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["id"] == "alice@local"
    assert data["user"]["display_name"] == "alice"
    assert directory.get("alice@local") is not None

    claims = jwt.decode(data["token"], settings.secret_key, algorithms=[settings.jwt_algorithm])
    assert claims["sub"] == "alice@local"

    me = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["id"] == "alice@local"


def test_simple_login_is_repeatable(client, directory) -> None:
    for _ in range(2):
        assert client.post("/api/v1/auth/simple", json={"username": "bob"}).status_code == status.HTTP_200_OK
    assert directory.count() == 1


def test_simple_login_rejects_bad_usernames(client) -> None:
    for username in ["", "has space", "x" * 65, "semi;colon"]:
        response = client.post("/api/v1/auth/simple", json={"username": username})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_missing_token_rejected(client) -> None:
    response = client.get("/api/v1/users/me")
    assert response.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}


def test_invalid_token_rejected(client) -> None:
    response = client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_expired_token_rejected(client, alice) -> None:
    expired = jwt.encode(
        {"sub": alice.id, "exp": datetime.now(UTC) - timedelta(minutes=1)},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    response = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_token_for_unknown_user_rejected(client) -> None:
    token = create_access_token("ghost@local")
    response = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "User not found"
