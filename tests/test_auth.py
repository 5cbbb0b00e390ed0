import pytest
from httpx import AsyncClient

from advisor_scheduler.auth.models import User

from conftest import TEST_PASSWORD, auth_headers


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, student: User) -> None:
    response = await client.post("/api/v1/auth/login", json={"code": "S100", "password": TEST_PASSWORD})
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["id"] == str(student.id)
    assert data["user"]["role"] == "student"
    assert "password_hash" not in data["user"]


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, student: User) -> None:
    response = await client.post("/api/v1/auth/login", json={"code": "S100", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_unknown_code(client: AsyncClient, db_session) -> None:
    response = await client.post("/api/v1/auth/login", json={"code": "X999", "password": TEST_PASSWORD})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_oauth_form(client: AsyncClient, advisor: User) -> None:
    response = await client.post(
        "/api/v1/auth/login-oauth",
        data={"username": "A100", "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_me(client: AsyncClient, advisor: User) -> None:
    response = await client.get("/api/v1/auth/me", headers=auth_headers(advisor))
    assert response.status_code == 200
    assert response.json()["code"] == "A100"


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["success"] is True
