import pytest
from httpx import AsyncClient

from advisor_scheduler.auth.models import User

from conftest import auth_headers


NEW_STUDENT = {
    "code": "S300",
    "first_name": "Nil",
    "last_name": "Ak",
    "phone": "5550099",
    "role": "student",
    "password": "pass1234",
}


@pytest.mark.asyncio
async def test_advisor_creates_user(client: AsyncClient, advisor: User) -> None:
    response = await client.post("/api/v1/users", json=NEW_STUDENT, headers=auth_headers(advisor))
    assert response.status_code == 201
    assert response.json()["code"] == "S300"

    login = await client.post("/api/v1/auth/login", json={"code": "S300", "password": "pass1234"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_duplicate_phone_conflicts(client: AsyncClient, advisor: User, student: User) -> None:
    payload = dict(NEW_STUDENT, phone=student.phone)
    response = await client.post("/api/v1/users", json=payload, headers=auth_headers(advisor))
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_student_cannot_list_users(client: AsyncClient, student: User) -> None:
    response = await client.get("/api/v1/users", headers=auth_headers(student))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_own_profile(client: AsyncClient, student: User) -> None:
    response = await client.put(
        f"/api/v1/users/{student.id}", json={"office": "Library"}, headers=auth_headers(student)
    )
    assert response.status_code == 200
    assert response.json()["office"] == "Library"


@pytest.mark.asyncio
async def test_student_cannot_update_others(client: AsyncClient, student: User, other_student: User) -> None:
    response = await client.put(
        f"/api/v1/users/{other_student.id}", json={"office": "X"}, headers=auth_headers(student)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_phone_taken(client: AsyncClient, student: User, other_student: User) -> None:
    response = await client.put(
        f"/api/v1/users/{student.id}", json={"phone": other_student.phone}, headers=auth_headers(student)
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_empty_update_rejected(client: AsyncClient, student: User) -> None:
    response = await client.put(f"/api/v1/users/{student.id}", json={}, headers=auth_headers(student))
    assert response.status_code == 400
