import pytest
from httpx import AsyncClient

from advisor_scheduler.auth.models import User

from conftest import auth_headers


async def _request(client: AsyncClient, student: User, advisor: User) -> None:
    response = await client.post(
        "/api/v1/appointments",
        json={
            "title": "Chat",
            "date": "2030-05-01",
            "time": "14:00:00",
            "location": "Office",
            "advisor_id": str(advisor.id),
        },
        headers=auth_headers(student),
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_list_and_mark_read(client: AsyncClient, advisor: User, student: User) -> None:
    await _request(client, student, advisor)
    listed = await client.get("/api/v1/notifications", headers=auth_headers(advisor))
    assert listed.status_code == 200
    items = listed.json()
    assert len(items) == 1
    assert items[0]["type"] == "appointment_request"
    assert items[0]["is_read"] is False

    none_for_student = await client.get("/api/v1/notifications", headers=auth_headers(student))
    assert none_for_student.json() == []

    not_owner = await client.put(f"/api/v1/notifications/{items[0]['id']}/read", headers=auth_headers(student))
    assert not_owner.status_code == 404

    read = await client.put(f"/api/v1/notifications/{items[0]['id']}/read", headers=auth_headers(advisor))
    assert read.status_code == 200
    assert read.json()["is_read"] is True


@pytest.mark.asyncio
async def test_read_all(client: AsyncClient, advisor: User, student: User) -> None:
    await _request(client, student, advisor)
    await _request(client, student, advisor)
    response = await client.put("/api/v1/notifications/read-all", headers=auth_headers(advisor))
    assert response.status_code == 200
    assert response.json() == {"updated": 2}
    listed = await client.get("/api/v1/notifications", headers=auth_headers(advisor))
    assert all(n["is_read"] for n in listed.json())
