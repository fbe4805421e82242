import uuid
from datetime import datetime, timedelta, timezone

import pytest


@pytest.mark.asyncio
async def test_create_habit(client):
    response = await client.post("/habits", json={"name": "Drink water"})
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Drink water"
    assert data["completed"] is False


@pytest.mark.asyncio
async def test_list_habits_for_today(client):
    await client.post("/habits", json={"name": "Stretch"})
    await client.post("/habits", json={"name": "Meditate"})

    response = await client.get("/habits")
    assert response.status_code == 200
    assert [h["name"] for h in response.json()] == ["Meditate", "Stretch"]


@pytest.mark.asyncio
async def test_list_habits_other_day_is_empty(client):
    await client.post("/habits", json={"name": "Stretch"})

    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).date().isoformat()
    response = await client.get(f"/habits?date={yesterday}")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_complete_habit(client):
    create_resp = await client.post("/habits", json={"name": "Read"})
    habit_id = create_resp.json()["id"]

    response = await client.patch(f"/habits/{habit_id}", json={"completed": True})
    assert response.status_code == 200
    assert response.json()["completed"] is True


@pytest.mark.asyncio
async def test_update_nonexistent_habit(client):
    response = await client.patch(f"/habits/{uuid.uuid4()}", json={"completed": True})
    assert response.status_code == 404
