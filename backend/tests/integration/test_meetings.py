"""Meeting scheduling through the project-meetings API."""

from datetime import UTC, datetime, timedelta

import pytest
from httpx import AsyncClient

from src.projects.models import Project
from src.users.models import User


BASE = "/api/v1/project-meetings"


def _slot(days: int, hours: int = 1) -> dict[str, str]:
    start = datetime.now(UTC).replace(microsecond=0) + timedelta(days=days)
    return {"startTime": start.isoformat(), "endTime": (start + timedelta(hours=hours)).isoformat()}


async def schedule(client: AsyncClient, title: str, days: int, **extra: object) -> dict:
    resp = await client.post(f"{BASE}/", json={"title": title, **_slot(days), **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_caller_organizes_by_default(
    freelancer_client: AsyncClient, freelancer: User, client_user: User, project: Project
) -> None:
    meeting = await schedule(
        freelancer_client, "Kickoff", 2, projectId=project.id, participants=[client_user.id], isClientInitiated=True
    )
    assert meeting["status"] == "SCHEDULED"
    assert meeting["organizerId"] == freelancer.id
    assert meeting["organizer"]["id"] == freelancer.id
    assert [p["id"] for p in meeting["participants"]] == [client_user.id]
    assert meeting["reminderSent"] is False


@pytest.mark.asyncio
async def test_end_must_follow_start(freelancer_client: AsyncClient) -> None:
    slot = _slot(1)
    resp = await freelancer_client.post(
        f"{BASE}/", json={"title": "Backwards", "startTime": slot["endTime"], "endTime": slot["startTime"]}
    )
    assert resp.status_code == 422

    meeting = await schedule(freelancer_client, "Review", 1)
    resp = await freelancer_client.patch(f"{BASE}/{meeting['id']}", json={"endTime": slot["startTime"]})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_replaces_participants(
    freelancer_client: AsyncClient, client_user: User, admin: User
) -> None:
    meeting = await schedule(freelancer_client, "Weekly sync", 3, participants=[client_user.id])

    resp = await freelancer_client.patch(
        f"{BASE}/{meeting['id']}", json={"participants": [admin.id], "title": "Weekly sync (moved)"}
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert [p["id"] for p in body["participants"]] == [admin.id]
    assert body["title"] == "Weekly sync (moved)"

    resp = await freelancer_client.patch(f"{BASE}/{meeting['id']}", json={"participants": [999]})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_status_notes_agenda_and_reminder(freelancer_client: AsyncClient) -> None:
    meeting = await schedule(freelancer_client, "Demo", 1)
    url = f"{BASE}/{meeting['id']}"

    resp = await freelancer_client.patch(f"{url}/status", json={"status": "COMPLETED"})
    assert resp.json()["status"] == "COMPLETED"

    resp = await freelancer_client.post(f"{url}/notes", json={"notes": "Client approved the demo"})
    assert resp.json()["meetingNotes"] == "Client approved the demo"

    resp = await freelancer_client.post(f"{url}/agenda", json={"agenda": "1. Demo 2. Questions"})
    assert resp.json()["meetingAgenda"] == "1. Demo 2. Questions"

    resp = await freelancer_client.post(f"{url}/reminder")
    assert resp.json()["reminderSent"] is True


@pytest.mark.asyncio
async def test_list_filters_and_order(
    freelancer_client: AsyncClient, customer_client: AsyncClient, project: Project
) -> None:
    later = await schedule(freelancer_client, "Later", 5, projectId=project.id)
    sooner = await schedule(freelancer_client, "Sooner", 1, projectId=project.id)
    client_call = await schedule(customer_client, "Client call", 2, isClientInitiated=True)

    resp = await freelancer_client.get(f"{BASE}/")
    assert [m["id"] for m in resp.json()] == [sooner["id"], client_call["id"], later["id"]]

    resp = await freelancer_client.get(f"{BASE}/", params={"projectId": project.id})
    assert [m["id"] for m in resp.json()] == [sooner["id"], later["id"]]

    resp = await freelancer_client.get(f"{BASE}/", params={"isClientInitiated": "true"})
    assert [m["id"] for m in resp.json()] == [client_call["id"]]

    resp = await freelancer_client.get(f"{BASE}/", params={"limit": 1, "page": 2})
    assert [m["id"] for m in resp.json()] == [client_call["id"]]


@pytest.mark.asyncio
async def test_upcoming_only_views(
    freelancer_client: AsyncClient, freelancer: User, client_user: User, project: Project
) -> None:
    past = await schedule(freelancer_client, "Retro", -2, projectId=project.id, participants=[client_user.id])
    upcoming = await schedule(freelancer_client, "Planning", 2, projectId=project.id, participants=[client_user.id])

    resp = await freelancer_client.get(f"{BASE}/project/{project.id}")
    assert [m["id"] for m in resp.json()] == [upcoming["id"]]

    resp = await freelancer_client.get(f"{BASE}/project/{project.id}", params={"upcomingOnly": "false"})
    assert [m["id"] for m in resp.json()] == [past["id"], upcoming["id"]]

    resp = await freelancer_client.get(f"{BASE}/user/{client_user.id}", params={"upcomingOnly": "false"})
    assert [m["id"] for m in resp.json()] == [past["id"], upcoming["id"]]

    resp = await freelancer_client.get(f"{BASE}/user/{freelancer.id}")
    assert [m["id"] for m in resp.json()] == [upcoming["id"]]


@pytest.mark.asyncio
async def test_delete(freelancer_client: AsyncClient, client_user: User) -> None:
    meeting = await schedule(freelancer_client, "Cancelled call", 1, participants=[client_user.id])

    resp = await freelancer_client.delete(f"{BASE}/{meeting['id']}")
    assert resp.status_code == 204

    resp = await freelancer_client.get(f"{BASE}/{meeting['id']}")
    assert resp.status_code == 404
    assert resp.json()["error"]["detail"] == "Meeting not found"


@pytest.mark.asyncio
async def test_schedule_fields_cannot_be_nulled(freelancer_client: AsyncClient) -> None:
    meeting = await schedule(freelancer_client, "Standup", 1)

    resp = await freelancer_client.patch(f"{BASE}/{meeting['id']}", json={"startTime": None})
    assert resp.status_code == 422
    assert "startTime cannot be null" in resp.json()["error"]["metadata"]["errors"][0]["message"]

    resp = await freelancer_client.patch(f"{BASE}/{meeting['id']}", json={"meetingLink": None})
    assert resp.status_code == 200
