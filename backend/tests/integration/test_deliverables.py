"""Deliverable review workflow through the project-deliverables API."""

import pytest
import pytest_asyncio
from httpx import AsyncClient

from src.projects.models import Project, Task
from src.users.models import User


BASE = "/api/v1/project-deliverables"


@pytest_asyncio.fixture
async def deliverable(freelancer_client: AsyncClient, project: Project, task: Task, freelancer: User) -> dict:
    resp = await freelancer_client.post(
        f"{BASE}/",
        json={
            "projectId": project.id,
            "taskId": task.id,
            "title": "Homepage design",
            "priority": "HIGH",
            "assignees": [freelancer.id],
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_defaults(deliverable: dict, freelancer: User, project: Project) -> None:
    assert deliverable["status"] == "DRAFT"
    assert deliverable["version"] == 1
    assert deliverable["clientApproval"] is False
    assert deliverable["project"]["id"] == project.id
    assert [a["id"] for a in deliverable["assignees"]] == [freelancer.id]


@pytest.mark.asyncio
async def test_create_checks_references(freelancer_client: AsyncClient, project: Project, task: Task) -> None:
    resp = await freelancer_client.post(f"{BASE}/", json={"projectId": 999, "taskId": task.id, "title": "X"})
    assert resp.status_code == 404
    assert resp.json()["error"]["detail"] == "Project not found"

    resp = await freelancer_client.post(f"{BASE}/", json={"projectId": project.id, "taskId": 999, "title": "X"})
    assert resp.status_code == 404
    assert resp.json()["error"]["detail"] == "Task not found"

    resp = await freelancer_client.post(
        f"{BASE}/", json={"projectId": project.id, "taskId": task.id, "title": "X", "assignees": [999]}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_review_revision_and_approval(freelancer_client: AsyncClient, deliverable: dict) -> None:
    url = f"{BASE}/{deliverable['id']}"

    resp = await freelancer_client.post(f"{url}/review")
    assert resp.json()["status"] == "REVIEW"

    resp = await freelancer_client.post(f"{url}/revision", json={"revisionNotes": "Use the brand palette"})
    body = resp.json()
    assert body["status"] == "IN_PROGRESS"
    assert body["revisionNotes"] == "Use the brand palette"

    resp = await freelancer_client.post(f"{url}/approve")
    body = resp.json()
    assert body["status"] == "APPROVED"
    assert body["clientApproval"] is True
    assert body["acceptanceDate"] is not None


@pytest.mark.asyncio
async def test_partial_update_replaces_assignees(
    freelancer_client: AsyncClient, deliverable: dict, client_user: User
) -> None:
    resp = await freelancer_client.patch(
        f"{BASE}/{deliverable['id']}", json={"assignees": [client_user.id], "rating": 4.5}
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert [a["id"] for a in body["assignees"]] == [client_user.id]
    assert body["rating"] == 4.5
    assert body["title"] == "Homepage design"


@pytest.mark.asyncio
async def test_empty_update_is_rejected(freelancer_client: AsyncClient, deliverable: dict) -> None:
    resp = await freelancer_client.patch(f"{BASE}/{deliverable['id']}", json={})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_metrics(freelancer_client: AsyncClient, deliverable: dict) -> None:
    resp = await freelancer_client.patch(
        f"{BASE}/{deliverable['id']}/metrics", json={"metrics": {"pages": 3, "revisions": 1}}
    )
    assert resp.json()["metrics"] == {"pages": 3, "revisions": 1}


@pytest.mark.asyncio
async def test_feedback_and_read_flags(
    freelancer_client: AsyncClient, deliverable: dict, client_user: User
) -> None:
    url = f"{BASE}/{deliverable['id']}"
    for text in ("Looks great", "Bigger logo please"):
        resp = await freelancer_client.post(f"{url}/feedback", json={"userId": client_user.id, "feedback": text})
        assert resp.status_code == 201
        assert resp.json()["status"] == "PENDING"
        assert resp.json()["isReadByPm"] is False

    resp = await freelancer_client.patch(f"{url}/feedback/read", json={"isPM": True})
    assert resp.json() == {"count": 2}

    resp = await freelancer_client.get(url)
    feedbacks = resp.json()["feedbacks"]
    assert len(feedbacks) == 2
    assert all(f["isReadByPm"] and not f["isReadByClient"] for f in feedbacks)


@pytest.mark.asyncio
async def test_comments_nest_replies(freelancer_client: AsyncClient, deliverable: dict, freelancer: User) -> None:
    url = f"{BASE}/{deliverable['id']}"
    resp = await freelancer_client.post(f"{url}/comment", json={"userId": freelancer.id, "content": "First draft"})
    parent_id = resp.json()["id"]

    resp = await freelancer_client.post(
        f"{url}/comment", json={"userId": freelancer.id, "content": "Updated", "parentId": parent_id}
    )
    assert resp.status_code == 201
    assert resp.json()["parentId"] == parent_id

    resp = await freelancer_client.get(url)
    comments = resp.json()["comments"]
    assert [c["id"] for c in comments] == [parent_id]
    assert [r["content"] for r in comments[0]["replies"]] == ["Updated"]

    resp = await freelancer_client.post(
        f"{url}/comment", json={"userId": freelancer.id, "content": "Orphan", "parentId": 999}
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete(freelancer_client: AsyncClient, deliverable: dict) -> None:
    resp = await freelancer_client.delete(f"{BASE}/{deliverable['id']}")
    assert resp.status_code == 204

    resp = await freelancer_client.get(f"{BASE}/{deliverable['id']}")
    assert resp.status_code == 404
    assert resp.json()["error"]["detail"] == "Deliverable not found"


@pytest.mark.asyncio
async def test_requires_deliverables_right(client_factory, deliverable: dict) -> None:
    support = await client_factory(12345, "SUPPORT")
    resp = await support.get(f"{BASE}/{deliverable['id']}")
    assert resp.status_code == 403
