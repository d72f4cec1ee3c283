"""Kanban boards, column ordering and task placement."""

import pytest
import pytest_asyncio
from httpx import AsyncClient

from src.projects.models import Project, Task


BASE = "/api/v1/project-kanban"


@pytest_asyncio.fixture
async def board(freelancer_client: AsyncClient, project: Project) -> dict:
    resp = await freelancer_client.post(f"{BASE}/boards", json={"name": "Sprint 1", "projectId": project.id})
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_new_board_has_default_columns(board: dict) -> None:
    assert [(c["name"], c["order"]) for c in board["columns"]] == [("To Do", 1), ("In Progress", 2), ("Done", 3)]


@pytest.mark.asyncio
async def test_project_board_lookup(freelancer_client: AsyncClient, project: Project, board: dict) -> None:
    resp = await freelancer_client.get(f"{BASE}/project/{project.id}/board")
    assert resp.status_code == 200
    assert resp.json()["id"] == board["id"]

    resp = await freelancer_client.get(f"{BASE}/project/999/board")
    assert resp.status_code == 404
    assert resp.json()["error"]["detail"] == "Kanban board not found for this project"


@pytest.mark.asyncio
async def test_move_task_and_read_board(freelancer_client: AsyncClient, board: dict, task: Task) -> None:
    doing = board["columns"][1]

    resp = await freelancer_client.post(f"{BASE}/tasks/{task.id}/move", json={"columnId": doing["id"]})
    assert resp.status_code == 200, resp.text
    assert resp.json()["kanbanColumn"]["id"] == doing["id"]

    resp = await freelancer_client.get(f"{BASE}/boards/{board['id']}")
    tasks_by_column = {c["name"]: [t["id"] for t in c["tasks"]] for c in resp.json()["columns"]}
    assert tasks_by_column == {"To Do": [], "In Progress": [task.id], "Done": []}


@pytest.mark.asyncio
async def test_move_to_unknown_targets(freelancer_client: AsyncClient, board: dict, task: Task) -> None:
    resp = await freelancer_client.post(f"{BASE}/tasks/{task.id}/move", json={"columnId": 999})
    assert resp.status_code == 404
    assert resp.json()["error"]["detail"] == "Column not found"

    resp = await freelancer_client.post(f"{BASE}/tasks/999/move", json={"columnId": board["columns"][0]["id"]})
    assert resp.status_code == 404
    assert resp.json()["error"]["detail"] == "Task not found"


@pytest.mark.asyncio
async def test_reorder_columns(freelancer_client: AsyncClient, board: dict) -> None:
    todo, doing, done = (c["id"] for c in board["columns"])
    resp = await freelancer_client.patch(
        f"{BASE}/boards/{board['id']}/columns/order",
        json={"columns": [{"id": done, "order": 1}, {"id": todo, "order": 2}, {"id": doing, "order": 3}]},
    )
    assert resp.status_code == 200, resp.text

    resp = await freelancer_client.get(f"{BASE}/boards/{board['id']}")
    assert [c["name"] for c in resp.json()["columns"]] == ["Done", "To Do", "In Progress"]


@pytest.mark.asyncio
async def test_reorder_rejects_foreign_columns(freelancer_client: AsyncClient, board: dict) -> None:
    resp = await freelancer_client.post(f"{BASE}/boards", json={"name": "Other"})
    foreign = resp.json()["columns"][0]["id"]

    resp = await freelancer_client.patch(
        f"{BASE}/boards/{board['id']}/columns/order",
        json={"columns": [{"id": board["columns"][0]["id"], "order": 5}, {"id": foreign, "order": 1}]},
    )
    assert resp.status_code == 400

    resp = await freelancer_client.get(f"{BASE}/boards/{board['id']}")
    assert [c["order"] for c in resp.json()["columns"]] == [1, 2, 3]


@pytest.mark.asyncio
async def test_deleting_a_column_keeps_its_tasks(freelancer_client: AsyncClient, board: dict, task: Task) -> None:
    todo, doing, _ = (c["id"] for c in board["columns"])
    await freelancer_client.post(f"{BASE}/tasks/{task.id}/move", json={"columnId": doing})

    resp = await freelancer_client.delete(f"{BASE}/columns/{doing}")
    assert resp.status_code == 204

    resp = await freelancer_client.get(f"{BASE}/boards/{board['id']}")
    columns = {c["id"]: [t["id"] for t in c["tasks"]] for c in resp.json()["columns"]}
    assert doing not in columns
    assert columns[todo] == [task.id]


@pytest.mark.asyncio
async def test_rename_and_add_columns(freelancer_client: AsyncClient, board: dict) -> None:
    resp = await freelancer_client.post(f"{BASE}/boards/{board['id']}/columns", json={"name": "Blocked", "order": 4})
    assert resp.status_code == 201
    column_id = resp.json()["id"]

    resp = await freelancer_client.patch(f"{BASE}/columns/{column_id}", json={"name": "On hold"})
    assert resp.json()["name"] == "On hold"

    resp = await freelancer_client.patch(f"{BASE}/boards/{board['id']}", json={"name": "Sprint 2"})
    assert resp.json()["name"] == "Sprint 2"
    assert len(resp.json()["columns"]) == 4


@pytest.mark.asyncio
async def test_delete_board(freelancer_client: AsyncClient, board: dict) -> None:
    resp = await freelancer_client.delete(f"{BASE}/boards/{board['id']}")
    assert resp.status_code == 204
    resp = await freelancer_client.get(f"{BASE}/boards/{board['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_clients_have_no_kanban_access(customer_client: AsyncClient, board: dict) -> None:
    resp = await customer_client.get(f"{BASE}/boards/{board['id']}")
    assert resp.status_code == 403
