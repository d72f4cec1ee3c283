"""Project documents, their versions and the folder tree."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.projects.models import Project, Task
from src.users.models import User


BASE = "/api/v1/project-documents"


async def upload(client: AsyncClient, project: Project, user: User, name: str, **extra: object) -> dict:
    body = {
        "projectId": project.id,
        "uploadedById": user.id,
        "fileName": name,
        "fileURL": f"https://files.example.com/{name}",
        "fileSize": 2048,
        "fileType": name.rsplit(".", 1)[-1],
        **extra,
    }
    resp = await client.post(f"{BASE}/", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def make_folder(client: AsyncClient, project: Project, user: User, name: str, **extra: object) -> dict:
    resp = await client.post(
        f"{BASE}/folders", json={"projectId": project.id, "createdById": user.id, "name": name, **extra}
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_upload_and_fetch(freelancer_client: AsyncClient, project: Project, freelancer: User) -> None:
    document = await upload(freelancer_client, project, freelancer, "brief.pdf")
    assert document["fileURL"] == "https://files.example.com/brief.pdf"
    assert document["uploadedBy"]["id"] == freelancer.id
    assert document["folder"] is None

    resp = await freelancer_client.get(f"{BASE}/{document['id']}")
    assert resp.status_code == 200
    assert resp.json()["versions"] == []


@pytest.mark.asyncio
async def test_versions_are_numbered_sequentially(
    freelancer_client: AsyncClient, project: Project, freelancer: User
) -> None:
    document = await upload(freelancer_client, project, freelancer, "contract.docx")
    for expected in (1, 2, 3):
        resp = await freelancer_client.post(
            f"{BASE}/{document['id']}/versions",
            json={"changedById": freelancer.id, "fileURL": f"https://files.example.com/contract-v{expected}.docx"},
        )
        assert resp.status_code == 201, resp.text
        assert resp.json()["versionNumber"] == expected

    resp = await freelancer_client.get(f"{BASE}/{document['id']}")
    assert [v["versionNumber"] for v in resp.json()["versions"]] == [3, 2, 1]


@pytest.mark.asyncio
async def test_list_filters(
    freelancer_client: AsyncClient, project: Project, task: Task, freelancer: User
) -> None:
    await upload(freelancer_client, project, freelancer, "notes.txt")
    tagged = await upload(freelancer_client, project, freelancer, "requirements.pdf", taskId=task.id)

    resp = await freelancer_client.get(f"{BASE}/project/{project.id}")
    assert len(resp.json()) == 2

    resp = await freelancer_client.get(f"{BASE}/project/{project.id}", params={"taskId": task.id})
    assert [d["id"] for d in resp.json()] == [tagged["id"]]

    resp = await freelancer_client.get(f"{BASE}/project/{project.id}", params={"fileType": "txt"})
    assert [d["fileName"] for d in resp.json()] == ["notes.txt"]


@pytest.mark.asyncio
async def test_move_between_folders(freelancer_client: AsyncClient, project: Project, freelancer: User) -> None:
    folder = await make_folder(freelancer_client, project, freelancer, "Contracts")
    document = await upload(freelancer_client, project, freelancer, "nda.pdf")

    resp = await freelancer_client.post(f"{BASE}/{document['id']}/move", json={"folderId": folder["id"]})
    assert resp.status_code == 200
    assert resp.json()["folder"]["id"] == folder["id"]

    resp = await freelancer_client.get(f"{BASE}/folders/{folder['id']}")
    assert [d["id"] for d in resp.json()["documents"]] == [document["id"]]

    resp = await freelancer_client.post(f"{BASE}/{document['id']}/move", json={"folderId": None})
    assert resp.json()["folderId"] is None


@pytest.mark.asyncio
async def test_folder_must_belong_to_the_same_project(
    freelancer_client: AsyncClient, project: Project, freelancer: User, db_session: AsyncSession
) -> None:
    other = Project(title="Other engagement")
    db_session.add(other)
    await db_session.commit()

    foreign_folder = await make_folder(freelancer_client, other, freelancer, "Elsewhere")
    resp = await freelancer_client.post(
        f"{BASE}/",
        json={
            "projectId": project.id,
            "uploadedById": freelancer.id,
            "fileName": "a.pdf",
            "fileURL": "https://files.example.com/a.pdf",
            "fileType": "pdf",
            "folderId": foreign_folder["id"],
        },
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["detail"] == "Folder belongs to a different project"


@pytest.mark.asyncio
async def test_deleting_a_folder_moves_contents_to_root(
    freelancer_client: AsyncClient, project: Project, freelancer: User
) -> None:
    parent = await make_folder(freelancer_client, project, freelancer, "Design")
    child = await make_folder(freelancer_client, project, freelancer, "Drafts", parentId=parent["id"])
    document = await upload(freelancer_client, project, freelancer, "logo.png", folderId=parent["id"])

    resp = await freelancer_client.get(f"{BASE}/folders/project/{project.id}")
    assert [f["name"] for f in resp.json()] == ["Design"]
    assert [c["id"] for c in resp.json()[0]["children"]] == [child["id"]]

    resp = await freelancer_client.delete(f"{BASE}/folders/{parent['id']}")
    assert resp.status_code == 204

    resp = await freelancer_client.get(f"{BASE}/{document['id']}")
    assert resp.json()["folderId"] is None

    resp = await freelancer_client.get(f"{BASE}/folders/project/{project.id}")
    assert [f["id"] for f in resp.json()] == [child["id"]]


@pytest.mark.asyncio
async def test_update_and_delete_document(freelancer_client: AsyncClient, project: Project, freelancer: User) -> None:
    document = await upload(freelancer_client, project, freelancer, "draft.pdf")

    resp = await freelancer_client.patch(f"{BASE}/{document['id']}", json={"fileName": "final.pdf"})
    assert resp.json()["fileName"] == "final.pdf"

    resp = await freelancer_client.delete(f"{BASE}/{document['id']}")
    assert resp.status_code == 204
    resp = await freelancer_client.get(f"{BASE}/{document['id']}")
    assert resp.status_code == 404
    assert resp.json()["error"]["detail"] == "Document not found"


@pytest.mark.asyncio
async def test_names_cannot_be_cleared(freelancer_client: AsyncClient, project: Project, freelancer: User) -> None:
    folder = await make_folder(freelancer_client, project, freelancer, "Invoices")
    document = await upload(freelancer_client, project, freelancer, "invoice.pdf", folderId=folder["id"])

    resp = await freelancer_client.patch(f"{BASE}/folders/{folder['id']}", json={"name": None})
    assert resp.status_code == 422
    assert "name cannot be null" in resp.json()["error"]["metadata"]["errors"][0]["message"]

    resp = await freelancer_client.patch(f"{BASE}/{document['id']}", json={"fileName": None})
    assert resp.status_code == 422

    resp = await freelancer_client.patch(f"{BASE}/{document['id']}", json={"folderId": None})
    assert resp.status_code == 200
    assert resp.json()["folderId"] is None
