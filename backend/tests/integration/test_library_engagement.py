"""Progress, certificates, favorites, pins, comments, reactions and relations."""

from datetime import datetime

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import AuthUser
from src.exceptions import BadRequestError
from src.library.models import LibraryCertificate, ReactionType
from src.library.services import EngagementService
from src.users.models import User, UserRole


@pytest_asyncio.fixture
async def category_id(admin_client: AsyncClient) -> str:
    resp = await admin_client.post("/api/v1/library/categories", json={"name": "Freelancing"})
    return resp.json()["data"]["id"]


async def _publish(client: AsyncClient, category_id: str, title: str, **extra: object) -> str:
    body = {
        "title": title,
        "description": f"About {title}",
        "content": "Body text",
        "categoryId": category_id,
        "status": "PUBLISHED",
        **extra,
    }
    resp = await client.post("/api/v1/library/resources", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


@pytest_asyncio.fixture
async def resource_id(admin_client: AsyncClient, category_id: str) -> str:
    return await _publish(admin_client, category_id, "Pricing your work")


async def _certificate_count(session: AsyncSession, user_id: int, resource_id: str) -> int:
    stmt = select(func.count(LibraryCertificate.id)).where(
        LibraryCertificate.user_id == user_id, LibraryCertificate.resource_id == resource_id
    )
    return await session.scalar(stmt) or 0


class TestProgress:
    @pytest.mark.asyncio
    async def test_progress_adds_up_and_caps_at_100(
        self, freelancer_client: AsyncClient, freelancer: User, resource_id: str, db_session: AsyncSession
    ) -> None:
        url = f"/api/v1/library/resources/{resource_id}/progress"

        resp = await freelancer_client.patch(url, json={"percentage": 40})
        assert resp.status_code == 200, resp.text
        progress = resp.json()["data"]["progress"]
        assert progress["percentage"] == 40
        assert progress["completed"] is False
        assert await _certificate_count(db_session, freelancer.id, resource_id) == 0

        resp = await freelancer_client.patch(url, json={"percentage": 70})
        progress = resp.json()["data"]["progress"]
        assert progress["percentage"] == 100
        assert progress["completed"] is True
        assert await _certificate_count(db_session, freelancer.id, resource_id) == 1

    @pytest.mark.asyncio
    async def test_zero_delta_keeps_percentage_and_touches_last_accessed(
        self, freelancer_client: AsyncClient, resource_id: str
    ) -> None:
        url = f"/api/v1/library/resources/{resource_id}/progress"

        async def last_entry() -> dict:
            resp = await freelancer_client.get("/api/v1/library/progress")
            return resp.json()["data"]["progress"][0]

        await freelancer_client.patch(url, json={"percentage": 30})
        before = await last_entry()

        resp = await freelancer_client.patch(url, json={"percentage": 0})
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"]["progress"]["percentage"] == 30

        after = await last_entry()
        assert after["percentage"] == 30
        assert after["completed"] is False
        assert datetime.fromisoformat(after["lastAccessed"]) > datetime.fromisoformat(before["lastAccessed"])

    @pytest.mark.asyncio
    async def test_completed_only_once_running_sum_reaches_100(
        self, freelancer_client: AsyncClient, freelancer: User, resource_id: str, db_session: AsyncSession
    ) -> None:
        url = f"/api/v1/library/resources/{resource_id}/progress"
        steps = [(20, 20, False), (35, 55, False), (25, 80, False), (15, 95, False), (10, 100, True), (5, 100, True)]

        for delta, total, completed in steps:
            resp = await freelancer_client.patch(url, json={"percentage": delta})
            progress = resp.json()["data"]["progress"]
            assert (progress["percentage"], progress["completed"]) == (total, completed)
            assert await _certificate_count(db_session, freelancer.id, resource_id) == int(completed)

    @pytest.mark.asyncio
    async def test_completion_issues_one_certificate(
        self, freelancer_client: AsyncClient, freelancer: User, resource_id: str, db_session: AsyncSession
    ) -> None:
        url = f"/api/v1/library/resources/{resource_id}/progress"
        for _ in range(3):
            resp = await freelancer_client.patch(url, json={"percentage": 100})
            assert resp.status_code == 200

        assert await _certificate_count(db_session, freelancer.id, resource_id) == 1

        resp = await freelancer_client.get("/api/v1/library/certificates")
        certificates = resp.json()["data"]["certificates"]
        assert len(certificates) == 1
        assert certificates[0]["title"] == "Certificate of Completion - Pricing your work"
        assert certificates[0]["resource"]["id"] == resource_id

    @pytest.mark.asyncio
    async def test_progress_on_unknown_resource_is_404(self, freelancer_client: AsyncClient) -> None:
        resp = await freelancer_client.patch("/api/v1/library/resources/missing/progress", json={"percentage": 10})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_percentage_must_be_in_range(self, freelancer_client: AsyncClient, resource_id: str) -> None:
        resp = await freelancer_client.patch(
            f"/api/v1/library/resources/{resource_id}/progress", json={"percentage": 120}
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_progress_listing_and_detail_state(
        self, freelancer_client: AsyncClient, resource_id: str
    ) -> None:
        await freelancer_client.patch(f"/api/v1/library/resources/{resource_id}/progress", json={"percentage": 25})

        resp = await freelancer_client.get("/api/v1/library/progress")
        entries = resp.json()["data"]["progress"]
        assert [e["resourceId"] for e in entries] == [resource_id]
        assert entries[0]["resource"]["title"] == "Pricing your work"

        resp = await freelancer_client.get(f"/api/v1/library/resources/{resource_id}")
        data = resp.json()["data"]
        assert data["userProgress"]["percentage"] == 25
        assert data["certificate"] is None


class TestToggles:
    @pytest.mark.asyncio
    async def test_pin_flips_each_call(self, freelancer_client: AsyncClient, resource_id: str) -> None:
        url = f"/api/v1/library/resources/{resource_id}/pin"
        states = []
        for _ in range(3):
            resp = await freelancer_client.post(url)
            states.append(resp.json()["data"]["isPinned"])
        assert states == [True, False, True]

        resp = await freelancer_client.get("/api/v1/library/pins")
        pins = resp.json()["data"]["pins"]
        assert [p["resourceId"] for p in pins] == [resource_id]

    @pytest.mark.asyncio
    async def test_favorite_flips_and_shows_on_detail(self, freelancer_client: AsyncClient, resource_id: str) -> None:
        url = f"/api/v1/library/resources/{resource_id}/favorite"
        resp = await freelancer_client.post(url)
        assert resp.json()["data"]["isFavorited"] is True
        assert resp.json()["message"] == "Resource added to favorites"

        resp = await freelancer_client.get(f"/api/v1/library/resources/{resource_id}")
        assert resp.json()["data"]["isFavorited"] is True
        assert resp.json()["data"]["favoriteCount"] == 1

        resp = await freelancer_client.post(url)
        assert resp.json()["data"]["isFavorited"] is False

    @pytest.mark.asyncio
    async def test_favorite_unknown_resource_is_404(self, freelancer_client: AsyncClient) -> None:
        resp = await freelancer_client.post("/api/v1/library/resources/missing/favorite")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_toggles_require_authentication(self, client_factory, resource_id: str) -> None:
        anonymous = await client_factory()
        resp = await anonymous.post(f"/api/v1/library/resources/{resource_id}/pin")
        assert resp.status_code == 401

        resp = await anonymous.post(
            f"/api/v1/library/resources/{resource_id}/pin", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert resp.status_code == 401


class TestComments:
    @pytest.mark.asyncio
    async def test_comment_and_reply(self, freelancer_client: AsyncClient, resource_id: str) -> None:
        resp = await freelancer_client.post(
            "/api/v1/library-comments/", json={"content": "Very useful", "resourceId": resource_id}
        )
        assert resp.status_code == 201, resp.text
        comment_id = resp.json()["data"]["id"]

        resp = await freelancer_client.post(
            "/api/v1/library-comments/",
            json={"content": "Agreed", "resourceId": resource_id, "commentId": comment_id},
        )
        assert resp.status_code == 201
        assert resp.json()["message"] == "Reply added successfully"
        assert resp.json()["data"]["commentId"] == comment_id

        resp = await freelancer_client.get(f"/api/v1/library-comments/resource/{resource_id}")
        comments = resp.json()["data"]["comments"]
        assert len(comments) == 1
        assert comments[0]["replyCount"] == 1
        assert comments[0]["replies"][0]["content"] == "Agreed"

    @pytest.mark.asyncio
    async def test_reply_to_unknown_comment_is_404(self, freelancer_client: AsyncClient, resource_id: str) -> None:
        resp = await freelancer_client.post(
            "/api/v1/library-comments/",
            json={"content": "Hello", "resourceId": resource_id, "commentId": "missing"},
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["detail"] == "Parent comment not found"

    @pytest.mark.asyncio
    async def test_only_the_author_can_edit_or_delete(
        self, freelancer_client: AsyncClient, customer_client: AsyncClient, resource_id: str
    ) -> None:
        resp = await freelancer_client.post(
            "/api/v1/library-comments/", json={"content": "Mine", "resourceId": resource_id}
        )
        comment_id = resp.json()["data"]["id"]

        resp = await customer_client.put(f"/api/v1/library-comments/{comment_id}", json={"content": "Hijacked"})
        assert resp.status_code == 400
        assert resp.json()["error"]["detail"] == "You can only edit your own comments"

        resp = await customer_client.delete(f"/api/v1/library-comments/{comment_id}")
        assert resp.status_code == 400
        assert resp.json()["error"]["detail"] == "You can only delete your own comments"

        resp = await freelancer_client.put(f"/api/v1/library-comments/{comment_id}", json={"content": "Edited"})
        assert resp.status_code == 200
        assert resp.json()["data"]["content"] == "Edited"

        resp = await freelancer_client.delete(f"/api/v1/library-comments/{comment_id}")
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_comments_can_be_disabled(
        self, admin_client: AsyncClient, freelancer_client: AsyncClient, resource_id: str
    ) -> None:
        resp = await freelancer_client.post(
            "/api/v1/library-comments/", json={"content": "Before closing", "resourceId": resource_id}
        )
        comment_id = resp.json()["data"]["id"]

        resp = await admin_client.put(f"/api/v1/library/resources/{resource_id}", json={"allowComments": False})
        assert resp.status_code == 200

        resp = await freelancer_client.post(
            "/api/v1/library-comments/", json={"content": "Hello", "resourceId": resource_id}
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["detail"] == "Comments are disabled for this resource"

        resp = await freelancer_client.post(
            "/api/v1/library-comments/",
            json={"content": "Late reply", "resourceId": resource_id, "commentId": comment_id},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["detail"] == "Comments are disabled for this resource"


class TestReactions:
    @pytest.mark.asyncio
    async def test_reaction_toggles_and_counts(self, freelancer_client: AsyncClient, resource_id: str) -> None:
        resp = await freelancer_client.post(
            "/api/v1/library-comments/", json={"content": "Nice", "resourceId": resource_id}
        )
        comment_id = resp.json()["data"]["id"]
        url = f"/api/v1/library/comments/{comment_id}/reactions"

        resp = await freelancer_client.post(url, json={"type": "LIKE"})
        assert resp.json()["data"]["isAdded"] is True
        resp = await freelancer_client.post(url, json={"type": "HELPFUL"})
        assert resp.json()["data"]["isAdded"] is True

        resp = await freelancer_client.get(url)
        assert resp.json()["data"]["counts"] == {"LIKE": 1, "HELPFUL": 1}

        resp = await freelancer_client.post(url, json={"type": "LIKE"})
        assert resp.json()["data"]["isAdded"] is False
        resp = await freelancer_client.get(url)
        assert resp.json()["data"]["counts"] == {"HELPFUL": 1}

    @pytest.mark.asyncio
    async def test_reaction_on_unknown_reply_is_404(self, freelancer_client: AsyncClient) -> None:
        resp = await freelancer_client.post("/api/v1/library/replies/missing/reactions", json={"type": "LOVE"})
        assert resp.status_code == 404
        assert resp.json()["error"]["detail"] == "Reply not found"

    @pytest.mark.asyncio
    async def test_reaction_needs_exactly_one_target(self, db_session: AsyncSession, freelancer: User) -> None:
        service = EngagementService(db_session)
        user = AuthUser(id=freelancer.id, role=UserRole.FREELANCER.value)

        with pytest.raises(BadRequestError, match="Must provide either commentId or replyId"):
            await service.toggle_reaction(user, ReactionType.LIKE)
        with pytest.raises(BadRequestError, match="Cannot react to both comment and reply"):
            await service.toggle_reaction(user, ReactionType.LIKE, comment_id="a", reply_id="b")


class TestRelations:
    @pytest.mark.asyncio
    async def test_relation_lifecycle(self, admin_client: AsyncClient, category_id: str, resource_id: str) -> None:
        other_id = await _publish(admin_client, category_id, "Negotiating scope")
        base = f"/api/v1/library/resources/{resource_id}/related"

        resp = await admin_client.post(base, json={"relatedResourceId": other_id})
        assert resp.status_code == 201, resp.text

        resp = await admin_client.get(f"{base}/{other_id}/check")
        assert resp.json()["data"]["isRelated"] is True
        resp = await admin_client.get(f"/api/v1/library/resources/{other_id}/related/{resource_id}/check")
        assert resp.json()["data"]["isRelated"] is True

        resp = await admin_client.get(base)
        assert [r["id"] for r in resp.json()["data"]] == [other_id]

        resp = await admin_client.delete(f"{base}/{other_id}")
        assert resp.status_code == 200
        resp = await admin_client.get(f"{base}/{other_id}/check")
        assert resp.json()["data"]["isRelated"] is False

    @pytest.mark.asyncio
    async def test_relation_rules(self, admin_client: AsyncClient, category_id: str, resource_id: str) -> None:
        other_id = await _publish(admin_client, category_id, "Invoicing")

        resp = await admin_client.post(
            f"/api/v1/library/resources/{resource_id}/related", json={"relatedResourceId": resource_id}
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["detail"] == "Cannot relate a resource to itself"

        await admin_client.post(
            f"/api/v1/library/resources/{resource_id}/related", json={"relatedResourceId": other_id}
        )
        resp = await admin_client.post(
            f"/api/v1/library/resources/{other_id}/related", json={"relatedResourceId": resource_id}
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["detail"] == "This relation already exists"

        resp = await admin_client.post(
            f"/api/v1/library/resources/{resource_id}/related", json={"relatedResourceId": "missing"}
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_suggestions_skip_linked_resources(
        self, admin_client: AsyncClient, category_id: str, resource_id: str
    ) -> None:
        linked_id = await _publish(admin_client, category_id, "Linked")
        free_id = await _publish(admin_client, category_id, "Unlinked")
        await admin_client.post(
            f"/api/v1/library/resources/{resource_id}/related", json={"relatedResourceId": linked_id}
        )

        resp = await admin_client.get(f"/api/v1/library/resources/{resource_id}/related/suggestions")
        assert [r["id"] for r in resp.json()["data"]] == [free_id]


class TestAttachments:
    @pytest.mark.asyncio
    async def test_attachment_crud_and_total_size(self, admin_client: AsyncClient, resource_id: str) -> None:
        for name, size in (("a.pdf", 100), ("b.mp4", 250)):
            resp = await admin_client.post(
                "/api/v1/library-attachments/",
                json={
                    "resourceId": resource_id,
                    "name": name,
                    "url": f"https://files.example.com/{name}",
                    "type": "PDF" if name.endswith("pdf") else "VIDEO",
                    "size": size,
                },
            )
            assert resp.status_code == 201, resp.text
        attachment_id = resp.json()["data"]["id"]

        resp = await admin_client.get(f"/api/v1/library-attachments/resource/{resource_id}/size")
        assert resp.json()["data"]["totalSize"] == 350

        resp = await admin_client.put(
            f"/api/v1/library-attachments/{attachment_id}", json={"description": "Recorded walkthrough"}
        )
        assert resp.json()["data"]["description"] == "Recorded walkthrough"

        resp = await admin_client.delete(f"/api/v1/library-attachments/{attachment_id}")
        assert resp.status_code == 200
        resp = await admin_client.get(f"/api/v1/library-attachments/{attachment_id}")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_attachment_for_unknown_resource_is_404(self, admin_client: AsyncClient) -> None:
        resp = await admin_client.post(
            "/api/v1/library-attachments/",
            json={"resourceId": "missing", "name": "x.pdf", "url": "https://e.com/x.pdf", "type": "PDF", "size": 1},
        )
        assert resp.status_code == 404
