"""Deliverable lifecycle: drafting, review, approval, feedback and discussion."""

import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.database.base import utcnow
from src.exceptions import BadRequestError, ResourceNotFoundError
from src.projects.models import Project, Task
from src.users.models import User

from .models import Deliverable, DeliverableComment, DeliverableFeedback, DeliverableStatus, FeedbackStatus
from .schemas import (
    DeliverableCommentCreate,
    DeliverableCommentResponse,
    DeliverableCreate,
    DeliverableDetail,
    DeliverableResponse,
    DeliverableUpdate,
    FeedbackCreate,
    FeedbackResponse,
)


logger = logging.getLogger(__name__)


class DeliverableService:
    """Service for deliverables and their review workflow."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, data: DeliverableCreate) -> DeliverableResponse:
        if await self.session.get(Project, data.project_id) is None:
            raise ResourceNotFoundError("Project", data.project_id, message="Project not found")
        task = await self.session.get(Task, data.task_id)
        if task is None or task.project_id != data.project_id:
            raise ResourceNotFoundError("Task", data.task_id, message="Task not found")

        deliverable = Deliverable(
            project_id=data.project_id,
            task_id=data.task_id,
            title=data.title,
            description=data.description,
            due_date=data.due_date,
            status=data.status.value,
            priority=data.priority.value if data.priority else None,
            attachments=data.attachments,
            feedback_required=data.feedback_required,
            assignees=await self._users(data.assignees),
        )
        self.session.add(deliverable)
        await self.session.commit()
        logger.info("Created deliverable %s for project %s", deliverable.id, data.project_id)
        return DeliverableResponse.model_validate(await self._load(deliverable.id))

    async def get(self, deliverable_id: int) -> DeliverableDetail:
        """Deliverable with its feedback and top-level comments with their replies."""
        deliverable = await self._load(deliverable_id, detail=True)
        response = DeliverableDetail.model_validate(deliverable)
        response.comments = [
            DeliverableCommentResponse.model_validate(comment)
            for comment in deliverable.comments
            if comment.parent_id is None
        ]
        return response

    async def update(self, deliverable_id: int, data: DeliverableUpdate) -> DeliverableResponse:
        """Apply only the fields that were sent; a sent assignee list replaces the current one."""
        deliverable = await self._load(deliverable_id)
        changes = data.changes()
        assignee_ids = changes.pop("assignees", None)

        for field, value in changes.items():
            setattr(deliverable, field, getattr(value, "value", value))
        if assignee_ids is not None:
            deliverable.assignees = await self._users(assignee_ids)

        await self.session.commit()
        return DeliverableResponse.model_validate(await self._load(deliverable_id))

    async def delete(self, deliverable_id: int) -> None:
        deliverable = await self._get_or_404(deliverable_id)
        await self.session.delete(deliverable)
        await self.session.commit()
        logger.info("Deleted deliverable %s", deliverable_id)

    async def submit_for_review(self, deliverable_id: int) -> DeliverableResponse:
        return await self._set_fields(deliverable_id, status=DeliverableStatus.REVIEW.value)

    async def approve(self, deliverable_id: int) -> DeliverableResponse:
        return await self._set_fields(
            deliverable_id,
            status=DeliverableStatus.APPROVED.value,
            client_approval=True,
            acceptance_date=utcnow(),
        )

    async def request_revision(self, deliverable_id: int, revision_notes: str) -> DeliverableResponse:
        """Send the deliverable back to work with the reviewer's notes."""
        return await self._set_fields(
            deliverable_id, status=DeliverableStatus.IN_PROGRESS.value, revision_notes=revision_notes
        )

    async def update_metrics(self, deliverable_id: int, metrics: dict[str, Any]) -> DeliverableResponse:
        return await self._set_fields(deliverable_id, metrics=metrics)

    async def add_feedback(self, deliverable_id: int, data: FeedbackCreate) -> FeedbackResponse:
        await self._get_or_404(deliverable_id)
        await self._require_user(data.user_id)
        feedback = DeliverableFeedback(
            deliverable_id=deliverable_id,
            user_id=data.user_id,
            feedback=data.feedback,
            status=FeedbackStatus.PENDING.value,
        )
        self.session.add(feedback)
        await self.session.commit()

        stmt = (
            select(DeliverableFeedback)
            .where(DeliverableFeedback.id == feedback.id)
            .options(selectinload(DeliverableFeedback.user))
        )
        return FeedbackResponse.model_validate((await self.session.execute(stmt)).scalar_one())

    async def add_comment(self, deliverable_id: int, data: DeliverableCommentCreate) -> DeliverableCommentResponse:
        await self._get_or_404(deliverable_id)
        await self._require_user(data.user_id)
        if data.parent_id is not None:
            parent = await self.session.get(DeliverableComment, data.parent_id)
            if parent is None or parent.deliverable_id != deliverable_id:
                raise ResourceNotFoundError("Comment", data.parent_id, message="Parent comment not found")

        comment = DeliverableComment(
            deliverable_id=deliverable_id, user_id=data.user_id, content=data.content, parent_id=data.parent_id
        )
        self.session.add(comment)
        await self.session.commit()

        stmt = (
            select(DeliverableComment)
            .where(DeliverableComment.id == comment.id)
            .options(
                selectinload(DeliverableComment.user),
                selectinload(DeliverableComment.replies).selectinload(DeliverableComment.user),
            )
        )
        return DeliverableCommentResponse.model_validate((await self.session.execute(stmt)).scalar_one())

    async def mark_feedback_read(self, deliverable_id: int, *, is_pm: bool = False, is_client: bool = False) -> int:
        """Flag every feedback entry as read by the PM and/or the client; returns the row count."""
        await self._get_or_404(deliverable_id)
        values: dict[str, Any] = {"updated_at": utcnow()}
        if is_pm:
            values["is_read_by_pm"] = True
        if is_client:
            values["is_read_by_client"] = True

        result = await self.session.execute(
            update(DeliverableFeedback)
            .where(DeliverableFeedback.deliverable_id == deliverable_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount

    async def _set_fields(self, deliverable_id: int, **fields: Any) -> DeliverableResponse:
        deliverable = await self._get_or_404(deliverable_id)
        for field, value in fields.items():
            setattr(deliverable, field, value)
        await self.session.commit()
        logger.info("Deliverable %s updated: %s", deliverable_id, ", ".join(fields))
        return DeliverableResponse.model_validate(await self._load(deliverable_id))

    async def _get_or_404(self, deliverable_id: int) -> Deliverable:
        deliverable = await self.session.get(Deliverable, deliverable_id)
        if deliverable is None:
            raise ResourceNotFoundError("Deliverable", deliverable_id, message="Deliverable not found")
        return deliverable

    async def _load(self, deliverable_id: int, *, detail: bool = False) -> Deliverable:
        options = [
            selectinload(Deliverable.project),
            selectinload(Deliverable.task),
            selectinload(Deliverable.assignees),
        ]
        if detail:
            options += [
                selectinload(Deliverable.feedbacks).selectinload(DeliverableFeedback.user),
                selectinload(Deliverable.comments).selectinload(DeliverableComment.user),
                selectinload(Deliverable.comments)
                .selectinload(DeliverableComment.replies)
                .selectinload(DeliverableComment.user),
            ]
        stmt = (
            select(Deliverable)
            .where(Deliverable.id == deliverable_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        deliverable = (await self.session.execute(stmt)).scalar_one_or_none()
        if deliverable is None:
            raise ResourceNotFoundError("Deliverable", deliverable_id, message="Deliverable not found")
        return deliverable

    async def _users(self, user_ids: list[int]) -> list[User]:
        if not user_ids:
            return []
        result = await self.session.execute(select(User).where(User.id.in_(user_ids)))
        users = list(result.scalars().all())
        missing = set(user_ids) - {user.id for user in users}
        if missing:
            msg = f"Unknown assignee IDs: {', '.join(str(i) for i in sorted(missing))}"
            raise BadRequestError(msg)
        return users

    async def _require_user(self, user_id: int) -> None:
        if await self.session.get(User, user_id) is None:
            raise ResourceNotFoundError("User", user_id, message="User not found")
