from datetime import datetime
from typing import Any

from pydantic import Field

from src.projects.schemas import ProjectSummary, TaskSummary
from src.schemas import APIModel, PartialUpdate
from src.users.schemas import UserSummary

from .models import DeliverableStatus, FeedbackStatus, PaymentStatus, Priority


# === Requests ===


class DeliverableCreate(APIModel):
    project_id: int
    task_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    due_date: datetime | None = None
    status: DeliverableStatus = DeliverableStatus.DRAFT
    priority: Priority | None = None
    attachments: Any | None = None
    assignees: list[int] = Field(default_factory=list)
    feedback_required: bool = False


class DeliverableUpdate(PartialUpdate):
    not_null = ("title", "status", "assignees", "version", "client_approval", "feedback_required")

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    due_date: datetime | None = None
    status: DeliverableStatus | None = None
    priority: Priority | None = None
    attachments: Any | None = None
    assignees: list[int] | None = None
    version: int | None = Field(None, ge=1)
    revision_notes: str | None = None
    client_approval: bool | None = None
    feedback_required: bool | None = None
    completion_date: datetime | None = None
    acceptance_date: datetime | None = None
    revision_requests: list[str] | None = None
    final_payment_status: PaymentStatus | None = None
    metrics: dict[str, Any] | None = None
    rating: float | None = Field(None, ge=0, le=5)
    client_feedback: str | None = None


class RevisionRequest(APIModel):
    revision_notes: str = Field(..., min_length=1)


class FeedbackCreate(APIModel):
    user_id: int
    feedback: str = Field(..., min_length=1)


class DeliverableCommentCreate(APIModel):
    user_id: int
    content: str = Field(..., min_length=1)
    parent_id: int | None = None


class MetricsUpdate(APIModel):
    metrics: dict[str, Any]


class FeedbackReadUpdate(APIModel):
    is_pm: bool = Field(False, alias="isPM")
    is_client: bool = False


# === Responses ===


class FeedbackResponse(APIModel):
    id: int
    deliverable_id: int
    user_id: int
    feedback: str
    status: FeedbackStatus
    is_read_by_pm: bool
    is_read_by_client: bool
    created_at: datetime
    updated_at: datetime
    user: UserSummary


class DeliverableReply(APIModel):
    id: int
    deliverable_id: int
    user_id: int
    parent_id: int | None = None
    content: str
    created_at: datetime
    updated_at: datetime
    user: UserSummary


class DeliverableCommentResponse(DeliverableReply):
    replies: list[DeliverableReply] = Field(default_factory=list)


class DeliverableResponse(APIModel):
    id: int
    project_id: int
    task_id: int | None = None
    title: str
    description: str | None = None
    due_date: datetime | None = None
    status: DeliverableStatus
    priority: Priority | None = None
    attachments: Any | None = None
    feedback_required: bool
    version: int
    revision_notes: str | None = None
    client_approval: bool
    completion_date: datetime | None = None
    acceptance_date: datetime | None = None
    revision_requests: list[str] | None = None
    final_payment_status: PaymentStatus | None = None
    metrics: dict[str, Any] | None = None
    rating: float | None = None
    client_feedback: str | None = None
    created_at: datetime
    updated_at: datetime
    project: ProjectSummary
    task: TaskSummary | None = None
    assignees: list[UserSummary] = Field(default_factory=list)


class DeliverableDetail(DeliverableResponse):
    feedbacks: list[FeedbackResponse] = Field(default_factory=list)
    comments: list[DeliverableCommentResponse] = Field(default_factory=list)


class FeedbackReadResult(APIModel):
    count: int
