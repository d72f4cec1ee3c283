"""Database models for project deliverables."""

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Table, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, utcnow
from src.projects.models import Project, Task
from src.users.models import User


# JSONB on PostgreSQL, plain JSON elsewhere
JsonColumn = JSON().with_variant(JSONB, "postgresql")


class DeliverableStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class FeedbackStatus(str, enum.Enum):
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    RESOLVED = "RESOLVED"


class Priority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


deliverable_assignees = Table(
    "deliverable_assignees",
    Base.metadata,
    Column("deliverable_id", Integer, ForeignKey("deliverables.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Deliverable(Base):
    """A piece of work handed to the client for review and approval."""

    __tablename__ = "deliverables"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=DeliverableStatus.DRAFT.value, index=True)
    priority: Mapped[str | None] = mapped_column(String(10), nullable=True)
    attachments: Mapped[Any | None] = mapped_column(JsonColumn, nullable=True)
    feedback_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    revision_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completion_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    acceptance_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revision_requests: Mapped[list[str] | None] = mapped_column(JsonColumn, nullable=True)
    final_payment_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    metrics: Mapped[Any | None] = mapped_column(JsonColumn, nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    client_feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    project: Mapped[Project] = relationship(Project)
    task: Mapped[Task | None] = relationship(Task)
    assignees: Mapped[list[User]] = relationship(User, secondary=deliverable_assignees, passive_deletes=True)
    feedbacks: Mapped[list["DeliverableFeedback"]] = relationship(
        back_populates="deliverable",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DeliverableFeedback.created_at",
    )
    comments: Mapped[list["DeliverableComment"]] = relationship(
        back_populates="deliverable",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DeliverableComment.created_at",
    )


class DeliverableFeedback(Base):
    __tablename__ = "deliverable_feedbacks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deliverable_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("deliverables.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    feedback: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=FeedbackStatus.PENDING.value)
    is_read_by_pm: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_read_by_client: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    deliverable: Mapped[Deliverable] = relationship(back_populates="feedbacks")
    user: Mapped[User] = relationship(User)


class DeliverableComment(Base):
    """Discussion on a deliverable; `parent_id` makes it a reply."""

    __tablename__ = "deliverable_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deliverable_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("deliverables.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("deliverable_comments.id", ondelete="CASCADE"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    deliverable: Mapped[Deliverable] = relationship(back_populates="comments")
    user: Mapped[User] = relationship(User)
    replies: Mapped[list["DeliverableComment"]] = relationship(
        back_populates="parent", cascade="all, delete-orphan", passive_deletes=True
    )
    parent: Mapped["DeliverableComment | None"] = relationship(back_populates="replies", remote_side=[id])
