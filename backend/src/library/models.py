"""Database models for the content library."""

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, utcnow
from src.users.models import User


def _uuid() -> str:
    return str(uuid4())


class ResourceStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class DifficultyLevel(str, enum.Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class ReactionType(str, enum.Enum):
    LIKE = "LIKE"
    LOVE = "LOVE"
    HELPFUL = "HELPFUL"
    INSIGHTFUL = "INSIGHTFUL"
    CELEBRATE = "CELEBRATE"


class AttachmentType(str, enum.Enum):
    PDF = "PDF"
    VIDEO = "VIDEO"
    IMAGE = "IMAGE"
    DOCUMENT = "DOCUMENT"
    LINK = "LINK"
    AUDIO = "AUDIO"
    OTHER = "OTHER"


class LibraryCategory(Base):
    """Category grouping library resources."""

    __tablename__ = "library_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)  # hex color
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    resources: Mapped[list["LibraryResource"]] = relationship(back_populates="category", passive_deletes=True)


class LibraryResource(Base):
    """A library content item (article, tutorial, course unit)."""

    __tablename__ = "library_resources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    key_points: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[str] = mapped_column(String(20), nullable=False, default=DifficultyLevel.BEGINNER.value)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ResourceStatus.DRAFT.value, index=True
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    allow_comments: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    author: Mapped[User] = relationship(User)
    category: Mapped[LibraryCategory] = relationship(back_populates="resources")
    sections: Mapped[list["LibrarySection"]] = relationship(
        order_by="LibrarySection.order", cascade="all, delete-orphan", passive_deletes=True
    )
    attachments: Mapped[list["LibraryAttachment"]] = relationship(
        back_populates="resource", cascade="all, delete-orphan", passive_deletes=True
    )
    comments: Mapped[list["LibraryComment"]] = relationship(
        back_populates="resource", cascade="all, delete-orphan", passive_deletes=True
    )


class LibrarySection(Base):
    """Ordered content block of a resource."""

    __tablename__ = "library_sections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class LibraryAttachment(Base):
    __tablename__ = "library_attachments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(2000), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # bytes
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    resource: Mapped[LibraryResource] = relationship(back_populates="attachments")


class LibraryComment(Base):
    __tablename__ = "library_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    resource: Mapped[LibraryResource] = relationship(back_populates="comments")
    user: Mapped[User] = relationship(User)
    replies: Mapped[list["LibraryReply"]] = relationship(
        back_populates="comment", cascade="all, delete-orphan", passive_deletes=True
    )
    reactions: Mapped[list["LibraryReaction"]] = relationship(
        back_populates="comment", cascade="all, delete-orphan", passive_deletes=True
    )


class LibraryReply(Base):
    __tablename__ = "library_replies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    comment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_comments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    comment: Mapped[LibraryComment] = relationship(back_populates="replies")
    user: Mapped[User] = relationship(User)
    reactions: Mapped[list["LibraryReaction"]] = relationship(
        back_populates="reply", cascade="all, delete-orphan", passive_deletes=True
    )


class LibraryReaction(Base):
    """A user's reaction on exactly one comment or reply."""

    __tablename__ = "library_reactions"
    __table_args__ = (
        UniqueConstraint("user_id", "comment_id", "type", name="uq_library_reaction_comment"),
        UniqueConstraint("user_id", "reply_id", "type", name="uq_library_reaction_reply"),
        CheckConstraint(
            "(comment_id IS NULL AND reply_id IS NOT NULL) OR (comment_id IS NOT NULL AND reply_id IS NULL)",
            name="ck_library_reaction_single_target",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    comment_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("library_comments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    reply_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("library_replies.id", ondelete="CASCADE"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    comment: Mapped[LibraryComment | None] = relationship(back_populates="reactions")
    reply: Mapped[LibraryReply | None] = relationship(back_populates="reactions")


class LibraryFavorite(Base):
    __tablename__ = "library_favorites"
    __table_args__ = (UniqueConstraint("user_id", "resource_id", name="uq_library_favorite"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class LibraryPin(Base):
    __tablename__ = "library_pins"
    __table_args__ = (UniqueConstraint("user_id", "resource_id", name="uq_library_pin"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    resource: Mapped[LibraryResource] = relationship(LibraryResource)


class LibraryProgress(Base):
    """Cumulative completion of a resource by one user."""

    __tablename__ = "library_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "resource_id", name="uq_library_progress"),
        CheckConstraint("percentage >= 0 AND percentage <= 100", name="ck_library_progress_percentage"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_accessed: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    resource: Mapped[LibraryResource] = relationship(LibraryResource)


class LibraryCertificate(Base):
    """Proof of completion, issued at most once per user and resource."""

    __tablename__ = "library_certificates"
    __table_args__ = (UniqueConstraint("user_id", "resource_id", name="uq_library_certificate"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(400), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    resource: Mapped[LibraryResource] = relationship(LibraryResource)


class LibraryResourceRelation(Base):
    """Directed "see also" link; queries treat it as undirected."""

    __tablename__ = "library_resource_relations"
    __table_args__ = (
        UniqueConstraint("resource_id", "related_resource_id", name="uq_library_resource_relation"),
        CheckConstraint("resource_id <> related_resource_id", name="ck_library_relation_not_self"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    related_resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    resource: Mapped[LibraryResource] = relationship(LibraryResource, foreign_keys=[resource_id])
    related_resource: Mapped[LibraryResource] = relationship(LibraryResource, foreign_keys=[related_resource_id])
