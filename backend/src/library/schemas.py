"""Pydantic schemas for the library API."""

from datetime import datetime
from typing import Annotated

from pydantic import AnyHttpUrl, BeforeValidator, Field, StringConstraints

from src.schemas import APIModel, PaginationMeta, PartialUpdate
from src.users.schemas import UserSummary

from .models import AttachmentType, DifficultyLevel, ReactionType, ResourceStatus


HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


def _blank_to_none(value: object) -> object:
    return None if value == "" else value


TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
OptionalUrl = Annotated[AnyHttpUrl | None, BeforeValidator(_blank_to_none)]


# === Requests ===


class AttachmentInput(APIModel):
    name: str = Field(..., min_length=1)
    url: AnyHttpUrl
    type: AttachmentType
    description: str | None = None
    size: int = Field(0, ge=0)


class SectionInput(APIModel):
    title: str = Field(..., min_length=1)
    content: str
    order: int = Field(0, ge=0)


class ResourceCreate(APIModel):
    title: TrimmedStr
    description: str
    content: str
    key_points: str | None = None
    difficulty: DifficultyLevel = DifficultyLevel.BEGINNER
    duration: int | None = Field(None, ge=1)
    category_id: str
    thumbnail_url: OptionalUrl = None
    status: ResourceStatus = ResourceStatus.DRAFT
    published_at: Annotated[datetime | None, BeforeValidator(_blank_to_none)] = None
    attachments: list[AttachmentInput] = Field(default_factory=list, max_length=5)
    sections: list[SectionInput] = Field(default_factory=list)


class ResourceUpdate(PartialUpdate):
    not_null = (
        "title",
        "description",
        "content",
        "difficulty",
        "category_id",
        "status",
        "allow_comments",
        "attachments",
    )

    title: TrimmedStr | None = None
    description: str | None = None
    content: str | None = None
    key_points: str | None = None
    difficulty: DifficultyLevel | None = None
    duration: int | None = Field(None, ge=0)
    category_id: str | None = None
    thumbnail_url: OptionalUrl = None
    status: ResourceStatus | None = None
    allow_comments: bool | None = None
    attachments: list[AttachmentInput] | None = Field(None, max_length=5)


class ProgressUpdate(APIModel):
    """Percentage to add to the caller's cumulative progress."""

    percentage: float = Field(..., ge=0, le=100)


class ReactionInput(APIModel):
    type: ReactionType


class CategoryCreate(APIModel):
    name: TrimmedStr
    description: str | None = None
    color: str | None = Field(None, pattern=HEX_COLOR)
    is_active: bool = True


class CategoryUpdate(PartialUpdate):
    not_null = ("name", "is_active")

    name: TrimmedStr | None = None
    description: str | None = None
    color: str | None = Field(None, pattern=HEX_COLOR)
    is_active: bool | None = None


class CommentCreate(APIModel):
    """New comment on a resource, or a reply when `comment_id` is set."""

    content: str = Field(..., min_length=1)
    resource_id: str
    comment_id: str | None = None


class CommentUpdate(APIModel):
    content: str = Field(..., min_length=1)


class AttachmentCreate(AttachmentInput):
    resource_id: str
    size: int = Field(..., ge=0)


class AttachmentUpdate(PartialUpdate):
    not_null = ("name",)

    name: str | None = Field(None, min_length=1)
    description: str | None = None


class RelationCreate(APIModel):
    related_resource_id: str


# === Responses ===


class CategorySummary(APIModel):
    id: str
    name: str
    color: str | None = None


class CategoryResponse(CategorySummary):
    description: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    resource_count: int = 0


class CategoryStats(CategorySummary):
    description: str | None = None
    published_resources: int


class CategoryList(APIModel):
    categories: list[CategoryResponse]
    pagination: PaginationMeta


class SectionResponse(APIModel):
    id: str
    title: str
    content: str
    order: int


class AttachmentResponse(APIModel):
    id: str
    resource_id: str
    name: str
    url: str
    type: AttachmentType
    description: str | None = None
    size: int
    created_at: datetime
    updated_at: datetime


class AttachmentsSize(APIModel):
    total_size: int


class ReplyResponse(APIModel):
    id: str
    comment_id: str
    content: str
    user: UserSummary
    created_at: datetime
    updated_at: datetime
    reaction_counts: dict[str, int] = Field(default_factory=dict)


class CommentResponse(APIModel):
    id: str
    resource_id: str
    content: str
    user: UserSummary
    created_at: datetime
    updated_at: datetime
    reaction_counts: dict[str, int] = Field(default_factory=dict)
    replies: list[ReplyResponse] = Field(default_factory=list)
    reply_count: int = 0


class CommentList(APIModel):
    comments: list[CommentResponse]
    pagination: PaginationMeta


class ResourceSummary(APIModel):
    id: str
    title: str
    description: str
    difficulty: DifficultyLevel
    duration: int | None = None
    thumbnail_url: str | None = None
    status: ResourceStatus
    published_at: datetime | None = None
    views: int
    category_id: str
    author_id: int
    created_at: datetime
    updated_at: datetime


class ResourceListItem(ResourceSummary):
    author: UserSummary
    category: CategorySummary
    comment_count: int = 0
    favorite_count: int = 0
    comments: list[CommentResponse] = Field(default_factory=list)


class ResourceList(APIModel):
    resources: list[ResourceListItem]
    pagination: PaginationMeta


class ProgressSnapshot(APIModel):
    id: str
    percentage: float
    completed: bool
    created_at: datetime
    updated_at: datetime


class ProgressResponse(ProgressSnapshot):
    resource_id: str
    completed_at: datetime | None = None
    last_accessed: datetime


class ProgressUpdateResult(APIModel):
    progress: ProgressSnapshot


class ProgressWithResource(ProgressResponse):
    resource: ResourceSummary


class ProgressList(APIModel):
    progress: list[ProgressWithResource]
    pagination: PaginationMeta


class CertificateResponse(APIModel):
    id: str
    resource_id: str
    title: str
    issued_at: datetime


class CertificateWithResource(CertificateResponse):
    resource: ResourceSummary


class CertificateList(APIModel):
    certificates: list[CertificateWithResource]
    pagination: PaginationMeta


class PinResponse(APIModel):
    id: str
    resource_id: str
    created_at: datetime
    resource: ResourceSummary


class PinList(APIModel):
    pins: list[PinResponse]
    pagination: PaginationMeta


class ResourceDetail(ResourceListItem):
    content: str | None = None
    key_points: str | None = None
    allow_comments: bool
    sections: list[SectionResponse] = Field(default_factory=list)
    attachments: list[AttachmentResponse] = Field(default_factory=list)
    related_resources: list[ResourceSummary] = Field(default_factory=list)
    pin_count: int = 0
    user_progress: ProgressResponse | None = None
    is_favorited: bool = False
    is_pinned: bool = False
    certificate: CertificateResponse | None = None


class FavoriteToggle(APIModel):
    is_favorited: bool


class PinToggle(APIModel):
    is_pinned: bool


class ReactionToggle(APIModel):
    is_added: bool


class ReactionCounts(APIModel):
    counts: dict[str, int]


class RelationResponse(APIModel):
    id: str
    resource_id: str
    related_resource_id: str
    created_at: datetime


class RelationCheck(APIModel):
    is_related: bool
