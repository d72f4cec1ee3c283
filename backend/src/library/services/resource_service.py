"""Library resources: authoring, listings and the full detail view."""

import enum
import logging
from typing import Any

from sqlalchemy import Select, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.auth.config import AuthUser
from src.auth.exceptions import AuthorizationError
from src.database.base import utcnow
from src.database.errors import FOREIGN_KEY, UNIQUE, integrity_kind
from src.database.pagination import Paginator
from src.exceptions import BadRequestError, ResourceNotFoundError

from ..models import (
    DifficultyLevel,
    LibraryAttachment,
    LibraryCertificate,
    LibraryComment,
    LibraryFavorite,
    LibraryPin,
    LibraryProgress,
    LibraryReply,
    LibraryResource,
    LibrarySection,
    ResourceStatus,
)
from ..schemas import (
    AttachmentInput,
    AttachmentResponse,
    CertificateResponse,
    CommentResponse,
    ProgressResponse,
    ResourceCreate,
    ResourceDetail,
    ResourceList,
    ResourceSummary,
    ResourceUpdate,
    SectionResponse,
)
from ..serializers import comment_out, resource_list_item
from .comment_service import present_comments
from .queries import comment_loaders, count_by, latest_per_parent, reply_loaders, search_filter
from .relation_service import related_resources


logger = logging.getLogger(__name__)

MANAGE_LIBRARY = "manageLibrary"
# Comments previewed on each card of the published listing
PREVIEW_COMMENTS = 3


def _attachment_rows(resource_id: str, attachments: list[AttachmentInput]) -> list[LibraryAttachment]:
    return [
        LibraryAttachment(
            resource_id=resource_id,
            name=item.name,
            url=str(item.url),
            type=item.type.value,
            description=item.description,
            size=item.size,
        )
        for item in attachments
    ]


def _search_columns() -> tuple[Any, ...]:
    return (
        LibraryResource.title,
        LibraryResource.description,
        LibraryResource.content,
        LibraryResource.key_points,
    )


class ResourceService:
    """Service for library resources and their nested content."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, author: AuthUser, data: ResourceCreate) -> ResourceSummary:
        """Create the resource with its sections and attachments atomically."""
        published_at = data.published_at
        if data.status == ResourceStatus.PUBLISHED and published_at is None:
            published_at = utcnow()

        resource = LibraryResource(
            title=data.title,
            description=data.description,
            content=data.content,
            key_points=data.key_points,
            difficulty=data.difficulty.value,
            duration=data.duration,
            category_id=data.category_id,
            author_id=author.id,
            thumbnail_url=str(data.thumbnail_url) if data.thumbnail_url else None,
            status=data.status.value,
            published_at=published_at,
        )
        self.session.add(resource)
        try:
            await self.session.flush()
            self.session.add_all(_attachment_rows(resource.id, data.attachments))
            self.session.add_all(
                LibrarySection(resource_id=resource.id, title=s.title, content=s.content, order=s.order)
                for s in data.sections
            )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise self._integrity_to_bad_request(e) from e

        logger.info("User %s created library resource %s", author.id, resource.id)
        return ResourceSummary.model_validate(resource)

    async def list_published(
        self,
        page: int = 1,
        limit: int = 10,
        category_id: str | None = None,
        difficulty: DifficultyLevel | None = None,
        search: str | None = None,
    ) -> ResourceList:
        """Published resources, newest first, each with a preview of its discussion."""
        query = (
            self._listing_query()
            .where(
                LibraryResource.status == ResourceStatus.PUBLISHED.value,
                LibraryResource.published_at.is_not(None),
            )
            .order_by(LibraryResource.published_at.desc())
        )
        query = self._apply_filters(query, category_id=category_id, difficulty=difficulty, search=search)

        paginator = Paginator(page, limit)
        resources, total = await paginator.paginate(self.session, query)
        ids = [r.id for r in resources]

        previews = await latest_per_parent(
            self.session, LibraryComment, LibraryComment.resource_id, ids, PREVIEW_COMMENTS, *comment_loaders()
        )
        comment_counts = await count_by(self.session, LibraryComment.resource_id, ids)
        favorite_counts = await count_by(self.session, LibraryFavorite.resource_id, ids)

        presented = await present_comments(self.session, [c for rows in previews.values() for c in rows])
        by_resource: dict[str, list[CommentResponse]] = {}
        for comment in presented:
            by_resource.setdefault(comment.resource_id, []).append(comment)

        items = [
            resource_list_item(
                resource,
                comments=by_resource.get(resource.id, []),
                comment_count=comment_counts.get(resource.id, 0),
                favorite_count=favorite_counts.get(resource.id, 0),
            )
            for resource in resources
        ]
        return ResourceList(resources=items, pagination=paginator.meta(total))

    async def list_all(
        self,
        page: int = 1,
        limit: int = 10,
        category_id: str | None = None,
        difficulty: DifficultyLevel | None = None,
        status: ResourceStatus | None = None,
        search: str | None = None,
    ) -> ResourceList:
        """Every resource regardless of status, for library managers."""
        query = self._listing_query().order_by(
            LibraryResource.status.asc(),
            LibraryResource.published_at.desc(),
            LibraryResource.created_at.desc(),
        )
        query = self._apply_filters(query, category_id=category_id, difficulty=difficulty, search=search)
        if status is not None:
            query = query.where(LibraryResource.status == status.value)

        paginator = Paginator(page, limit)
        resources, total = await paginator.paginate(self.session, query)
        ids = [r.id for r in resources]
        comment_counts = await count_by(self.session, LibraryComment.resource_id, ids)
        favorite_counts = await count_by(self.session, LibraryFavorite.resource_id, ids)
        return ResourceList(
            resources=[
                resource_list_item(
                    r,
                    comment_count=comment_counts.get(r.id, 0),
                    favorite_count=favorite_counts.get(r.id, 0),
                )
                for r in resources
            ],
            pagination=paginator.meta(total),
        )

    async def get_by_id(
        self,
        resource_id: str,
        user: AuthUser | None = None,
        search: str | None = None,
        include_content: bool = True,
    ) -> ResourceDetail:
        """Full resource view; counts a view once access has been granted.

        Resources that are not published are only visible to callers with
        the library management right.
        """
        stmt = (
            select(LibraryResource)
            .where(LibraryResource.id == resource_id)
            .options(
                selectinload(LibraryResource.author),
                selectinload(LibraryResource.category),
                selectinload(LibraryResource.sections),
                selectinload(LibraryResource.attachments),
            )
        )
        matches = search_filter(search, LibraryResource.title, LibraryResource.description, LibraryResource.content)
        if matches is not None:
            stmt = stmt.where(matches)
        resource = (await self.session.execute(stmt)).scalar_one_or_none()
        if resource is None:
            raise ResourceNotFoundError("Resource", resource_id, message="Resource not found")

        if resource.status != ResourceStatus.PUBLISHED.value and not (user and user.has_right(MANAGE_LIBRARY)):
            raise AuthorizationError("Access denied")

        comments = await self._all_comments(resource_id)
        related = await related_resources(self.session, resource_id)
        ids = [resource_id]
        comment_count = (await count_by(self.session, LibraryComment.resource_id, ids)).get(resource_id, 0)
        favorite_count = (await count_by(self.session, LibraryFavorite.resource_id, ids)).get(resource_id, 0)
        pin_count = (await count_by(self.session, LibraryPin.resource_id, ids)).get(resource_id, 0)

        personal = await self._personal_state(user, resource_id) if user else {}

        await self.session.execute(
            update(LibraryResource)
            .where(LibraryResource.id == resource_id)
            .values(views=LibraryResource.views + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()

        base = resource_list_item(
            resource, comments=comments, comment_count=comment_count, favorite_count=favorite_count
        ).model_dump()
        base["views"] = resource.views + 1
        return ResourceDetail(
            **base,
            content=resource.content if include_content else None,
            key_points=resource.key_points,
            allow_comments=resource.allow_comments,
            sections=[SectionResponse.model_validate(s) for s in resource.sections],
            attachments=[
                AttachmentResponse.model_validate(a)
                for a in sorted(resource.attachments, key=lambda a: a.created_at, reverse=True)
            ],
            related_resources=[ResourceSummary.model_validate(r) for r in related],
            pin_count=pin_count,
            **personal,
        )

    async def update(self, resource_id: str, data: ResourceUpdate) -> ResourceSummary:
        """Apply the sent fields; a sent attachment list replaces the existing one."""
        resource = await self.session.get(LibraryResource, resource_id)
        if resource is None:
            raise ResourceNotFoundError("Resource", resource_id, message="Resource not found")

        changes = data.changes()
        attachments = changes.pop("attachments", None)
        for field, value in changes.items():
            if isinstance(value, enum.Enum):
                value = value.value
            elif field == "thumbnail_url" and value is not None:
                value = str(value)
            setattr(resource, field, value)
        if data.status == ResourceStatus.PUBLISHED:
            resource.published_at = utcnow()

        try:
            if attachments is not None:
                await self.session.execute(
                    delete(LibraryAttachment).where(LibraryAttachment.resource_id == resource_id)
                )
                self.session.add_all(_attachment_rows(resource_id, data.attachments or []))
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise self._integrity_to_bad_request(e) from e

        logger.info("Updated library resource %s", resource_id)
        return ResourceSummary.model_validate(resource)

    async def delete(self, resource_id: str) -> None:
        resource = await self.session.get(LibraryResource, resource_id)
        if resource is None:
            raise ResourceNotFoundError("Resource", resource_id, message="Resource not found")
        await self.session.delete(resource)
        await self.session.commit()
        logger.info("Deleted library resource %s", resource_id)

    def _listing_query(self) -> Select[tuple[LibraryResource]]:
        return select(LibraryResource).options(
            selectinload(LibraryResource.author), selectinload(LibraryResource.category)
        )

    @staticmethod
    def _apply_filters(
        query: Select[tuple[LibraryResource]],
        *,
        category_id: str | None,
        difficulty: DifficultyLevel | None,
        search: str | None,
    ) -> Select[tuple[LibraryResource]]:
        if category_id:
            query = query.where(LibraryResource.category_id == category_id)
        if difficulty is not None:
            query = query.where(LibraryResource.difficulty == difficulty.value)
        matches = search_filter(search, *_search_columns())
        if matches is not None:
            query = query.where(matches)
        return query

    async def _all_comments(self, resource_id: str) -> list[CommentResponse]:
        """Every comment, newest first, with all of its replies."""
        stmt = (
            select(LibraryComment)
            .where(LibraryComment.resource_id == resource_id)
            .order_by(LibraryComment.created_at.desc(), LibraryComment.id.desc())
            .options(*comment_loaders(), selectinload(LibraryComment.replies).options(*reply_loaders()))
        )
        comments = (await self.session.execute(stmt)).scalars().all()
        out = []
        for comment in comments:
            replies: list[LibraryReply] = sorted(comment.replies, key=lambda r: r.created_at, reverse=True)
            out.append(comment_out(comment, replies))
        return out

    async def _personal_state(self, user: AuthUser, resource_id: str) -> dict[str, Any]:
        def mine(model: Any) -> Select[Any]:
            return select(model).where(model.user_id == user.id, model.resource_id == resource_id)

        progress = await self.session.scalar(mine(LibraryProgress))
        certificate = await self.session.scalar(mine(LibraryCertificate))
        favorite = await self.session.scalar(mine(LibraryFavorite))
        pin = await self.session.scalar(mine(LibraryPin))
        return {
            "user_progress": ProgressResponse.model_validate(progress) if progress else None,
            "certificate": CertificateResponse.model_validate(certificate) if certificate else None,
            "is_favorited": favorite is not None,
            "is_pinned": pin is not None,
        }

    @staticmethod
    def _integrity_to_bad_request(exc: IntegrityError) -> BadRequestError:
        kind = integrity_kind(exc)
        if kind == FOREIGN_KEY:
            return BadRequestError("Invalid category or author ID, or other foreign key constraint failed.")
        if kind == UNIQUE:
            return BadRequestError("Resource with this title already exists or unique constraint failed.")
        return BadRequestError("Resource data violates a database constraint.")
