"""Cumulative resource progress and completion certificates."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.auth.config import AuthUser
from src.database.base import utcnow
from src.database.pagination import Paginator
from src.exceptions import ResourceNotFoundError

from ..models import LibraryCertificate, LibraryProgress, LibraryResource, ResourceStatus
from ..schemas import ProgressList, ProgressSnapshot, ProgressWithResource
from .queries import search_filter


logger = logging.getLogger(__name__)

COMPLETE = 100.0


def certificate_title(resource_title: str) -> str:
    return f"Certificate of Completion - {resource_title}"


class ProgressService:
    """Service for tracking how far each user got through a resource."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def update_progress(self, user: AuthUser, resource_id: str, percentage: float) -> ProgressSnapshot:
        """Add `percentage` to the caller's progress, capped at 100.

        Reaching 100 marks the progress completed and issues the certificate
        for the resource in the same transaction, once per user.
        """
        resource = await self.session.get(LibraryResource, resource_id)
        if resource is None:
            raise ResourceNotFoundError("Resource", resource_id, message="Resource not found")
        title = resource.title

        try:
            progress = await self._apply(user.id, resource_id, title, percentage)
        except IntegrityError:
            # A concurrent request created the row first; redo on top of it
            await self.session.rollback()
            logger.info("Progress row for user %s on %s raced, retrying", user.id, resource_id)
            progress = await self._apply(user.id, resource_id, title, percentage)

        return ProgressSnapshot.model_validate(progress)

    async def _apply(self, user_id: int, resource_id: str, title: str, delta: float) -> LibraryProgress:
        now = utcnow()
        stmt = (
            select(LibraryProgress)
            .where(LibraryProgress.user_id == user_id, LibraryProgress.resource_id == resource_id)
            .with_for_update()
        )
        progress = (await self.session.execute(stmt)).scalar_one_or_none()

        if progress is None:
            progress = LibraryProgress(user_id=user_id, resource_id=resource_id, percentage=min(COMPLETE, delta))
            self.session.add(progress)
        else:
            progress.percentage = min(COMPLETE, progress.percentage + delta)

        progress.completed = progress.percentage >= COMPLETE
        progress.last_accessed = now

        if progress.completed:
            if progress.completed_at is None:
                progress.completed_at = now
            issued = await self.session.scalar(
                select(LibraryCertificate.id).where(
                    LibraryCertificate.user_id == user_id, LibraryCertificate.resource_id == resource_id
                )
            )
            if issued is None:
                self.session.add(
                    LibraryCertificate(
                        user_id=user_id,
                        resource_id=resource_id,
                        title=certificate_title(title),
                        issued_at=now,
                    )
                )
                logger.info("Issued certificate to user %s for resource %s", user_id, resource_id)

        await self.session.commit()
        return progress

    async def get_user_progress(
        self,
        user: AuthUser,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        status: ResourceStatus | None = None,
    ) -> ProgressList:
        """Caller's progress rows, most recently accessed first."""
        query = (
            select(LibraryProgress)
            .join(LibraryProgress.resource)
            .where(LibraryProgress.user_id == user.id)
            .options(selectinload(LibraryProgress.resource))
            .order_by(LibraryProgress.last_accessed.desc())
        )
        if status is not None:
            query = query.where(LibraryResource.status == status.value)
        matches = search_filter(search, LibraryResource.title, LibraryResource.description)
        if matches is not None:
            query = query.where(matches)

        paginator = Paginator(page, limit)
        rows, total = await paginator.paginate(self.session, query)
        return ProgressList(
            progress=[ProgressWithResource.model_validate(row) for row in rows],
            pagination=paginator.meta(total),
        )
