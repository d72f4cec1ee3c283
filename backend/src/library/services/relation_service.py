"""Undirected "related resources" links between library resources."""

import logging

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import BadRequestError, ResourceNotFoundError

from ..models import LibraryResource, LibraryResourceRelation, ResourceStatus
from ..schemas import RelationResponse, ResourceSummary


logger = logging.getLogger(__name__)

SUGGESTION_LIMIT = 5


def either_direction(resource_id: str, other_id: str):
    """Match a relation stored as (a, b) or as (b, a)."""
    return or_(
        and_(
            LibraryResourceRelation.resource_id == resource_id,
            LibraryResourceRelation.related_resource_id == other_id,
        ),
        and_(
            LibraryResourceRelation.resource_id == other_id,
            LibraryResourceRelation.related_resource_id == resource_id,
        ),
    )


def touching(resource_id: str):
    return or_(
        LibraryResourceRelation.resource_id == resource_id,
        LibraryResourceRelation.related_resource_id == resource_id,
    )


async def related_resources(session: AsyncSession, resource_id: str) -> list[LibraryResource]:
    """Resources linked to `resource_id`, whichever side stored the link."""
    stmt = select(LibraryResourceRelation).where(touching(resource_id))
    relations = (await session.execute(stmt)).scalars().all()
    other_ids = [
        r.related_resource_id if r.resource_id == resource_id else r.resource_id for r in relations
    ]
    if not other_ids:
        return []
    result = await session.execute(
        select(LibraryResource).where(LibraryResource.id.in_(other_ids)).order_by(LibraryResource.title.asc())
    )
    return list(result.scalars().all())


class RelationService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, resource_id: str, related_resource_id: str) -> RelationResponse:
        found = await self.session.scalars(
            select(LibraryResource.id).where(LibraryResource.id.in_([resource_id, related_resource_id]))
        )
        if {resource_id, related_resource_id} - set(found.all()):
            raise ResourceNotFoundError("Resource", message="One or both resources not found")
        if resource_id == related_resource_id:
            msg = "Cannot relate a resource to itself"
            raise BadRequestError(msg)
        if await self._find(resource_id, related_resource_id) is not None:
            msg = "This relation already exists"
            raise BadRequestError(msg)

        relation = LibraryResourceRelation(resource_id=resource_id, related_resource_id=related_resource_id)
        self.session.add(relation)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            msg = "This relation already exists"
            raise BadRequestError(msg) from e
        logger.info("Related resource %s to %s", resource_id, related_resource_id)
        return RelationResponse.model_validate(relation)

    async def list_related(self, resource_id: str) -> list[ResourceSummary]:
        await self._require_resource(resource_id)
        return [ResourceSummary.model_validate(r) for r in await related_resources(self.session, resource_id)]

    async def delete(self, resource_id: str, related_resource_id: str) -> None:
        relation = await self._find(resource_id, related_resource_id)
        if relation is None:
            raise ResourceNotFoundError("Relation", message="Relation not found")
        await self.session.delete(relation)
        await self.session.commit()

    async def is_related(self, resource_id: str, related_resource_id: str) -> bool:
        return await self._find(resource_id, related_resource_id) is not None

    async def suggestions(self, resource_id: str, limit: int = SUGGESTION_LIMIT) -> list[ResourceSummary]:
        """Newest published resources of the same category not yet related."""
        resource = await self._require_resource(resource_id)
        linked = {r.id for r in await related_resources(self.session, resource_id)}
        linked.add(resource_id)

        stmt = (
            select(LibraryResource)
            .where(
                LibraryResource.category_id == resource.category_id,
                LibraryResource.status == ResourceStatus.PUBLISHED.value,
                LibraryResource.id.not_in(linked),
            )
            .order_by(LibraryResource.published_at.desc(), LibraryResource.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [ResourceSummary.model_validate(r) for r in result.scalars().all()]

    async def _find(self, resource_id: str, related_resource_id: str) -> LibraryResourceRelation | None:
        return await self.session.scalar(
            select(LibraryResourceRelation).where(either_direction(resource_id, related_resource_id)).limit(1)
        )

    async def _require_resource(self, resource_id: str) -> LibraryResource:
        resource = await self.session.get(LibraryResource, resource_id)
        if resource is None:
            raise ResourceNotFoundError("Resource", resource_id, message="Resource not found")
        return resource
