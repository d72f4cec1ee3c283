"""Files and links attached to library resources."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import ResourceNotFoundError

from ..models import LibraryAttachment, LibraryResource
from ..schemas import AttachmentCreate, AttachmentResponse, AttachmentUpdate


logger = logging.getLogger(__name__)


class AttachmentService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, data: AttachmentCreate) -> AttachmentResponse:
        await self._require_resource(data.resource_id)
        attachment = LibraryAttachment(
            resource_id=data.resource_id,
            name=data.name,
            url=str(data.url),
            type=data.type.value,
            description=data.description,
            size=data.size,
        )
        self.session.add(attachment)
        await self.session.commit()
        logger.info("Attached %s to resource %s", attachment.name, data.resource_id)
        return AttachmentResponse.model_validate(attachment)

    async def list_for_resource(self, resource_id: str) -> list[AttachmentResponse]:
        """Attachments of a resource, newest first."""
        await self._require_resource(resource_id)
        result = await self.session.execute(
            select(LibraryAttachment)
            .where(LibraryAttachment.resource_id == resource_id)
            .order_by(LibraryAttachment.created_at.desc())
        )
        return [AttachmentResponse.model_validate(row) for row in result.scalars().all()]

    async def total_size(self, resource_id: str) -> int:
        """Sum of attachment sizes in bytes."""
        await self._require_resource(resource_id)
        total = await self.session.scalar(
            select(func.coalesce(func.sum(LibraryAttachment.size), 0)).where(
                LibraryAttachment.resource_id == resource_id
            )
        )
        return int(total or 0)

    async def get(self, attachment_id: str) -> AttachmentResponse:
        return AttachmentResponse.model_validate(await self._get_or_404(attachment_id))

    async def update(self, attachment_id: str, data: AttachmentUpdate) -> AttachmentResponse:
        attachment = await self._get_or_404(attachment_id)
        for field, value in data.changes().items():
            setattr(attachment, field, value)
        await self.session.commit()
        return AttachmentResponse.model_validate(attachment)

    async def delete(self, attachment_id: str) -> None:
        attachment = await self._get_or_404(attachment_id)
        await self.session.delete(attachment)
        await self.session.commit()

    async def _get_or_404(self, attachment_id: str) -> LibraryAttachment:
        attachment = await self.session.get(LibraryAttachment, attachment_id)
        if attachment is None:
            raise ResourceNotFoundError("Attachment", attachment_id, message="Attachment not found")
        return attachment

    async def _require_resource(self, resource_id: str) -> None:
        if await self.session.get(LibraryResource, resource_id) is None:
            raise ResourceNotFoundError("Resource", resource_id, message="Resource not found")
