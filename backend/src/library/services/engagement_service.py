"""Per-user engagement: favorites, pins, reactions and certificates."""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.auth.config import AuthUser
from src.database.pagination import Paginator
from src.exceptions import BadRequestError, ResourceNotFoundError

from ..models import (
    LibraryCertificate,
    LibraryComment,
    LibraryFavorite,
    LibraryPin,
    LibraryReaction,
    LibraryReply,
    LibraryResource,
    ReactionType,
)
from ..schemas import CertificateList, CertificateWithResource, PinList, PinResponse


logger = logging.getLogger(__name__)


def _reaction_target(comment_id: str | None, reply_id: str | None) -> Any:
    """Filter selecting the single comment or reply a reaction belongs to."""
    if not comment_id and not reply_id:
        msg = "Must provide either commentId or replyId"
        raise BadRequestError(msg)
    if comment_id and reply_id:
        msg = "Cannot react to both comment and reply"
        raise BadRequestError(msg)
    if comment_id:
        return LibraryReaction.comment_id == comment_id
    return LibraryReaction.reply_id == reply_id


class EngagementService:
    """Toggles and listings scoped to the calling user."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _require_resource(self, resource_id: str) -> None:
        if await self.session.get(LibraryResource, resource_id) is None:
            raise ResourceNotFoundError("Resource", resource_id, message="Resource not found")

    async def toggle_favorite(self, user: AuthUser, resource_id: str) -> bool:
        """Add or remove a favorite; returns True when the resource is now favorited."""
        await self._require_resource(resource_id)

        existing = await self.session.scalar(
            select(LibraryFavorite).where(
                LibraryFavorite.user_id == user.id, LibraryFavorite.resource_id == resource_id
            )
        )
        if existing is not None:
            await self.session.delete(existing)
            await self.session.commit()
            return False

        self.session.add(LibraryFavorite(user_id=user.id, resource_id=resource_id))
        await self.session.commit()
        return True

    async def toggle_pin(self, user: AuthUser, resource_id: str) -> bool:
        """Pin or unpin; returns True when the resource is now pinned."""
        await self._require_resource(resource_id)

        existing = await self.session.scalar(
            select(LibraryPin).where(LibraryPin.user_id == user.id, LibraryPin.resource_id == resource_id)
        )
        if existing is not None:
            await self.session.delete(existing)
            await self.session.commit()
            return False

        self.session.add(LibraryPin(user_id=user.id, resource_id=resource_id))
        await self.session.commit()
        return True

    async def toggle_reaction(
        self,
        user: AuthUser,
        reaction_type: ReactionType,
        *,
        comment_id: str | None = None,
        reply_id: str | None = None,
    ) -> bool:
        """Add or remove one reaction type on a comment or a reply."""
        target = _reaction_target(comment_id, reply_id)

        if comment_id and await self.session.get(LibraryComment, comment_id) is None:
            raise ResourceNotFoundError("Comment", comment_id, message="Comment not found")
        if reply_id and await self.session.get(LibraryReply, reply_id) is None:
            raise ResourceNotFoundError("Reply", reply_id, message="Reply not found")

        existing = await self.session.scalar(
            select(LibraryReaction).where(
                LibraryReaction.user_id == user.id,
                LibraryReaction.type == reaction_type.value,
                target,
            )
        )
        if existing is not None:
            await self.session.delete(existing)
            await self.session.commit()
            return False

        self.session.add(
            LibraryReaction(user_id=user.id, type=reaction_type.value, comment_id=comment_id, reply_id=reply_id)
        )
        await self.session.commit()
        logger.debug("User %s reacted %s", user.id, reaction_type.value)
        return True

    async def get_reaction_counts(
        self, *, comment_id: str | None = None, reply_id: str | None = None
    ) -> dict[str, int]:
        target = _reaction_target(comment_id, reply_id)
        result = await self.session.execute(
            select(LibraryReaction.type, func.count()).where(target).group_by(LibraryReaction.type)
        )
        return {reaction_type: count for reaction_type, count in result.all()}

    async def get_user_pins(self, user: AuthUser, page: int = 1, limit: int = 10) -> PinList:
        query = (
            select(LibraryPin)
            .where(LibraryPin.user_id == user.id)
            .options(selectinload(LibraryPin.resource))
            .order_by(LibraryPin.created_at.desc())
        )
        paginator = Paginator(page, limit)
        pins, total = await paginator.paginate(self.session, query)
        return PinList(pins=[PinResponse.model_validate(pin) for pin in pins], pagination=paginator.meta(total))

    async def get_user_certificates(self, user: AuthUser, page: int = 1, limit: int = 10) -> CertificateList:
        query = (
            select(LibraryCertificate)
            .where(LibraryCertificate.user_id == user.id)
            .options(selectinload(LibraryCertificate.resource))
            .order_by(LibraryCertificate.issued_at.desc())
        )
        paginator = Paginator(page, limit)
        certificates, total = await paginator.paginate(self.session, query)
        return CertificateList(
            certificates=[CertificateWithResource.model_validate(certificate) for certificate in certificates],
            pagination=paginator.meta(total),
        )
