"""Comments and replies on library resources."""

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.config import AuthUser
from src.database.pagination import Paginator
from src.exceptions import BadRequestError, ResourceNotFoundError

from ..models import LibraryComment, LibraryReply, LibraryResource
from ..schemas import CommentCreate, CommentList, CommentResponse, ReplyResponse
from ..serializers import comment_out, reply_out
from .queries import comment_loaders, count_by, latest_per_parent, reply_loaders


logger = logging.getLogger(__name__)

# Replies embedded with each comment in listings
LATEST_REPLIES = 2


async def present_comments(
    session: AsyncSession, comments: Sequence[LibraryComment], reply_limit: int = LATEST_REPLIES
) -> list[CommentResponse]:
    """Attach the newest replies and the total reply count to each comment."""
    ids = [comment.id for comment in comments]
    replies = await latest_per_parent(
        session, LibraryReply, LibraryReply.comment_id, ids, reply_limit, *reply_loaders()
    )
    reply_counts = await count_by(session, LibraryReply.comment_id, ids)
    return [
        comment_out(comment, replies.get(comment.id, []), reply_counts.get(comment.id, 0)) for comment in comments
    ]


class CommentService:
    """Service for resource comments and their replies."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, user: AuthUser, data: CommentCreate) -> CommentResponse | ReplyResponse:
        """Create a comment, or a reply when `data.comment_id` names a parent comment."""
        if data.comment_id:
            parent = await self.session.get(LibraryComment, data.comment_id)
            if parent is None:
                raise ResourceNotFoundError("Comment", data.comment_id, message="Parent comment not found")
            await self._require_open(parent.resource_id)
            reply = LibraryReply(comment_id=parent.id, user_id=user.id, content=data.content)
            self.session.add(reply)
            await self.session.commit()
            logger.info("User %s replied to comment %s", user.id, parent.id)
            return reply_out(await self._load_reply(reply.id))

        resource = await self._require_open(data.resource_id)

        comment = LibraryComment(resource_id=resource.id, user_id=user.id, content=data.content)
        self.session.add(comment)
        await self.session.commit()
        logger.info("User %s commented on resource %s", user.id, resource.id)
        return comment_out(await self._load_comment(comment.id))

    async def list_for_resource(self, resource_id: str, page: int = 1, limit: int = 10) -> CommentList:
        """Newest comments first, each with its latest replies."""
        if await self.session.get(LibraryResource, resource_id) is None:
            raise ResourceNotFoundError("Resource", resource_id, message="Resource not found")

        paginator = Paginator(page, limit)
        query = (
            select(LibraryComment)
            .where(LibraryComment.resource_id == resource_id)
            .order_by(LibraryComment.created_at.desc(), LibraryComment.id.desc())
            .options(*comment_loaders())
        )
        comments, total = await paginator.paginate(self.session, query)
        return CommentList(
            comments=await present_comments(self.session, comments),
            pagination=paginator.meta(total),
        )

    async def update(self, user: AuthUser, comment_id: str, content: str) -> CommentResponse:
        comment = await self._owned_comment(user, comment_id, "You can only edit your own comments")
        comment.content = content
        await self.session.commit()
        return (await present_comments(self.session, [await self._load_comment(comment.id)]))[0]

    async def delete(self, user: AuthUser, comment_id: str) -> None:
        comment = await self._owned_comment(user, comment_id, "You can only delete your own comments")
        await self.session.delete(comment)
        await self.session.commit()
        logger.info("User %s deleted comment %s", user.id, comment_id)

    async def _require_open(self, resource_id: str) -> LibraryResource:
        """Resource that still accepts comments and replies."""
        resource = await self.session.get(LibraryResource, resource_id)
        if resource is None:
            raise ResourceNotFoundError("Resource", resource_id, message="Resource not found")
        if not resource.allow_comments:
            msg = "Comments are disabled for this resource"
            raise BadRequestError(msg)
        return resource

    async def _owned_comment(self, user: AuthUser, comment_id: str, denied: str) -> LibraryComment:
        comment = await self.session.get(LibraryComment, comment_id)
        if comment is None:
            raise ResourceNotFoundError("Comment", comment_id, message="Comment not found")
        if comment.user_id != user.id:
            raise BadRequestError(denied)
        return comment

    async def _load_comment(self, comment_id: str) -> LibraryComment:
        stmt = (
            select(LibraryComment)
            .where(LibraryComment.id == comment_id)
            .options(*comment_loaders())
            .execution_options(populate_existing=True)
        )
        return (await self.session.execute(stmt)).scalar_one()

    async def _load_reply(self, reply_id: str) -> LibraryReply:
        stmt = (
            select(LibraryReply)
            .where(LibraryReply.id == reply_id)
            .options(*reply_loaders())
            .execution_options(populate_existing=True)
        )
        return (await self.session.execute(stmt)).scalar_one()
