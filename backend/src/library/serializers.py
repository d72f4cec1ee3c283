"""Shape ORM rows into library response schemas.

Relationships are only read when the caller loaded them explicitly; nothing
here triggers a lazy load.
"""

from collections import Counter
from collections.abc import Iterable, Sequence

from src.users.schemas import UserSummary

from .models import LibraryComment, LibraryReaction, LibraryReply, LibraryResource
from .schemas import CategorySummary, CommentResponse, ReplyResponse, ResourceListItem, ResourceSummary


def count_reactions(reactions: Iterable[LibraryReaction]) -> dict[str, int]:
    """Group reactions by type: {"LIKE": 3, "HELPFUL": 1}."""
    return dict(Counter(reaction.type for reaction in reactions))


def reply_out(reply: LibraryReply) -> ReplyResponse:
    return ReplyResponse(
        id=reply.id,
        comment_id=reply.comment_id,
        content=reply.content,
        user=UserSummary.model_validate(reply.user),
        created_at=reply.created_at,
        updated_at=reply.updated_at,
        reaction_counts=count_reactions(reply.reactions),
    )


def comment_out(
    comment: LibraryComment,
    replies: Sequence[LibraryReply] = (),
    reply_count: int | None = None,
) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        resource_id=comment.resource_id,
        content=comment.content,
        user=UserSummary.model_validate(comment.user),
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        reaction_counts=count_reactions(comment.reactions),
        replies=[reply_out(reply) for reply in replies],
        reply_count=len(replies) if reply_count is None else reply_count,
    )


def resource_list_item(
    resource: LibraryResource,
    *,
    comments: Sequence[CommentResponse] = (),
    comment_count: int = 0,
    favorite_count: int = 0,
) -> ResourceListItem:
    summary = ResourceSummary.model_validate(resource).model_dump()
    return ResourceListItem(
        **summary,
        author=UserSummary.model_validate(resource.author),
        category=CategorySummary.model_validate(resource.category),
        comments=list(comments),
        comment_count=comment_count,
        favorite_count=favorite_count,
    )
