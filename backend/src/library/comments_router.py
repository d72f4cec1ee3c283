from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.auth import CurrentAuth
from src.database.session import DbSession
from src.middleware.security import api_route_limit
from src.schemas import ApiResponse

from .schemas import (
    CommentCreate,
    CommentList,
    CommentResponse,
    CommentUpdate,
    ReactionInput,
    ReactionToggle,
    ReplyResponse,
)
from .services import CommentService, EngagementService


router = APIRouter(
    prefix="/api/v1/library-comments", tags=["library-comments"], dependencies=[Depends(api_route_limit)]
)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_comment(data: CommentCreate, auth: CurrentAuth) -> ApiResponse[CommentResponse | ReplyResponse]:
    """Comment on a resource, or reply to a comment when `commentId` is sent."""
    created = await CommentService(auth.session).create(auth.user, data)
    message = "Reply added successfully" if data.comment_id else "Comment added successfully"
    return ApiResponse(data=created, message=message)


@router.get("/resource/{resource_id}")
async def list_resource_comments(
    resource_id: str,
    session: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> ApiResponse[CommentList]:
    comments = await CommentService(session).list_for_resource(resource_id, page=page, limit=limit)
    return ApiResponse(data=comments, message="Comments retrieved successfully")


@router.put("/{comment_id}")
async def update_comment(comment_id: str, data: CommentUpdate, auth: CurrentAuth) -> ApiResponse[CommentResponse]:
    comment = await CommentService(auth.session).update(auth.user, comment_id, data.content)
    return ApiResponse(data=comment, message="Comment updated successfully")


@router.delete("/{comment_id}")
async def delete_comment(comment_id: str, auth: CurrentAuth) -> ApiResponse[None]:
    await CommentService(auth.session).delete(auth.user, comment_id)
    return ApiResponse(data=None, message="Comment deleted successfully")


@router.post("/{comment_id}/reactions")
async def toggle_comment_reaction(
    comment_id: str, data: ReactionInput, auth: CurrentAuth
) -> ApiResponse[ReactionToggle]:
    is_added = await EngagementService(auth.session).toggle_reaction(auth.user, data.type, comment_id=comment_id)
    message = "Reaction added successfully" if is_added else "Reaction removed successfully"
    return ApiResponse(data=ReactionToggle(is_added=is_added), message=message)
