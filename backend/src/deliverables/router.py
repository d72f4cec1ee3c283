from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from src.auth import AuthContext, auth_with_right
from src.middleware.security import api_route_limit

from .schemas import (
    DeliverableCommentCreate,
    DeliverableCommentResponse,
    DeliverableCreate,
    DeliverableDetail,
    DeliverableResponse,
    DeliverableUpdate,
    FeedbackCreate,
    FeedbackReadResult,
    FeedbackReadUpdate,
    FeedbackResponse,
    MetricsUpdate,
    RevisionRequest,
)
from .service import DeliverableService


router = APIRouter(
    prefix="/api/v1/project-deliverables", tags=["deliverables"], dependencies=[Depends(api_route_limit)]
)

DeliverablesAuth = Annotated[AuthContext, Depends(auth_with_right("deliverables"))]


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_deliverable(data: DeliverableCreate, auth: DeliverablesAuth) -> DeliverableResponse:
    return await DeliverableService(auth.session).create(data)


@router.get("/{deliverable_id}")
async def get_deliverable(deliverable_id: int, auth: DeliverablesAuth) -> DeliverableDetail:
    return await DeliverableService(auth.session).get(deliverable_id)


@router.patch("/{deliverable_id}")
async def update_deliverable(
    deliverable_id: int, data: DeliverableUpdate, auth: DeliverablesAuth
) -> DeliverableResponse:
    return await DeliverableService(auth.session).update(deliverable_id, data)


@router.delete("/{deliverable_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deliverable(deliverable_id: int, auth: DeliverablesAuth) -> Response:
    await DeliverableService(auth.session).delete(deliverable_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{deliverable_id}/review")
async def submit_for_review(deliverable_id: int, auth: DeliverablesAuth) -> DeliverableResponse:
    return await DeliverableService(auth.session).submit_for_review(deliverable_id)


@router.post("/{deliverable_id}/approve")
async def approve_deliverable(deliverable_id: int, auth: DeliverablesAuth) -> DeliverableResponse:
    return await DeliverableService(auth.session).approve(deliverable_id)


@router.post("/{deliverable_id}/revision")
async def request_revision(
    deliverable_id: int, data: RevisionRequest, auth: DeliverablesAuth
) -> DeliverableResponse:
    return await DeliverableService(auth.session).request_revision(deliverable_id, data.revision_notes)


@router.post("/{deliverable_id}/feedback", status_code=status.HTTP_201_CREATED)
async def add_feedback(deliverable_id: int, data: FeedbackCreate, auth: DeliverablesAuth) -> FeedbackResponse:
    return await DeliverableService(auth.session).add_feedback(deliverable_id, data)


@router.post("/{deliverable_id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(
    deliverable_id: int, data: DeliverableCommentCreate, auth: DeliverablesAuth
) -> DeliverableCommentResponse:
    return await DeliverableService(auth.session).add_comment(deliverable_id, data)


@router.patch("/{deliverable_id}/metrics")
async def update_metrics(deliverable_id: int, data: MetricsUpdate, auth: DeliverablesAuth) -> DeliverableResponse:
    return await DeliverableService(auth.session).update_metrics(deliverable_id, data.metrics)


@router.patch("/{deliverable_id}/feedback/read")
async def mark_feedback_read(
    deliverable_id: int, data: FeedbackReadUpdate, auth: DeliverablesAuth
) -> FeedbackReadResult:
    count = await DeliverableService(auth.session).mark_feedback_read(
        deliverable_id, is_pm=data.is_pm, is_client=data.is_client
    )
    return FeedbackReadResult(count=count)
