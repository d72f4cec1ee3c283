from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from src.auth import AuthContext, auth_with_right
from src.middleware.security import api_route_limit

from .models import MeetingStatus
from .schemas import MeetingAgenda, MeetingCreate, MeetingNotes, MeetingResponse, MeetingStatusUpdate, MeetingUpdate
from .service import MeetingService


router = APIRouter(prefix="/api/v1/project-meetings", tags=["meetings"], dependencies=[Depends(api_route_limit)])

MeetingsAuth = Annotated[AuthContext, Depends(auth_with_right("meetings"))]
UpcomingOnly = Annotated[bool, Query(alias="upcomingOnly")]


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_meeting(data: MeetingCreate, auth: MeetingsAuth) -> MeetingResponse:
    return await MeetingService(auth.session).create(auth.user, data)


@router.get("/")
async def list_meetings(
    auth: MeetingsAuth,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    organizer_id: Annotated[int | None, Query(alias="organizerId")] = None,
    project_id: Annotated[int | None, Query(alias="projectId")] = None,
    meeting_status: Annotated[MeetingStatus | None, Query(alias="status")] = None,
    is_client_initiated: Annotated[bool | None, Query(alias="isClientInitiated")] = None,
) -> list[MeetingResponse]:
    return await MeetingService(auth.session).list_meetings(
        organizer_id=organizer_id,
        project_id=project_id,
        status=meeting_status,
        is_client_initiated=is_client_initiated,
        page=page,
        limit=limit,
    )


@router.get("/project/{project_id}")
async def project_meetings(
    project_id: int, auth: MeetingsAuth, upcoming_only: UpcomingOnly = True
) -> list[MeetingResponse]:
    return await MeetingService(auth.session).for_project(project_id, upcoming_only=upcoming_only)


@router.get("/user/{user_id}")
async def user_meetings(
    user_id: int, auth: MeetingsAuth, upcoming_only: UpcomingOnly = True
) -> list[MeetingResponse]:
    return await MeetingService(auth.session).for_user(user_id, upcoming_only=upcoming_only)


@router.get("/{meeting_id}")
async def get_meeting(meeting_id: int, auth: MeetingsAuth) -> MeetingResponse:
    return await MeetingService(auth.session).get(meeting_id)


@router.patch("/{meeting_id}")
async def update_meeting(meeting_id: int, data: MeetingUpdate, auth: MeetingsAuth) -> MeetingResponse:
    return await MeetingService(auth.session).update(meeting_id, data)


@router.delete("/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meeting(meeting_id: int, auth: MeetingsAuth) -> Response:
    await MeetingService(auth.session).delete(meeting_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{meeting_id}/status")
async def update_meeting_status(meeting_id: int, data: MeetingStatusUpdate, auth: MeetingsAuth) -> MeetingResponse:
    return await MeetingService(auth.session).update_status(meeting_id, data.status)


@router.post("/{meeting_id}/notes")
async def add_meeting_notes(meeting_id: int, data: MeetingNotes, auth: MeetingsAuth) -> MeetingResponse:
    return await MeetingService(auth.session).add_notes(meeting_id, data.notes)


@router.post("/{meeting_id}/agenda")
async def add_meeting_agenda(meeting_id: int, data: MeetingAgenda, auth: MeetingsAuth) -> MeetingResponse:
    return await MeetingService(auth.session).add_agenda(meeting_id, data.agenda)


@router.post("/{meeting_id}/reminder")
async def mark_reminder_sent(meeting_id: int, auth: MeetingsAuth) -> MeetingResponse:
    return await MeetingService(auth.session).mark_reminder_sent(meeting_id)
