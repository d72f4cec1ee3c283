"""Meeting scheduling for projects."""

import logging
from typing import Any

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.auth import AuthUser
from src.database.base import utcnow
from src.database.pagination import Paginator
from src.exceptions import BadRequestError, ResourceNotFoundError
from src.projects.models import Project
from src.users.models import User

from .models import Meeting, MeetingStatus, meeting_participants
from .schemas import MeetingCreate, MeetingResponse, MeetingUpdate, as_utc


logger = logging.getLogger(__name__)


def _with_people(stmt: Select[tuple[Meeting]]) -> Select[tuple[Meeting]]:
    return stmt.options(
        selectinload(Meeting.organizer),
        selectinload(Meeting.participants),
        selectinload(Meeting.project),
    )


class MeetingService:
    """Service for meetings and their participants."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, organizer: AuthUser, data: MeetingCreate) -> MeetingResponse:
        """Schedule a meeting; the caller organizes it unless another organizer is named."""
        organizer_id = data.organizer_id if data.organizer_id is not None else organizer.id
        await self._require_user(organizer_id)
        if data.project_id is not None and await self.session.get(Project, data.project_id) is None:
            raise ResourceNotFoundError("Project", data.project_id, message="Project not found")

        meeting = Meeting(
            title=data.title,
            description=data.description,
            start_time=data.start_time,
            end_time=data.end_time,
            status=MeetingStatus.SCHEDULED.value,
            is_client_initiated=data.is_client_initiated,
            meeting_link=data.meeting_link,
            meeting_agenda=data.meeting_agenda,
            organizer_id=organizer_id,
            project_id=data.project_id,
            participants=await self._users(data.participants),
        )
        self.session.add(meeting)
        await self.session.commit()
        logger.info("Scheduled meeting %s organized by user %s", meeting.id, organizer_id)
        return MeetingResponse.model_validate(await self._load(meeting.id))

    async def get(self, meeting_id: int) -> MeetingResponse:
        return MeetingResponse.model_validate(await self._load(meeting_id))

    async def update(self, meeting_id: int, data: MeetingUpdate) -> MeetingResponse:
        """Apply the sent fields; a sent participant list replaces the current one."""
        meeting = await self._load(meeting_id)
        changes = data.changes()
        participant_ids = changes.pop("participants", None)

        start = changes.get("start_time", meeting.start_time)
        end = changes.get("end_time", meeting.end_time)
        if as_utc(end) <= as_utc(start):
            msg = "endTime must be after startTime"
            raise BadRequestError(msg)

        for field, value in changes.items():
            setattr(meeting, field, getattr(value, "value", value))
        if participant_ids is not None:
            meeting.participants = await self._users(participant_ids)

        await self.session.commit()
        return MeetingResponse.model_validate(await self._load(meeting_id))

    async def delete(self, meeting_id: int) -> None:
        meeting = await self._get_or_404(meeting_id)
        await self.session.delete(meeting)
        await self.session.commit()
        logger.info("Deleted meeting %s", meeting_id)

    async def list_meetings(
        self,
        *,
        organizer_id: int | None = None,
        project_id: int | None = None,
        status: MeetingStatus | None = None,
        is_client_initiated: bool | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> list[MeetingResponse]:
        """Meetings matching every given filter, earliest start first."""
        query = _with_people(select(Meeting)).order_by(Meeting.start_time.asc(), Meeting.id.asc())
        if organizer_id is not None:
            query = query.where(Meeting.organizer_id == organizer_id)
        if project_id is not None:
            query = query.where(Meeting.project_id == project_id)
        if status is not None:
            query = query.where(Meeting.status == status.value)
        if is_client_initiated is not None:
            query = query.where(Meeting.is_client_initiated == is_client_initiated)

        meetings, _ = await Paginator(page, limit).paginate(self.session, query)
        return [MeetingResponse.model_validate(meeting) for meeting in meetings]

    async def update_status(self, meeting_id: int, status: MeetingStatus) -> MeetingResponse:
        return await self._set_fields(meeting_id, status=status.value)

    async def add_notes(self, meeting_id: int, notes: str) -> MeetingResponse:
        return await self._set_fields(meeting_id, meeting_notes=notes)

    async def add_agenda(self, meeting_id: int, agenda: str) -> MeetingResponse:
        return await self._set_fields(meeting_id, meeting_agenda=agenda)

    async def mark_reminder_sent(self, meeting_id: int) -> MeetingResponse:
        return await self._set_fields(meeting_id, reminder_sent=True)

    async def for_project(self, project_id: int, *, upcoming_only: bool = True) -> list[MeetingResponse]:
        query = _with_people(select(Meeting)).where(Meeting.project_id == project_id)
        return await self._timeline(query, upcoming_only)

    async def for_user(self, user_id: int, *, upcoming_only: bool = True) -> list[MeetingResponse]:
        """Meetings the user organizes or takes part in."""
        participating = select(meeting_participants.c.meeting_id).where(meeting_participants.c.user_id == user_id)
        query = _with_people(select(Meeting)).where(
            or_(Meeting.organizer_id == user_id, Meeting.id.in_(participating))
        )
        return await self._timeline(query, upcoming_only)

    async def _timeline(self, query: Select[tuple[Meeting]], upcoming_only: bool) -> list[MeetingResponse]:
        if upcoming_only:
            query = query.where(Meeting.start_time >= utcnow())
        result = await self.session.execute(query.order_by(Meeting.start_time.asc(), Meeting.id.asc()))
        return [MeetingResponse.model_validate(meeting) for meeting in result.scalars().all()]

    async def _set_fields(self, meeting_id: int, **fields: Any) -> MeetingResponse:
        meeting = await self._get_or_404(meeting_id)
        for field, value in fields.items():
            setattr(meeting, field, value)
        await self.session.commit()
        logger.info("Meeting %s updated: %s", meeting_id, ", ".join(fields))
        return MeetingResponse.model_validate(await self._load(meeting_id))

    async def _users(self, user_ids: list[int]) -> list[User]:
        if not user_ids:
            return []
        wanted = set(user_ids)
        result = await self.session.execute(select(User).where(User.id.in_(wanted)))
        users = list(result.scalars().all())
        missing = wanted - {user.id for user in users}
        if missing:
            msg = f"Unknown participant IDs: {', '.join(str(i) for i in sorted(missing))}"
            raise BadRequestError(msg)
        return users

    async def _require_user(self, user_id: int) -> None:
        if await self.session.get(User, user_id) is None:
            raise ResourceNotFoundError("User", user_id, message="User not found")

    async def _get_or_404(self, meeting_id: int) -> Meeting:
        meeting = await self.session.get(Meeting, meeting_id)
        if meeting is None:
            raise ResourceNotFoundError("Meeting", meeting_id, message="Meeting not found")
        return meeting

    async def _load(self, meeting_id: int) -> Meeting:
        stmt = (
            _with_people(select(Meeting))
            .where(Meeting.id == meeting_id)
            .execution_options(populate_existing=True)
        )
        meeting = (await self.session.execute(stmt)).scalar_one_or_none()
        if meeting is None:
            raise ResourceNotFoundError("Meeting", meeting_id, message="Meeting not found")
        return meeting
