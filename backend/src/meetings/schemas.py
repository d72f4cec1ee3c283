from datetime import UTC, datetime
from typing import Annotated, Self

from pydantic import AfterValidator, Field, model_validator

from src.projects.schemas import ProjectSummary
from src.schemas import APIModel, PartialUpdate
from src.users.schemas import UserSummary

from .models import MeetingStatus


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


def _check_range(start: datetime | None, end: datetime | None) -> None:
    if start is not None and end is not None and end <= start:
        msg = "endTime must be after startTime"
        raise ValueError(msg)


class MeetingCreate(APIModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    start_time: UtcDatetime
    end_time: UtcDatetime
    organizer_id: int | None = None
    project_id: int | None = None
    participants: list[int] = Field(default_factory=list)
    is_client_initiated: bool = False
    meeting_link: str | None = None
    meeting_agenda: str | None = None

    @model_validator(mode="after")
    def _time_range(self) -> Self:
        _check_range(self.start_time, self.end_time)
        return self


class MeetingUpdate(PartialUpdate):
    not_null = ("title", "start_time", "end_time", "status", "participants", "reminder_sent")

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    start_time: UtcDatetime | None = None
    end_time: UtcDatetime | None = None
    status: MeetingStatus | None = None
    participants: list[int] | None = None
    meeting_link: str | None = None
    meeting_notes: str | None = None
    meeting_agenda: str | None = None
    reminder_sent: bool | None = None

    @model_validator(mode="after")
    def _time_range(self) -> Self:
        _check_range(self.start_time, self.end_time)
        return self


class MeetingStatusUpdate(APIModel):
    status: MeetingStatus


class MeetingNotes(APIModel):
    notes: str


class MeetingAgenda(APIModel):
    agenda: str


class MeetingResponse(APIModel):
    id: int
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    status: MeetingStatus
    is_client_initiated: bool
    meeting_link: str | None = None
    meeting_agenda: str | None = None
    meeting_notes: str | None = None
    reminder_sent: bool
    organizer_id: int
    project_id: int | None = None
    created_at: datetime
    updated_at: datetime
    organizer: UserSummary
    participants: list[UserSummary] = Field(default_factory=list)
    project: ProjectSummary | None = None
