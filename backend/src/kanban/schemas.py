from datetime import datetime

from pydantic import Field

from src.projects.schemas import ProjectSummary, TaskSummary, TaskWithAssignee
from src.schemas import APIModel


class BoardCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    project_id: int | None = None


class BoardUpdate(APIModel):
    name: str = Field(..., min_length=1, max_length=255)


class ColumnCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=100)
    order: int = Field(..., ge=0)


class ColumnRename(APIModel):
    name: str = Field(..., min_length=1, max_length=100)


class ColumnPosition(APIModel):
    id: int
    order: int = Field(..., ge=0)


class ColumnOrderUpdate(APIModel):
    columns: list[ColumnPosition] = Field(..., min_length=1)


class TaskMove(APIModel):
    column_id: int


class ColumnResponse(APIModel):
    id: int
    board_id: int
    name: str
    order: int
    created_at: datetime
    updated_at: datetime


class ColumnWithTasks(ColumnResponse):
    tasks: list[TaskWithAssignee] = Field(default_factory=list)


class BoardResponse(APIModel):
    id: int
    name: str
    project_id: int | None = None
    created_at: datetime
    updated_at: datetime
    project: ProjectSummary | None = None
    columns: list[ColumnResponse] = Field(default_factory=list)


class BoardDetail(BoardResponse):
    columns: list[ColumnWithTasks] = Field(default_factory=list)


class MovedTask(TaskSummary):
    kanban_column: ColumnResponse | None = None
