from datetime import datetime

from src.schemas import APIModel
from src.users.schemas import UserSummary


class ProjectSummary(APIModel):
    id: int
    title: str


class TaskSummary(APIModel):
    id: int
    project_id: int
    title: str
    status: str
    due_date: datetime | None = None
    kanban_column_id: int | None = None


class TaskWithAssignee(TaskSummary):
    assigned_to: UserSummary | None = None
