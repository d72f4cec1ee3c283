"""Kanban boards, their columns and task placement."""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.exceptions import BadRequestError, ResourceNotFoundError
from src.projects.models import Project, Task
from src.projects.schemas import TaskSummary

from .models import DEFAULT_COLUMNS, KanbanBoard, KanbanColumn
from .schemas import (
    BoardCreate,
    BoardDetail,
    BoardResponse,
    ColumnCreate,
    ColumnPosition,
    ColumnResponse,
    MovedTask,
)


logger = logging.getLogger(__name__)


class KanbanService:
    """Service for project boards."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_board(self, data: BoardCreate) -> BoardResponse:
        """Create a board seeded with the default To Do / In Progress / Done columns."""
        if data.project_id is not None and await self.session.get(Project, data.project_id) is None:
            raise ResourceNotFoundError("Project", data.project_id, message="Project not found")

        board = KanbanBoard(
            name=data.name,
            project_id=data.project_id,
            columns=[KanbanColumn(name=name, order=position) for position, name in enumerate(DEFAULT_COLUMNS, 1)],
        )
        self.session.add(board)
        await self.session.commit()
        logger.info("Created kanban board %s", board.id)
        return BoardResponse.model_validate(await self._load(board.id))

    async def get_board(self, board_id: int) -> BoardDetail:
        return BoardDetail.model_validate(await self._load(board_id, with_tasks=True))

    async def get_project_board(self, project_id: int) -> BoardDetail:
        board_id = await self.session.scalar(
            select(KanbanBoard.id).where(KanbanBoard.project_id == project_id).order_by(KanbanBoard.id).limit(1)
        )
        if board_id is None:
            raise ResourceNotFoundError("KanbanBoard", message="Kanban board not found for this project")
        return await self.get_board(board_id)

    async def rename_board(self, board_id: int, name: str) -> BoardResponse:
        board = await self._get_board_or_404(board_id)
        board.name = name
        await self.session.commit()
        return BoardResponse.model_validate(await self._load(board_id))

    async def delete_board(self, board_id: int) -> None:
        board = await self._get_board_or_404(board_id)
        await self.session.delete(board)
        await self.session.commit()
        logger.info("Deleted kanban board %s", board_id)

    async def add_column(self, board_id: int, data: ColumnCreate) -> ColumnResponse:
        await self._get_board_or_404(board_id)
        column = KanbanColumn(board_id=board_id, name=data.name, order=data.order)
        self.session.add(column)
        await self.session.commit()
        return ColumnResponse.model_validate(column)

    async def reorder_columns(self, board_id: int, positions: list[ColumnPosition]) -> list[ColumnResponse]:
        """Apply every new position in one transaction, or none of them."""
        await self._get_board_or_404(board_id)
        ids = [p.id for p in positions]
        result = await self.session.execute(select(KanbanColumn).where(KanbanColumn.id.in_(ids)))
        columns = {column.id: column for column in result.scalars().all()}

        foreign = [i for i in ids if i not in columns or columns[i].board_id != board_id]
        if foreign:
            msg = f"Columns not on this board: {', '.join(str(i) for i in foreign)}"
            raise BadRequestError(msg)

        for position in positions:
            columns[position.id].order = position.order
        await self.session.commit()
        return [ColumnResponse.model_validate(columns[i]) for i in ids]

    async def move_task(self, task_id: int, column_id: int) -> MovedTask:
        task = await self.session.get(Task, task_id)
        if task is None:
            raise ResourceNotFoundError("Task", task_id, message="Task not found")
        column = await self._get_column_or_404(column_id)

        task.kanban_column_id = column.id
        await self.session.commit()
        logger.debug("Moved task %s to column %s", task_id, column_id)
        return MovedTask(
            **TaskSummary.model_validate(task).model_dump(),
            kanban_column=ColumnResponse.model_validate(column),
        )

    async def rename_column(self, column_id: int, name: str) -> ColumnResponse:
        column = await self._get_column_or_404(column_id)
        column.name = name
        await self.session.commit()
        return ColumnResponse.model_validate(column)

    async def delete_column(self, column_id: int) -> None:
        """Delete a column; its tasks move to the first remaining column of the board."""
        column = await self._get_column_or_404(column_id)
        fallback_id = await self.session.scalar(
            select(KanbanColumn.id)
            .where(KanbanColumn.board_id == column.board_id, KanbanColumn.id != column_id)
            .order_by(KanbanColumn.order.asc(), KanbanColumn.id.asc())
            .limit(1)
        )
        if fallback_id is not None:
            await self.session.execute(
                update(Task)
                .where(Task.kanban_column_id == column_id)
                .values(kanban_column_id=fallback_id)
                .execution_options(synchronize_session=False)
            )
        await self.session.delete(column)
        await self.session.commit()
        logger.info("Deleted kanban column %s", column_id)

    async def _get_board_or_404(self, board_id: int) -> KanbanBoard:
        board = await self.session.get(KanbanBoard, board_id)
        if board is None:
            raise ResourceNotFoundError("KanbanBoard", board_id, message="Kanban board not found")
        return board

    async def _get_column_or_404(self, column_id: int) -> KanbanColumn:
        column = await self.session.get(KanbanColumn, column_id)
        if column is None:
            raise ResourceNotFoundError("KanbanColumn", column_id, message="Column not found")
        return column

    async def _load(self, board_id: int, *, with_tasks: bool = False) -> KanbanBoard:
        columns = selectinload(KanbanBoard.columns)
        if with_tasks:
            columns = columns.selectinload(KanbanColumn.tasks).selectinload(Task.assigned_to)
        stmt = (
            select(KanbanBoard)
            .where(KanbanBoard.id == board_id)
            .options(selectinload(KanbanBoard.project), columns)
            .execution_options(populate_existing=True)
        )
        board = (await self.session.execute(stmt)).scalar_one_or_none()
        if board is None:
            raise ResourceNotFoundError("KanbanBoard", board_id, message="Kanban board not found")
        return board
