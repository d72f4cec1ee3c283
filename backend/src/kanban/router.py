from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from src.auth import AuthContext, auth_with_right
from src.middleware.security import api_route_limit

from .schemas import (
    BoardCreate,
    BoardDetail,
    BoardResponse,
    BoardUpdate,
    ColumnCreate,
    ColumnOrderUpdate,
    ColumnRename,
    ColumnResponse,
    MovedTask,
    TaskMove,
)
from .service import KanbanService


router = APIRouter(prefix="/api/v1/project-kanban", tags=["kanban"], dependencies=[Depends(api_route_limit)])

KanbanAuth = Annotated[AuthContext, Depends(auth_with_right("kanban"))]


@router.post("/boards", status_code=status.HTTP_201_CREATED)
async def create_board(data: BoardCreate, auth: KanbanAuth) -> BoardResponse:
    return await KanbanService(auth.session).create_board(data)


@router.get("/boards/{board_id}")
async def get_board(board_id: int, auth: KanbanAuth) -> BoardDetail:
    return await KanbanService(auth.session).get_board(board_id)


@router.get("/project/{project_id}/board")
async def get_project_board(project_id: int, auth: KanbanAuth) -> BoardDetail:
    return await KanbanService(auth.session).get_project_board(project_id)


@router.patch("/boards/{board_id}")
async def rename_board(board_id: int, data: BoardUpdate, auth: KanbanAuth) -> BoardResponse:
    return await KanbanService(auth.session).rename_board(board_id, data.name)


@router.delete("/boards/{board_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_board(board_id: int, auth: KanbanAuth) -> Response:
    await KanbanService(auth.session).delete_board(board_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/boards/{board_id}/columns", status_code=status.HTTP_201_CREATED)
async def add_column(board_id: int, data: ColumnCreate, auth: KanbanAuth) -> ColumnResponse:
    return await KanbanService(auth.session).add_column(board_id, data)


@router.patch("/boards/{board_id}/columns/order")
async def reorder_columns(board_id: int, data: ColumnOrderUpdate, auth: KanbanAuth) -> list[ColumnResponse]:
    return await KanbanService(auth.session).reorder_columns(board_id, data.columns)


@router.post("/tasks/{task_id}/move")
async def move_task(task_id: int, data: TaskMove, auth: KanbanAuth) -> MovedTask:
    return await KanbanService(auth.session).move_task(task_id, data.column_id)


@router.patch("/columns/{column_id}")
async def rename_column(column_id: int, data: ColumnRename, auth: KanbanAuth) -> ColumnResponse:
    return await KanbanService(auth.session).rename_column(column_id, data.name)


@router.delete("/columns/{column_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_column(column_id: int, auth: KanbanAuth) -> Response:
    await KanbanService(auth.session).delete_column(column_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
