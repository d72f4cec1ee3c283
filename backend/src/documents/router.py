from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from src.auth import AuthContext, auth_with_right
from src.middleware.security import api_route_limit

from .schemas import (
    DocumentCreate,
    DocumentDetail,
    DocumentFilter,
    DocumentMove,
    DocumentResponse,
    DocumentUpdate,
    FolderCreate,
    FolderDetail,
    FolderResponse,
    FolderUpdate,
    VersionCreate,
    VersionResponse,
)
from .service import DocumentService, FolderService


router = APIRouter(prefix="/api/v1/project-documents", tags=["documents"], dependencies=[Depends(api_route_limit)])

DocumentsAuth = Annotated[AuthContext, Depends(auth_with_right("documents"))]


# === Folders ===
# Declared before the document routes so "/folders/..." never matches "/{document_id}"


@router.post("/folders", status_code=status.HTTP_201_CREATED)
async def create_folder(data: FolderCreate, auth: DocumentsAuth) -> FolderResponse:
    return await FolderService(auth.session).create(data)


@router.get("/folders/project/{project_id}")
async def list_project_folders(
    project_id: int,
    auth: DocumentsAuth,
    parent_id: Annotated[int | None, Query(alias="parentId")] = None,
) -> list[FolderResponse]:
    return await FolderService(auth.session).list_for_project(project_id, parent_id)


@router.get("/folders/{folder_id}")
async def get_folder(folder_id: int, auth: DocumentsAuth) -> FolderDetail:
    return await FolderService(auth.session).get(folder_id)


@router.patch("/folders/{folder_id}")
async def update_folder(folder_id: int, data: FolderUpdate, auth: DocumentsAuth) -> FolderResponse:
    return await FolderService(auth.session).update(folder_id, data)


@router.delete("/folders/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_folder(folder_id: int, auth: DocumentsAuth) -> Response:
    await FolderService(auth.session).delete(folder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# === Documents ===


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_document(data: DocumentCreate, auth: DocumentsAuth) -> DocumentResponse:
    return await DocumentService(auth.session).create(data)


@router.get("/project/{project_id}")
async def list_project_documents(
    project_id: int,
    auth: DocumentsAuth,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    task_id: Annotated[int | None, Query(alias="taskId")] = None,
    folder_id: Annotated[int | None, Query(alias="folderId")] = None,
    file_type: Annotated[str | None, Query(alias="fileType")] = None,
    uploaded_by_id: Annotated[int | None, Query(alias="uploadedById")] = None,
) -> list[DocumentResponse]:
    filters = DocumentFilter(
        task_id=task_id, folder_id=folder_id, file_type=file_type, uploaded_by_id=uploaded_by_id
    )
    return await DocumentService(auth.session).list_for_project(project_id, filters, page=page, limit=limit)


@router.get("/{document_id}")
async def get_document(document_id: int, auth: DocumentsAuth) -> DocumentDetail:
    return await DocumentService(auth.session).get(document_id)


@router.patch("/{document_id}")
async def update_document(document_id: int, data: DocumentUpdate, auth: DocumentsAuth) -> DocumentResponse:
    return await DocumentService(auth.session).update(document_id, data)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: int, auth: DocumentsAuth) -> Response:
    await DocumentService(auth.session).delete(document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{document_id}/versions", status_code=status.HTTP_201_CREATED)
async def create_version(document_id: int, data: VersionCreate, auth: DocumentsAuth) -> VersionResponse:
    return await DocumentService(auth.session).add_version(document_id, data)


@router.post("/{document_id}/move")
async def move_document(document_id: int, data: DocumentMove, auth: DocumentsAuth) -> DocumentResponse:
    return await DocumentService(auth.session).move(document_id, data.folder_id)
