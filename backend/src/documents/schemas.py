from datetime import datetime

from pydantic import Field

from src.projects.schemas import TaskSummary
from src.schemas import APIModel, PartialUpdate
from src.users.schemas import UserSummary


# === Requests ===


class DocumentCreate(APIModel):
    project_id: int
    uploaded_by_id: int
    file_name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    file_url: str = Field(..., min_length=1, alias="fileURL")
    file_size: int | None = Field(None, ge=0)
    file_type: str = Field(..., min_length=1)
    task_id: int | None = None
    folder_id: int | None = None


class DocumentUpdate(PartialUpdate):
    """`folderId: null` takes the document out of its folder."""

    not_null = ("file_name",)

    file_name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    folder_id: int | None = None


class VersionCreate(APIModel):
    changed_by_id: int
    file_url: str = Field(..., min_length=1, alias="fileURL")
    file_size: int | None = Field(None, ge=0)
    change_notes: str | None = None


class DocumentMove(APIModel):
    folder_id: int | None = None


class FolderCreate(APIModel):
    project_id: int
    created_by_id: int
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    parent_id: int | None = None


class FolderUpdate(PartialUpdate):
    not_null = ("name",)

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None


class DocumentFilter(APIModel):
    task_id: int | None = None
    folder_id: int | None = None
    file_type: str | None = None
    uploaded_by_id: int | None = None


# === Responses ===


class FolderSummary(APIModel):
    id: int
    project_id: int
    parent_id: int | None = None
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class VersionResponse(APIModel):
    id: int
    document_id: int
    version_number: int
    file_url: str = Field(..., alias="fileURL")
    file_size: int | None = None
    change_notes: str | None = None
    created_at: datetime
    changed_by: UserSummary


class DocumentResponse(APIModel):
    id: int
    project_id: int
    task_id: int | None = None
    folder_id: int | None = None
    uploaded_by_id: int
    file_name: str
    description: str | None = None
    file_url: str = Field(..., alias="fileURL")
    file_size: int | None = None
    file_type: str
    uploaded_at: datetime
    updated_at: datetime
    uploaded_by: UserSummary
    task: TaskSummary | None = None
    folder: FolderSummary | None = None


class DocumentDetail(DocumentResponse):
    versions: list[VersionResponse] = Field(default_factory=list)


class DocumentInFolder(APIModel):
    id: int
    file_name: str
    file_type: str
    file_url: str = Field(..., alias="fileURL")
    uploaded_at: datetime


class FolderResponse(FolderSummary):
    children: list[FolderSummary] = Field(default_factory=list)
    documents: list[DocumentInFolder] = Field(default_factory=list)


class FolderDetail(FolderResponse):
    created_by: UserSummary
    parent: FolderSummary | None = None
