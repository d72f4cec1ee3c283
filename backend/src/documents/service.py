"""Project document storage metadata: documents, versions and folders."""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.database.pagination import Paginator
from src.exceptions import BadRequestError, ResourceNotFoundError
from src.projects.models import Project

from .models import DocumentFolder, DocumentVersion, ProjectDocument
from .schemas import (
    DocumentCreate,
    DocumentDetail,
    DocumentFilter,
    DocumentResponse,
    DocumentUpdate,
    FolderCreate,
    FolderDetail,
    FolderResponse,
    FolderUpdate,
    VersionCreate,
    VersionResponse,
)


logger = logging.getLogger(__name__)


class DocumentService:
    """Documents of a project and their version history."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, data: DocumentCreate) -> DocumentResponse:
        await _require_project(self.session, data.project_id)
        if data.folder_id is not None:
            await _folder_in_project(self.session, data.folder_id, data.project_id)

        document = ProjectDocument(**data.model_dump())
        self.session.add(document)
        await self.session.commit()
        logger.info("Uploaded document %s to project %s", document.id, data.project_id)
        return DocumentResponse.model_validate(await self._load(document.id))

    async def get(self, document_id: int) -> DocumentDetail:
        return DocumentDetail.model_validate(await self._load(document_id, with_versions=True))

    async def update(self, document_id: int, data: DocumentUpdate) -> DocumentResponse:
        document = await self._get_or_404(document_id)
        changes = data.changes()
        if changes.get("folder_id") is not None:
            await _folder_in_project(self.session, changes["folder_id"], document.project_id)
        for field, value in changes.items():
            setattr(document, field, value)
        await self.session.commit()
        return DocumentResponse.model_validate(await self._load(document_id))

    async def delete(self, document_id: int) -> None:
        document = await self._get_or_404(document_id)
        await self.session.delete(document)
        await self.session.commit()
        logger.info("Deleted document %s", document_id)

    async def list_for_project(
        self, project_id: int, filters: DocumentFilter, page: int = 1, limit: int = 10
    ) -> list[DocumentResponse]:
        """A project's documents, most recent upload first."""
        query = (
            select(ProjectDocument)
            .where(ProjectDocument.project_id == project_id)
            .options(*_document_loaders())
            .order_by(ProjectDocument.uploaded_at.desc(), ProjectDocument.id.desc())
        )
        for field, value in filters.model_dump(exclude_none=True).items():
            query = query.where(getattr(ProjectDocument, field) == value)

        documents, _ = await Paginator(page, limit).paginate(self.session, query)
        return [DocumentResponse.model_validate(document) for document in documents]

    async def add_version(self, document_id: int, data: VersionCreate) -> VersionResponse:
        """Record a new version numbered one past the highest existing one."""
        await self._get_or_404(document_id)
        try:
            version = await self._insert_version(document_id, data)
        except IntegrityError:
            # Another upload took the same number; recompute once
            await self.session.rollback()
            version = await self._insert_version(document_id, data)

        stmt = (
            select(DocumentVersion)
            .where(DocumentVersion.id == version.id)
            .options(selectinload(DocumentVersion.changed_by))
        )
        return VersionResponse.model_validate((await self.session.execute(stmt)).scalar_one())

    async def move(self, document_id: int, folder_id: int | None) -> DocumentResponse:
        """File the document in `folder_id`, or at the project root for None."""
        document = await self._get_or_404(document_id)
        if folder_id is not None:
            await _folder_in_project(self.session, folder_id, document.project_id)
        document.folder_id = folder_id
        await self.session.commit()
        return DocumentResponse.model_validate(await self._load(document_id))

    async def _insert_version(self, document_id: int, data: VersionCreate) -> DocumentVersion:
        latest = await self.session.scalar(
            select(func.max(DocumentVersion.version_number)).where(DocumentVersion.document_id == document_id)
        )
        version = DocumentVersion(
            document_id=document_id,
            version_number=(latest or 0) + 1,
            file_url=data.file_url,
            file_size=data.file_size,
            changed_by_id=data.changed_by_id,
            change_notes=data.change_notes,
        )
        self.session.add(version)
        await self.session.commit()
        return version

    async def _get_or_404(self, document_id: int) -> ProjectDocument:
        document = await self.session.get(ProjectDocument, document_id)
        if document is None:
            raise ResourceNotFoundError("Document", document_id, message="Document not found")
        return document

    async def _load(self, document_id: int, *, with_versions: bool = False) -> ProjectDocument:
        options = list(_document_loaders())
        if with_versions:
            options.append(selectinload(ProjectDocument.versions).selectinload(DocumentVersion.changed_by))
        stmt = (
            select(ProjectDocument)
            .where(ProjectDocument.id == document_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        document = (await self.session.execute(stmt)).scalar_one_or_none()
        if document is None:
            raise ResourceNotFoundError("Document", document_id, message="Document not found")
        return document


class FolderService:
    """Folder tree of a project's documents."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, data: FolderCreate) -> FolderResponse:
        await _require_project(self.session, data.project_id)
        if data.parent_id is not None:
            await _folder_in_project(self.session, data.parent_id, data.project_id)

        folder = DocumentFolder(**data.model_dump())
        self.session.add(folder)
        await self.session.commit()
        return FolderResponse.model_validate(await self._load(folder.id))

    async def get(self, folder_id: int) -> FolderDetail:
        return FolderDetail.model_validate(await self._load(folder_id))

    async def update(self, folder_id: int, data: FolderUpdate) -> FolderResponse:
        folder = await self._get_or_404(folder_id)
        for field, value in data.changes().items():
            setattr(folder, field, value)
        await self.session.commit()
        return FolderResponse.model_validate(await self._load(folder_id))

    async def delete(self, folder_id: int) -> None:
        """Delete a folder after moving its documents and sub-folders to the root."""
        folder = await self._get_or_404(folder_id)
        await self.session.execute(
            update(ProjectDocument)
            .where(ProjectDocument.folder_id == folder_id)
            .values(folder_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            update(DocumentFolder)
            .where(DocumentFolder.parent_id == folder_id)
            .values(parent_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.session.delete(folder)
        await self.session.commit()
        logger.info("Deleted folder %s", folder_id)

    async def list_for_project(self, project_id: int, parent_id: int | None = None) -> list[FolderResponse]:
        """Folders at one level of the tree; the root level when `parent_id` is None."""
        parent_filter = (
            DocumentFolder.parent_id.is_(None) if parent_id is None else DocumentFolder.parent_id == parent_id
        )
        stmt = (
            select(DocumentFolder)
            .where(DocumentFolder.project_id == project_id, parent_filter)
            .options(selectinload(DocumentFolder.children), selectinload(DocumentFolder.documents))
            .order_by(DocumentFolder.name.asc())
        )
        folders = (await self.session.execute(stmt)).scalars().all()
        return [FolderResponse.model_validate(folder) for folder in folders]

    async def _get_or_404(self, folder_id: int) -> DocumentFolder:
        folder = await self.session.get(DocumentFolder, folder_id)
        if folder is None:
            raise ResourceNotFoundError("Folder", folder_id, message="Folder not found")
        return folder

    async def _load(self, folder_id: int) -> DocumentFolder:
        stmt = (
            select(DocumentFolder)
            .where(DocumentFolder.id == folder_id)
            .options(
                selectinload(DocumentFolder.created_by),
                selectinload(DocumentFolder.parent),
                selectinload(DocumentFolder.children),
                selectinload(DocumentFolder.documents),
            )
            .execution_options(populate_existing=True)
        )
        folder = (await self.session.execute(stmt)).scalar_one_or_none()
        if folder is None:
            raise ResourceNotFoundError("Folder", folder_id, message="Folder not found")
        return folder


def _document_loaders() -> tuple:
    return (
        selectinload(ProjectDocument.uploaded_by),
        selectinload(ProjectDocument.task),
        selectinload(ProjectDocument.folder),
    )


async def _require_project(session: AsyncSession, project_id: int) -> None:
    if await session.get(Project, project_id) is None:
        raise ResourceNotFoundError("Project", project_id, message="Project not found")


async def _folder_in_project(session: AsyncSession, folder_id: int, project_id: int) -> DocumentFolder:
    folder = await session.get(DocumentFolder, folder_id)
    if folder is None:
        raise ResourceNotFoundError("Folder", folder_id, message="Folder not found")
    if folder.project_id != project_id:
        msg = "Folder belongs to a different project"
        raise BadRequestError(msg)
    return folder
