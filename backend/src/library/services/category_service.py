"""Library category management."""

import logging

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.errors import UNIQUE, integrity_kind
from src.database.pagination import Paginator
from src.exceptions import BadRequestError, ResourceNotFoundError

from ..models import LibraryCategory, LibraryResource, ResourceStatus
from ..schemas import CategoryCreate, CategoryList, CategoryResponse, CategoryStats, CategoryUpdate
from .queries import count_by, search_filter


logger = logging.getLogger(__name__)

DUPLICATE_NAME = "Category with this name already exists"


class CategoryService:
    """CRUD for categories plus the published-resource statistics."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, data: CategoryCreate) -> CategoryResponse:
        category = LibraryCategory(**data.model_dump())
        self.session.add(category)
        await self._commit()
        logger.info("Created library category %s", category.name)
        return CategoryResponse.model_validate(category)

    async def list_categories(
        self,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        include_inactive: bool = False,
    ) -> CategoryList:
        query = select(LibraryCategory).order_by(LibraryCategory.name.asc())
        if not include_inactive:
            query = query.where(LibraryCategory.is_active.is_(True))
        matches = search_filter(search, LibraryCategory.name, LibraryCategory.description)
        if matches is not None:
            query = query.where(matches)

        paginator = Paginator(page, limit)
        categories, total = await paginator.paginate(self.session, query)
        counts = await count_by(self.session, LibraryResource.category_id, [c.id for c in categories])
        return CategoryList(
            categories=[self._with_count(category, counts.get(category.id, 0)) for category in categories],
            pagination=paginator.meta(total),
        )

    async def get(self, category_id: str) -> CategoryResponse:
        category = await self._get_or_404(category_id)
        return self._with_count(category, await self._resource_count(category_id))

    async def update(self, category_id: str, data: CategoryUpdate) -> CategoryResponse:
        category = await self._get_or_404(category_id)
        for field, value in data.changes().items():
            setattr(category, field, value)
        await self._commit()
        return self._with_count(category, await self._resource_count(category_id))

    async def delete(self, category_id: str) -> None:
        """Delete an empty category; categories still holding resources are refused."""
        category = await self._get_or_404(category_id)
        if await self._resource_count(category_id) > 0:
            msg = "Cannot delete category that has associated resources. Please move or delete the resources first."
            raise BadRequestError(msg)
        await self.session.delete(category)
        await self.session.commit()
        logger.info("Deleted library category %s", category_id)

    async def deactivate(self, category_id: str) -> CategoryResponse:
        category = await self._get_or_404(category_id)
        category.is_active = False
        await self.session.commit()
        return self._with_count(category, await self._resource_count(category_id))

    async def stats(self) -> list[CategoryStats]:
        """Active categories with their number of published resources."""
        published = func.count(LibraryResource.id)
        stmt = (
            select(LibraryCategory, published)
            .outerjoin(
                LibraryResource,
                and_(
                    LibraryResource.category_id == LibraryCategory.id,
                    LibraryResource.status == ResourceStatus.PUBLISHED.value,
                ),
            )
            .where(LibraryCategory.is_active.is_(True))
            .group_by(LibraryCategory.id)
            .order_by(LibraryCategory.name.asc())
        )
        result = await self.session.execute(stmt)
        return [
            CategoryStats(
                id=category.id,
                name=category.name,
                color=category.color,
                description=category.description,
                published_resources=count,
            )
            for category, count in result.all()
        ]

    async def _get_or_404(self, category_id: str) -> LibraryCategory:
        category = await self.session.get(LibraryCategory, category_id)
        if category is None:
            raise ResourceNotFoundError("Category", category_id, message="Category not found")
        return category

    async def _resource_count(self, category_id: str) -> int:
        return (await count_by(self.session, LibraryResource.category_id, [category_id])).get(category_id, 0)

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if integrity_kind(e) == UNIQUE:
                raise BadRequestError(DUPLICATE_NAME) from e
            raise

    @staticmethod
    def _with_count(category: LibraryCategory, resource_count: int) -> CategoryResponse:
        response = CategoryResponse.model_validate(category)
        response.resource_count = resource_count
        return response
