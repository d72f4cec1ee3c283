"""Library API: resources, categories, progress and engagement."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.auth import AuthContext, CurrentAuth, OptionalUser, auth_with_right
from src.database.session import DbSession
from src.middleware.security import api_route_limit
from src.schemas import ApiResponse

from .models import DifficultyLevel, ResourceStatus
from .schemas import (
    CategoryCreate,
    CategoryList,
    CategoryResponse,
    CategoryStats,
    CategoryUpdate,
    CertificateList,
    FavoriteToggle,
    PinList,
    PinToggle,
    ProgressList,
    ProgressUpdate,
    ProgressUpdateResult,
    ReactionCounts,
    ReactionInput,
    ReactionToggle,
    RelationCheck,
    RelationCreate,
    RelationResponse,
    ResourceCreate,
    ResourceDetail,
    ResourceList,
    ResourceSummary,
    ResourceUpdate,
)
from .services import (
    CategoryService,
    EngagementService,
    ProgressService,
    RelationService,
    ResourceService,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/library", tags=["library"], dependencies=[Depends(api_route_limit)])

LibraryManager = Annotated[AuthContext, Depends(auth_with_right("manageLibrary"))]
Page = Annotated[int, Query(ge=1)]
Limit = Annotated[int, Query(ge=1, le=100)]


# === Resources ===


@router.get("/resources")
async def list_published_resources(
    session: DbSession,
    page: Page = 1,
    limit: Limit = 10,
    category_id: Annotated[str | None, Query(alias="categoryId")] = None,
    difficulty: DifficultyLevel | None = None,
    search: str | None = None,
) -> ApiResponse[ResourceList]:
    """Published resources, newest first."""
    result = await ResourceService(session).list_published(
        page=page, limit=limit, category_id=category_id, difficulty=difficulty, search=search
    )
    return ApiResponse(data=result, message="Resources retrieved successfully")


@router.get("/resources/all")
async def list_all_resources(
    auth: LibraryManager,
    page: Page = 1,
    limit: Limit = 10,
    category_id: Annotated[str | None, Query(alias="categoryId")] = None,
    difficulty: DifficultyLevel | None = None,
    resource_status: Annotated[ResourceStatus | None, Query(alias="status")] = None,
    search: str | None = None,
) -> ApiResponse[ResourceList]:
    """Every resource in every status."""
    result = await ResourceService(auth.session).list_all(
        page=page,
        limit=limit,
        category_id=category_id,
        difficulty=difficulty,
        status=resource_status,
        search=search,
    )
    return ApiResponse(data=result, message="Resources retrieved successfully")


@router.get("/resources/{resource_id}")
async def get_resource(
    resource_id: str,
    session: DbSession,
    user: OptionalUser,
    search: str | None = None,
    include_content: Annotated[bool, Query(alias="includeContent")] = True,
) -> ApiResponse[ResourceDetail]:
    resource = await ResourceService(session).get_by_id(
        resource_id, user, search=search, include_content=include_content
    )
    return ApiResponse(data=resource, message="Resource retrieved successfully")


@router.post("/resources", status_code=status.HTTP_201_CREATED)
async def create_resource(data: ResourceCreate, auth: LibraryManager) -> ApiResponse[ResourceSummary]:
    resource = await ResourceService(auth.session).create(auth.user, data)
    return ApiResponse(data=resource, message="Resource created successfully")


@router.put("/resources/{resource_id}")
async def update_resource(
    resource_id: str, data: ResourceUpdate, auth: LibraryManager
) -> ApiResponse[ResourceSummary]:
    resource = await ResourceService(auth.session).update(resource_id, data)
    return ApiResponse(data=resource, message="Resource updated successfully")


@router.delete("/resources/{resource_id}")
async def delete_resource(resource_id: str, auth: LibraryManager) -> ApiResponse[None]:
    await ResourceService(auth.session).delete(resource_id)
    return ApiResponse(data=None, message="Resource deleted successfully")


# === Progress and engagement ===


@router.patch("/resources/{resource_id}/progress")
async def update_progress(
    resource_id: str, data: ProgressUpdate, auth: CurrentAuth
) -> ApiResponse[ProgressUpdateResult]:
    """Add to the caller's progress; reaching 100% issues a certificate."""
    progress = await ProgressService(auth.session).update_progress(auth.user, resource_id, data.percentage)
    return ApiResponse(data=ProgressUpdateResult(progress=progress), message="Progress updated successfully")


@router.get("/progress")
async def get_user_progress(
    auth: CurrentAuth,
    page: Page = 1,
    limit: Limit = 10,
    search: str | None = None,
    resource_status: Annotated[ResourceStatus | None, Query(alias="status")] = None,
) -> ApiResponse[ProgressList]:
    result = await ProgressService(auth.session).get_user_progress(
        auth.user, page=page, limit=limit, search=search, status=resource_status
    )
    return ApiResponse(data=result, message="Progress retrieved successfully")


@router.post("/resources/{resource_id}/favorite")
async def toggle_favorite(resource_id: str, auth: CurrentAuth) -> ApiResponse[FavoriteToggle]:
    is_favorited = await EngagementService(auth.session).toggle_favorite(auth.user, resource_id)
    message = "Resource added to favorites" if is_favorited else "Resource removed from favorites"
    return ApiResponse(data=FavoriteToggle(is_favorited=is_favorited), message=message)


@router.post("/resources/{resource_id}/pin")
async def toggle_pin(resource_id: str, auth: CurrentAuth) -> ApiResponse[PinToggle]:
    is_pinned = await EngagementService(auth.session).toggle_pin(auth.user, resource_id)
    message = "Resource pinned successfully" if is_pinned else "Resource unpinned successfully"
    return ApiResponse(data=PinToggle(is_pinned=is_pinned), message=message)


@router.get("/pins")
async def get_user_pins(auth: CurrentAuth, page: Page = 1, limit: Limit = 10) -> ApiResponse[PinList]:
    pins = await EngagementService(auth.session).get_user_pins(auth.user, page=page, limit=limit)
    return ApiResponse(data=pins, message="Pinned resources retrieved successfully")


@router.get("/certificates")
async def get_user_certificates(
    auth: CurrentAuth, page: Page = 1, limit: Limit = 10
) -> ApiResponse[CertificateList]:
    certificates = await EngagementService(auth.session).get_user_certificates(auth.user, page=page, limit=limit)
    return ApiResponse(data=certificates, message="Certificates retrieved successfully")


@router.post("/comments/{comment_id}/reactions")
async def react_to_comment(
    comment_id: str, data: ReactionInput, auth: CurrentAuth
) -> ApiResponse[ReactionToggle]:
    is_added = await EngagementService(auth.session).toggle_reaction(auth.user, data.type, comment_id=comment_id)
    return ApiResponse(data=ReactionToggle(is_added=is_added), message=_reaction_message(is_added))


@router.get("/comments/{comment_id}/reactions")
async def comment_reaction_counts(comment_id: str, session: DbSession) -> ApiResponse[ReactionCounts]:
    counts = await EngagementService(session).get_reaction_counts(comment_id=comment_id)
    return ApiResponse(data=ReactionCounts(counts=counts))


@router.post("/replies/{reply_id}/reactions")
async def react_to_reply(reply_id: str, data: ReactionInput, auth: CurrentAuth) -> ApiResponse[ReactionToggle]:
    is_added = await EngagementService(auth.session).toggle_reaction(auth.user, data.type, reply_id=reply_id)
    return ApiResponse(data=ReactionToggle(is_added=is_added), message=_reaction_message(is_added))


@router.get("/replies/{reply_id}/reactions")
async def reply_reaction_counts(reply_id: str, session: DbSession) -> ApiResponse[ReactionCounts]:
    counts = await EngagementService(session).get_reaction_counts(reply_id=reply_id)
    return ApiResponse(data=ReactionCounts(counts=counts))


def _reaction_message(is_added: bool) -> str:
    return "Reaction added successfully" if is_added else "Reaction removed successfully"


# === Related resources ===


@router.post("/resources/{resource_id}/related", status_code=status.HTTP_201_CREATED)
async def relate_resources(
    resource_id: str, data: RelationCreate, auth: LibraryManager
) -> ApiResponse[RelationResponse]:
    relation = await RelationService(auth.session).create(resource_id, data.related_resource_id)
    return ApiResponse(data=relation, message="Relation created successfully")


@router.get("/resources/{resource_id}/related")
async def list_related_resources(resource_id: str, session: DbSession) -> ApiResponse[list[ResourceSummary]]:
    related = await RelationService(session).list_related(resource_id)
    return ApiResponse(data=related)


@router.get("/resources/{resource_id}/related/suggestions")
async def suggest_related_resources(
    resource_id: str, session: DbSession, limit: Annotated[int, Query(ge=1, le=20)] = 5
) -> ApiResponse[list[ResourceSummary]]:
    suggestions = await RelationService(session).suggestions(resource_id, limit=limit)
    return ApiResponse(data=suggestions)


@router.get("/resources/{resource_id}/related/{related_id}/check")
async def check_relation(resource_id: str, related_id: str, session: DbSession) -> ApiResponse[RelationCheck]:
    is_related = await RelationService(session).is_related(resource_id, related_id)
    return ApiResponse(data=RelationCheck(is_related=is_related))


@router.delete("/resources/{resource_id}/related/{related_id}")
async def delete_relation(resource_id: str, related_id: str, auth: LibraryManager) -> ApiResponse[None]:
    await RelationService(auth.session).delete(resource_id, related_id)
    return ApiResponse(data=None, message="Relation deleted successfully")


# === Categories ===


@router.get("/categories")
async def list_categories(
    session: DbSession,
    page: Page = 1,
    limit: Limit = 10,
    search: str | None = None,
    include_inactive: Annotated[bool, Query(alias="includeInactive")] = False,
) -> ApiResponse[CategoryList]:
    result = await CategoryService(session).list_categories(
        page=page, limit=limit, search=search, include_inactive=include_inactive
    )
    return ApiResponse(data=result, message="Categories retrieved successfully")


@router.get("/categories/stats")
async def category_stats(session: DbSession) -> ApiResponse[list[CategoryStats]]:
    stats = await CategoryService(session).stats()
    return ApiResponse(data=stats, message="Category statistics retrieved successfully")


@router.get("/categories/{category_id}")
async def get_category(category_id: str, session: DbSession) -> ApiResponse[CategoryResponse]:
    category = await CategoryService(session).get(category_id)
    return ApiResponse(data=category, message="Category retrieved successfully")


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, auth: LibraryManager) -> ApiResponse[CategoryResponse]:
    category = await CategoryService(auth.session).create(data)
    return ApiResponse(data=category, message="Category created successfully")


@router.put("/categories/{category_id}")
async def update_category(
    category_id: str, data: CategoryUpdate, auth: LibraryManager
) -> ApiResponse[CategoryResponse]:
    category = await CategoryService(auth.session).update(category_id, data)
    return ApiResponse(data=category, message="Category updated successfully")


@router.delete("/categories/{category_id}")
async def delete_category(category_id: str, auth: LibraryManager) -> ApiResponse[None]:
    await CategoryService(auth.session).delete(category_id)
    return ApiResponse(data=None, message="Category deleted successfully")


@router.patch("/categories/{category_id}/deactivate")
async def deactivate_category(category_id: str, auth: LibraryManager) -> ApiResponse[CategoryResponse]:
    category = await CategoryService(auth.session).deactivate(category_id)
    return ApiResponse(data=category, message="Category deactivated successfully")
