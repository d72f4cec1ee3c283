from .attachment_service import AttachmentService
from .category_service import CategoryService
from .comment_service import CommentService
from .engagement_service import EngagementService
from .progress_service import ProgressService
from .relation_service import RelationService
from .resource_service import ResourceService


__all__ = [
    "AttachmentService",
    "CategoryService",
    "CommentService",
    "EngagementService",
    "ProgressService",
    "RelationService",
    "ResourceService",
]
