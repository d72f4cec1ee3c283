from fastapi import APIRouter, Depends, status

from src.auth import AuthContext, auth_with_right
from src.database.session import DbSession
from src.middleware.security import api_route_limit
from src.schemas import ApiResponse

from .schemas import AttachmentCreate, AttachmentResponse, AttachmentsSize, AttachmentUpdate
from .services import AttachmentService


router = APIRouter(
    prefix="/api/v1/library-attachments", tags=["library-attachments"], dependencies=[Depends(api_route_limit)]
)

manage_library = auth_with_right("manageLibrary")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_attachment(
    data: AttachmentCreate, auth: AuthContext = Depends(manage_library)
) -> ApiResponse[AttachmentResponse]:
    attachment = await AttachmentService(auth.session).create(data)
    return ApiResponse(data=attachment, message="Attachment created successfully")


@router.get("/resource/{resource_id}")
async def list_resource_attachments(resource_id: str, session: DbSession) -> ApiResponse[list[AttachmentResponse]]:
    attachments = await AttachmentService(session).list_for_resource(resource_id)
    return ApiResponse(data=attachments, message="Attachments retrieved successfully")


@router.get("/resource/{resource_id}/size")
async def resource_attachments_size(resource_id: str, session: DbSession) -> ApiResponse[AttachmentsSize]:
    total = await AttachmentService(session).total_size(resource_id)
    return ApiResponse(data=AttachmentsSize(total_size=total))


@router.get("/{attachment_id}")
async def get_attachment(attachment_id: str, session: DbSession) -> ApiResponse[AttachmentResponse]:
    attachment = await AttachmentService(session).get(attachment_id)
    return ApiResponse(data=attachment, message="Attachment retrieved successfully")


@router.put("/{attachment_id}")
async def update_attachment(
    attachment_id: str, data: AttachmentUpdate, auth: AuthContext = Depends(manage_library)
) -> ApiResponse[AttachmentResponse]:
    attachment = await AttachmentService(auth.session).update(attachment_id, data)
    return ApiResponse(data=attachment, message="Attachment updated successfully")


@router.delete("/{attachment_id}")
async def delete_attachment(
    attachment_id: str, auth: AuthContext = Depends(manage_library)
) -> ApiResponse[None]:
    await AttachmentService(auth.session).delete(attachment_id)
    return ApiResponse(data=None, message="Attachment deleted successfully")
