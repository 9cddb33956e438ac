from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.dependencies import get_db, get_current_user
from tracker.models.user import User as UserModel
from tracker.schemas.attachment import AttachmentResponse
from tracker.services import attachments as attachment_service
from tracker.services import permissions
from tracker.utils.pagination import envelope, page_envelope

router = APIRouter(prefix="/attachments", tags=["attachments"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_attachment(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user)
):
    attachment = await attachment_service.upload_attachment(db, current_user, file)
    await db.commit()
    return envelope(AttachmentResponse.model_validate(attachment))


@router.get("/my-attachments")
async def list_my_attachments(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    items, total = await attachment_service.list_my_attachments(db, current_user, page, limit)
    return page_envelope([AttachmentResponse.model_validate(a) for a in items], total, page, limit)


@router.delete("/{attachment_id}")
async def delete_attachment(
    attachment_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user)
):
    attachment = await attachment_service.get_attachment_by_id(db, attachment_id)
    permissions.require_attachment_delete(attachment, current_user)
    await attachment_service.delete_attachment(db, attachment)
    await db.commit()
    return envelope(message="Attachment deleted successfully")
