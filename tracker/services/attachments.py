from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tracker.config import settings
from tracker.exceptions import BadRequestError, NotFoundError
from tracker.models.attachment import Attachment
from tracker.models.user import User
from tracker.services import validation
from tracker.utils import storage
from tracker.utils.logger import get_logger
from tracker.utils.pagination import paginate

logger = get_logger("attachments")


async def get_attachment_by_id(db: AsyncSession, attachment_id: str) -> Attachment:
    attachment = await db.get(Attachment, attachment_id)
    if not attachment:
        raise NotFoundError("Attachment not found")
    return attachment


async def upload_attachment(db: AsyncSession, user: User, file: UploadFile) -> Attachment:
    """
    Validate and store an uploaded file, then record its metadata.

    The attachment starts detached; issues and comments link it later by id.
    Nothing is recorded when the storage upload fails. At most one byte past
    the size limit is ever read into memory.
    """
    mime_type = file.content_type
    validation.validate_upload(file.size or 0, mime_type)

    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    validation.validate_upload(len(content), mime_type)

    stored = await storage.upload_file(content, file.filename or "upload")

    attachment = Attachment(
        url=stored.url,
        type=validation.attachment_type_for(stored.resource_type, mime_type),
        public_id=stored.public_id,
        uploaded_by_id=user.id,
        original_filename=file.filename,
        mime_type=mime_type,
        size=len(content),
    )
    db.add(attachment)
    await db.flush()
    logger.info("Attachment %s uploaded", attachment.id, extra={"user_id": user.id})
    return attachment


def _linkable(attachment: Attachment, issue_id: str | None, comment_id: str | None) -> bool:
    if not attachment.is_linked:
        return True
    if issue_id is not None and attachment.issue_id == issue_id:
        return True
    return comment_id is not None and attachment.comment_id == comment_id


async def claim_attachments(
    db: AsyncSession,
    user: User,
    attachment_ids: list[str] | None,
    issue_id: str | None = None,
    comment_id: str | None = None,
) -> list[Attachment]:
    """
    Resolve attachment ids for linking onto an issue or comment.

    All or nothing: every id must exist, be uploaded by ``user`` and not be
    linked to some other issue or comment.
    """
    if not attachment_ids:
        return []

    wanted = list(dict.fromkeys(attachment_ids))
    result = await db.execute(
        select(Attachment).filter(
            Attachment.id.in_(wanted),
            Attachment.uploaded_by_id == user.id,
        )
    )
    found = {a.id: a for a in result.scalars().all()}

    valid = [
        found[a_id] for a_id in wanted
        if a_id in found and _linkable(found[a_id], issue_id, comment_id)
    ]
    if len(valid) != len(wanted):
        raise BadRequestError("Some attachments are invalid or not owned by you")
    return valid


async def purge_from_storage(attachments: list[Attachment]):
    """
    Remove the stored objects behind ``attachments``.

    Runs before the metadata rows are deleted. A storage failure aborts the
    request, so every row survives, including rows whose objects were already
    removed earlier in the loop. A retry completes since "not found" counts as
    deleted.
    """
    for attachment in attachments:
        await storage.destroy_file(attachment.public_id, attachment.storage_resource_type)
    if attachments:
        logger.info("Removed %d stored objects", len(attachments))


async def delete_attachment(db: AsyncSession, attachment: Attachment):
    await purge_from_storage([attachment])
    await db.delete(attachment)


async def list_my_attachments(db: AsyncSession, user: User, page: int, limit: int):
    query = (
        select(Attachment)
        .filter(Attachment.uploaded_by_id == user.id)
        .order_by(Attachment.created_at.desc())
    )
    return await paginate(db, query, page, limit)
