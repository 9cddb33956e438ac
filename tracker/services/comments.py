from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tracker.exceptions import NotFoundError
from tracker.models.comment import Comment
from tracker.models.user import User
from tracker.schemas.comment import CommentCreate, CommentUpdate
from tracker.services import attachments as attachment_service
from tracker.utils.logger import get_logger
from tracker.utils.pagination import paginate

logger = get_logger("comments")


async def get_comment_by_id(db: AsyncSession, comment_id: str) -> Comment:
    result = await db.execute(
        select(Comment)
        .filter(Comment.id == comment_id)
        .execution_options(populate_existing=True)
    )
    comment = result.scalars().first()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


async def create_comment(db: AsyncSession, issue, author: User, data: CommentCreate) -> Comment:
    claimed = await attachment_service.claim_attachments(db, author, data.attachments)

    comment = Comment(
        content=data.content,
        author=author,
        author_id=author.id,
        issue_id=issue.id,
        attachments=claimed,
    )
    # joins issue.comments through the back-reference
    comment.issue = issue
    db.add(comment)
    await db.flush()
    logger.info("Comment %s added to %s", comment.id, issue.key, extra={"user_id": author.id})
    return comment


async def update_comment(db: AsyncSession, comment: Comment, user: User, data: CommentUpdate) -> Comment:
    if data.content:
        comment.content = data.content

    # an explicit list replaces the links; dropped attachments are detached, not deleted
    if data.attachments is not None:
        comment.attachments = await attachment_service.claim_attachments(
            db, user, data.attachments, comment_id=comment.id
        )

    await db.flush()
    return comment


async def delete_comment(db: AsyncSession, comment: Comment):
    await attachment_service.purge_from_storage(list(comment.attachments))
    await db.delete(comment)
    logger.info("Comment %s deleted with %d attachments", comment.id, len(comment.attachments))


async def list_issue_comments(db: AsyncSession, issue, page: int, limit: int):
    query = (
        select(Comment)
        .filter(Comment.issue_id == issue.id)
        .order_by(Comment.created_at.asc())
    )
    return await paginate(db, query, page, limit)


async def list_my_comments(db: AsyncSession, user: User, page: int, limit: int):
    query = (
        select(Comment)
        .filter(Comment.author_id == user.id)
        .order_by(Comment.created_at.desc())
    )
    return await paginate(db, query, page, limit)
