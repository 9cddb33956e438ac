from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.dependencies import (
    get_db, get_current_user, issue_member, comment_actor, IssueContext, CommentContext,
)
from tracker.models.user import User as UserModel
from tracker.schemas.comment import CommentCreate, CommentResponse, CommentUpdate, MyCommentResponse
from tracker.services import comments as comment_service
from tracker.utils.pagination import envelope, page_envelope

router = APIRouter(tags=["comments"])


async def comment_payload(db: AsyncSession, comment_id: str) -> CommentResponse:
    comment = await comment_service.get_comment_by_id(db, comment_id)
    return CommentResponse.model_validate(comment)


@router.post("/issues/{issue_id}/comments", status_code=status.HTTP_201_CREATED)
async def create_comment(
    data: CommentCreate,
    ctx: IssueContext = Depends(issue_member),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.create_comment(db, ctx.issue, ctx.user, data)
    await db.commit()
    return envelope(await comment_payload(db, comment.id))


@router.get("/issues/{issue_id}/comments")
async def list_issue_comments(
    ctx: IssueContext = Depends(issue_member),
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    items, total = await comment_service.list_issue_comments(db, ctx.issue, page, limit)
    return page_envelope([CommentResponse.model_validate(c) for c in items], total, page, limit)


@router.get("/comments/my-comments")
async def list_my_comments(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    items, total = await comment_service.list_my_comments(db, current_user, page, limit)
    return page_envelope([MyCommentResponse.model_validate(c) for c in items], total, page, limit)


@router.get("/comments/{comment_id}")
async def get_comment(ctx: CommentContext = Depends(comment_actor)):
    return envelope(CommentResponse.model_validate(ctx.comment))


@router.put("/comments/{comment_id}")
async def update_comment(
    data: CommentUpdate,
    ctx: CommentContext = Depends(comment_actor),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.update_comment(db, ctx.comment, ctx.user, data)
    await db.commit()
    return envelope(await comment_payload(db, ctx.comment.id))


@router.delete("/comments/{comment_id}")
async def delete_comment(
    ctx: CommentContext = Depends(comment_actor),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, ctx.comment)
    await db.commit()
    return envelope(message="Comment and associated attachments deleted successfully")
