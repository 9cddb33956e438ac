from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.dependencies import (
    get_db, get_current_user, project_member, issue_member, issue_actor, issue_deleter,
    ProjectContext, IssueContext,
)
from tracker.models.user import User as UserModel
from tracker.schemas.issue import (
    IssueAssign, IssueCreate, IssueResponse, IssueStatusUpdate, IssueUpdate,
)
from tracker.services import issues as issue_service
from tracker.utils.pagination import envelope, page_envelope

router = APIRouter(tags=["issues"])


async def issue_payload(db: AsyncSession, issue_id: str) -> IssueResponse:
    issue = await issue_service.get_issue_by_id(db, issue_id)
    return IssueResponse.model_validate(issue)


def issue_page(items, total, page, limit):
    return page_envelope([IssueResponse.model_validate(i) for i in items], total, page, limit)


@router.post("/projects/{project_id}/issues", status_code=status.HTTP_201_CREATED)
async def create_issue(
    data: IssueCreate,
    ctx: ProjectContext = Depends(project_member),
    db: AsyncSession = Depends(get_db),
):
    issue = await issue_service.create_issue(db, ctx.project, ctx.user, data)
    await db.commit()
    return envelope(await issue_payload(db, issue.id))


@router.get("/projects/{project_id}/issues")
async def list_project_issues(
    ctx: ProjectContext = Depends(project_member),
    db: AsyncSession = Depends(get_db),
    status: str | None = None,
    priority: str | None = None,
    assignee: str | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    items, total = await issue_service.list_project_issues(
        db, ctx.project, page, limit,
        status=status, priority=priority, assignee=assignee, search=search,
    )
    return issue_page(items, total, page, limit)


@router.get("/issues/assigned-to-me")
async def list_assigned_to_me(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
    status: str | None = None,
    priority: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    items, total = await issue_service.list_assigned_to(
        db, current_user, page, limit, status=status, priority=priority
    )
    return issue_page(items, total, page, limit)


@router.get("/issues/reported-by-me")
async def list_reported_by_me(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
    status: str | None = None,
    priority: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    items, total = await issue_service.list_reported_by(
        db, current_user, page, limit, status=status, priority=priority
    )
    return issue_page(items, total, page, limit)


@router.get("/issues/{issue_id}")
async def get_issue(ctx: IssueContext = Depends(issue_actor)):
    return envelope(IssueResponse.model_validate(ctx.issue))


@router.put("/issues/{issue_id}")
async def update_issue(
    data: IssueUpdate,
    ctx: IssueContext = Depends(issue_actor),
    db: AsyncSession = Depends(get_db),
):
    await issue_service.update_issue(db, ctx.issue, ctx.project, ctx.user, data)
    await db.commit()
    return envelope(await issue_payload(db, ctx.issue.id))


@router.delete("/issues/{issue_id}")
async def delete_issue(
    ctx: IssueContext = Depends(issue_deleter),
    db: AsyncSession = Depends(get_db),
):
    await issue_service.delete_issue(db, ctx.issue)
    await db.commit()
    return envelope(message="Issue and associated data deleted successfully")


@router.put("/issues/{issue_id}/assign")
async def assign_issue(
    data: IssueAssign,
    ctx: IssueContext = Depends(issue_member),
    db: AsyncSession = Depends(get_db),
):
    await issue_service.assign_issue(db, ctx.issue, ctx.project, data.target)
    await db.commit()
    return envelope(await issue_payload(db, ctx.issue.id))


@router.put("/issues/{issue_id}/status")
async def update_issue_status(
    data: IssueStatusUpdate,
    ctx: IssueContext = Depends(issue_member),
    db: AsyncSession = Depends(get_db),
):
    await issue_service.update_issue_status(db, ctx.issue, ctx.user, data.status)
    await db.commit()
    return envelope(await issue_payload(db, ctx.issue.id))
