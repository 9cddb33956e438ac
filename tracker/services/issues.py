from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tracker.exceptions import BadRequestError, NotFoundError
from tracker.models.issue import Issue
from tracker.models.project import Project
from tracker.models.user import User
from tracker.schemas.issue import IssueCreate, IssueUpdate
from tracker.services import attachments as attachment_service
from tracker.services import permissions, validation
from tracker.utils.logger import get_logger
from tracker.utils.pagination import paginate

logger = get_logger("issues")


async def get_issue_by_id(db: AsyncSession, issue_id: str) -> Issue:
    result = await db.execute(
        select(Issue)
        .filter(Issue.id == issue_id)
        .execution_options(populate_existing=True)
    )
    issue = result.scalars().first()
    if not issue:
        raise NotFoundError("Issue not found")
    return issue


async def next_issue_number(db: AsyncSession, project: Project) -> int:
    """Atomically bump the project's issue counter and return the new value."""
    result = await db.execute(
        update(Project)
        .where(Project.id == project.id)
        .values(issue_seq=Project.issue_seq + 1)
        .returning(Project.issue_seq)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one()


def project_member_or_400(project: Project, user_id: str) -> User:
    member = next((m for m in project.members if m.id == user_id), None)
    if member is None:
        raise BadRequestError("Assignee must be a project member")
    return member


def set_assignee(issue: Issue, member: User | None):
    issue.assignee = member
    issue.assignee_id = member.id if member else None


async def create_issue(db: AsyncSession, project: Project, reporter: User, data: IssueCreate) -> Issue:
    priority = validation.validate_priority(data.priority)
    assignee = project_member_or_400(project, data.assignee) if data.assignee else None
    claimed = await attachment_service.claim_attachments(db, reporter, data.attachments)

    number = await next_issue_number(db, project)
    issue = Issue(
        key=f"{project.key}-{number}",
        title=data.title,
        description=data.description,
        status=validation.DEFAULT_STATUS,
        priority=priority,
        reporter=reporter,
        reporter_id=reporter.id,
        project=project,
        project_id=project.id,
        tags=list(data.tags),
        due_date=data.due_date,
        attachments=claimed,
    )
    set_assignee(issue, assignee)
    db.add(issue)
    await db.flush()
    logger.info("Issue %s created", issue.key, extra={"user_id": reporter.id})
    return issue


async def update_issue(db: AsyncSession, issue: Issue, project: Project, user: User, data: IssueUpdate) -> Issue:
    """
    Partial update. Empty title/description/status/priority keep the old
    value; ``assignee`` and ``due_date`` go by key presence, so an explicit
    null clears them.
    """
    provided = data.model_fields_set

    if data.title:
        issue.title = data.title
    if data.description:
        issue.description = data.description
    if data.status:
        issue.status = validation.validate_status(data.status)
    if data.priority:
        issue.priority = validation.validate_priority(data.priority)
    if "assignee" in provided:
        set_assignee(issue, project_member_or_400(project, data.assignee) if data.assignee else None)
    if data.tags is not None:
        issue.tags = list(data.tags)
    if "due_date" in provided:
        issue.due_date = data.due_date
    if data.attachments is not None:
        issue.attachments = await attachment_service.claim_attachments(
            db, user, data.attachments, issue_id=issue.id
        )

    await db.flush()
    return issue


def cascade_attachments(issue: Issue) -> list:
    """Attachments removed along with the issue: its own and its comments'."""
    found = list(issue.attachments)
    for comment in issue.comments:
        found.extend(comment.attachments)
    return found


async def delete_issue(db: AsyncSession, issue: Issue):
    attachments = cascade_attachments(issue)
    await attachment_service.purge_from_storage(attachments)
    # comments and attachment rows follow through the ORM cascades
    await db.delete(issue)
    logger.info(
        "Issue %s deleted with %d comments and %d attachments",
        issue.key, len(issue.comments), len(attachments),
    )


async def assign_issue(db: AsyncSession, issue: Issue, project: Project, assignee_id: str | None) -> Issue:
    set_assignee(issue, project_member_or_400(project, assignee_id) if assignee_id else None)
    await db.flush()
    return issue


async def update_issue_status(db: AsyncSession, issue: Issue, user: User, status: str) -> Issue:
    # assignee only, even though owner/reporter can set status via update_issue
    permissions.require_issue_assignee(issue, user)
    issue.status = validation.validate_status(status)
    await db.flush()
    return issue


def _apply_filters(query, status=None, priority=None):
    if status:
        query = query.filter(Issue.status == status)
    if priority:
        query = query.filter(Issue.priority == priority)
    return query


async def list_project_issues(
    db: AsyncSession,
    project: Project,
    page: int,
    limit: int,
    status: str | None = None,
    priority: str | None = None,
    assignee: str | None = None,
    search: str | None = None,
):
    query = _apply_filters(select(Issue).filter(Issue.project_id == project.id), status, priority)
    if assignee:
        query = query.filter(Issue.assignee_id == assignee)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Issue.title.ilike(pattern),
            Issue.description.ilike(pattern),
            Issue.key.ilike(pattern),
        ))
    query = query.order_by(Issue.created_at.desc())
    return await paginate(db, query, page, limit)


async def list_assigned_to(db: AsyncSession, user: User, page: int, limit: int, status=None, priority=None):
    query = _apply_filters(select(Issue).filter(Issue.assignee_id == user.id), status, priority)
    return await paginate(db, query.order_by(Issue.created_at.desc()), page, limit)


async def list_reported_by(db: AsyncSession, user: User, page: int, limit: int, status=None, priority=None):
    query = _apply_filters(select(Issue).filter(Issue.reporter_id == user.id), status, priority)
    return await paginate(db, query.order_by(Issue.created_at.desc()), page, limit)
