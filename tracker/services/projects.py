from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tracker.config import settings
from tracker.database import utcnow
from tracker.exceptions import BadRequestError, EmailDeliveryError, ForbiddenError, NotFoundError
from tracker.models.issue import Issue
from tracker.models.project import Project, ProjectInvite
from tracker.models.user import User
from tracker.schemas.project import ProjectCreate, ProjectUpdate
from tracker.services import attachments as attachment_service
from tracker.services import issues as issue_service
from tracker.services import validation
from tracker.utils import email as mailer
from tracker.utils.logger import get_logger
from tracker.utils.security import generate_token

logger = get_logger("projects")


async def get_project_by_id(db: AsyncSession, project_id: str) -> Project:
    result = await db.execute(
        select(Project)
        .filter(Project.id == project_id)
        .execution_options(populate_existing=True)
    )
    project = result.scalars().first()
    if not project:
        raise NotFoundError("Project not found")
    return project


async def ensure_key_available(db: AsyncSession, key: str, exclude_id: str | None = None):
    """
    A key is free when no other project holds it and no other project's
    issues still carry it as their prefix (issue keys survive a rename).
    """
    query = select(Project.id).filter(Project.key == key)
    if exclude_id:
        query = query.filter(Project.id != exclude_id)
    if await db.scalar(query):
        raise BadRequestError("Project with this key already exists")

    query = select(Issue.id).filter(Issue.key.like(f"{key}-%"))
    if exclude_id:
        query = query.filter(Issue.project_id != exclude_id)
    if await db.scalar(query.limit(1)):
        raise BadRequestError("Project key is still used by existing issues")


async def create_project(db: AsyncSession, owner: User, data: ProjectCreate) -> Project:
    key = validation.normalize_project_key(data.key)
    await ensure_key_available(db, key)

    project = Project(
        name=data.name,
        description=data.description,
        key=key,
        owner=owner,
        owner_id=owner.id,
        members=[owner],
        settings=dict(data.settings),
    )
    db.add(project)
    await db.flush()
    logger.info("Project %s created", key, extra={"user_id": owner.id})
    return project


async def list_projects(db: AsyncSession, user: User) -> list[Project]:
    result = await db.execute(
        select(Project)
        .filter(Project.members.any(User.id == user.id))
        .order_by(Project.created_at.desc())
    )
    return result.scalars().all()


async def update_project(db: AsyncSession, project: Project, data: ProjectUpdate) -> Project:
    if data.key:
        key = validation.normalize_project_key(data.key)
        if key != project.key:
            await ensure_key_available(db, key, exclude_id=project.id)
            project.key = key
    if data.name:
        project.name = data.name
    if data.description:
        project.description = data.description
    if data.settings is not None:
        project.settings = dict(data.settings)

    await db.flush()
    return project


async def delete_project(db: AsyncSession, project: Project):
    """
    Delete the project and run the full issue cascade for each of its issues.

    Stored objects go first; if storage fails nothing in the database has
    been touched yet.
    """
    result = await db.execute(select(Issue).filter(Issue.project_id == project.id))
    issues = result.scalars().all()

    attachments = []
    for issue in issues:
        attachments.extend(issue_service.cascade_attachments(issue))
    await attachment_service.purge_from_storage(attachments)

    for issue in issues:
        await db.delete(issue)
    await db.delete(project)
    logger.info("Project %s deleted with %d issues", project.key, len(issues))


async def invite_member(db: AsyncSession, project: Project, inviter: User, email: str, role: str | None):
    """
    Record a pending invite and email its accept link.

    The invite is committed before the email goes out. If delivery fails the
    invite is removed again and the failure is raised.
    """
    role = validation.validate_invite_role(role)

    existing_user = await db.scalar(select(User).filter(User.email == email))
    if existing_user and project.has_member(existing_user.id):
        raise BadRequestError("User is already a member of this project")

    now = utcnow()
    for pending in list(project.invites):
        if pending.email != email:
            continue
        if not pending.is_expired(now):
            raise BadRequestError("Invitation already sent to this email")
        # expired invites are no longer pending; replace it
        project.invites.remove(pending)

    token = generate_token()
    project.invites.append(ProjectInvite(
        email=email,
        role=role,
        invited_by_id=inviter.id,
        token=token,
        expires_at=now + timedelta(days=settings.INVITE_EXPIRE_DAYS),
    ))
    await db.commit()

    invite_url = f"{settings.FRONTEND_URL}/invite/{token}"
    html = mailer.link_email_body(
        f'You have been invited to join the project "{project.name}". '
        "Click the link below to accept the invitation:",
        invite_url,
        f"This invitation will expire in {settings.INVITE_EXPIRE_DAYS} days.",
    )

    try:
        await mailer.send_email_async(email, f"Invitation to join {project.name}", html)
    except EmailDeliveryError as e:
        project.invites = [i for i in project.invites if i.token != token]
        await db.commit()
        logger.warning("Invite to %s for %s rolled back", email, project.key)
        raise EmailDeliveryError("Failed to send invitation email") from e

    logger.info("Invite sent to %s for %s", email, project.key, extra={"user_id": inviter.id})


async def accept_invitation(db: AsyncSession, user: User, token: str) -> Project:
    result = await db.execute(
        select(ProjectInvite).filter(
            ProjectInvite.token == token,
            ProjectInvite.expires_at > utcnow(),
        )
    )
    invite = result.scalars().first()
    if not invite:
        raise BadRequestError("Invalid or expired invitation token")

    # a mismatch leaves the invite in place
    if invite.email != user.email:
        raise ForbiddenError("This invitation is not for your email address")

    project = await get_project_by_id(db, invite.project_id)
    if not project.has_member(user.id):
        project.members.append(user)
    project.invites = [i for i in project.invites if i.token != token]

    await db.flush()
    logger.info("%s joined %s", user.email, project.key, extra={"user_id": user.id})
    return project


async def remove_member(db: AsyncSession, project: Project, owner: User, member_id: str):
    if member_id == owner.id:
        raise BadRequestError("Project owner cannot remove themselves")

    member = next((m for m in project.members if m.id == member_id), None)
    if member is None:
        raise NotFoundError("Member not found in this project")

    project.members.remove(member)
    await db.flush()


async def get_project_stats(db: AsyncSession, project: Project) -> dict:
    """Issue counts by status and priority. Scans every issue of the project."""
    result = await db.execute(
        select(Issue.status, Issue.priority, func.count())
        .filter(Issue.project_id == project.id)
        .group_by(Issue.status, Issue.priority)
    )

    by_status = {s: 0 for s in validation.ISSUE_STATUSES}
    high_priority = 0
    total = 0
    for status, priority, count in result.all():
        total += count
        by_status[status] = by_status.get(status, 0) + count
        if priority in validation.HIGH_PRIORITIES:
            high_priority += count

    return {
        "totalIssues": total,
        "todoIssues": by_status["todo"],
        "inProgressIssues": by_status["inprogress"],
        "doneIssues": by_status["done"],
        "highPriorityIssues": high_priority,
        "memberCount": len(project.members),
    }
