from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError, jwt
from tracker.database import get_db as db_session
from tracker.config import settings
from tracker.exceptions import UnauthorizedError
from tracker.models.user import User as UserModel
from tracker.models.project import Project
from tracker.models.issue import Issue
from tracker.models.comment import Comment
from tracker.schemas.user import TokenData
from tracker.services import permissions
from tracker.services.projects import get_project_by_id
from tracker.services.issues import get_issue_by_id
from tracker.services.comments import get_comment_by_id

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")

def get_db(db: AsyncSession = Depends(db_session)):
    return db

async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: str = Depends(oauth2_scheme)
) -> UserModel:
    credentials_exception = UnauthorizedError("Not authorized, token failed")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        token_data = TokenData(user_id=user_id)
    except JWTError:
        raise credentials_exception

    user = await db.get(UserModel, token_data.user_id)
    if user is None:
        raise credentials_exception
    return user


# ── Request contexts ────────────────────────────────────
# Each guard loads its resource (404 first), checks the relationship (403)
# and hands the loaded objects to the route as one explicit value.

@dataclass
class ProjectContext:
    user: UserModel
    project: Project


@dataclass
class IssueContext:
    user: UserModel
    project: Project
    issue: Issue


@dataclass
class CommentContext:
    user: UserModel
    project: Project
    issue: Issue
    comment: Comment


async def project_member(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> ProjectContext:
    project = await get_project_by_id(db, project_id)
    permissions.require_project_member(project, user)
    return ProjectContext(user=user, project=project)


async def project_owner(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> ProjectContext:
    project = await get_project_by_id(db, project_id)
    permissions.require_project_owner(project, user)
    return ProjectContext(user=user, project=project)


async def issue_member(
    issue_id: str,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> IssueContext:
    """Any member of the issue's project."""
    issue = await get_issue_by_id(db, issue_id)
    permissions.require_project_member(issue.project, user)
    return IssueContext(user=user, project=issue.project, issue=issue)


async def issue_actor(
    request: Request,
    issue_id: str,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> IssueContext:
    """Members may read; owner, reporter or assignee may write."""
    issue = await get_issue_by_id(db, issue_id)
    project = issue.project
    permissions.require_project_member(project, user)
    if request.method != "GET":
        permissions.require_issue_actor(issue, project, user)
    return IssueContext(user=user, project=project, issue=issue)


async def issue_deleter(
    issue_id: str,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> IssueContext:
    issue = await get_issue_by_id(db, issue_id)
    permissions.require_issue_delete(issue, issue.project, user)
    return IssueContext(user=user, project=issue.project, issue=issue)


async def comment_actor(
    request: Request,
    comment_id: str,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> CommentContext:
    """Members may read; project owner or comment author may write."""
    comment = await get_comment_by_id(db, comment_id)
    issue = comment.issue
    project = issue.project
    permissions.require_project_member(project, user)
    if request.method != "GET":
        permissions.require_comment_actor(comment, project, user)
    return CommentContext(user=user, project=project, issue=issue, comment=comment)
