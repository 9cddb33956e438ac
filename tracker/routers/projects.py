from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.dependencies import (
    get_db, get_current_user, project_member, project_owner, ProjectContext,
)
from tracker.models.user import User as UserModel
from tracker.schemas.project import (
    InviteCreate, ProjectCreate, ProjectResponse, ProjectStats, ProjectUpdate,
)
from tracker.services import projects as project_service
from tracker.utils.pagination import envelope

router = APIRouter(prefix="/projects", tags=["projects"])


async def project_payload(db: AsyncSession, project_id: str) -> ProjectResponse:
    project = await project_service.get_project_by_id(db, project_id)
    return ProjectResponse.model_validate(project)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user)
):
    project = await project_service.create_project(db, current_user, data)
    await db.commit()
    return envelope(await project_payload(db, project.id))


@router.get("")
async def list_projects(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user)
):
    projects = await project_service.list_projects(db, current_user)
    data = [ProjectResponse.model_validate(p) for p in projects]
    return envelope(data, count=len(data))


# declared before /{project_id} routes so the literal path wins
@router.post("/accept-invite/{token}")
async def accept_invitation(
    token: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user)
):
    project = await project_service.accept_invitation(db, current_user, token)
    await db.commit()
    return envelope(await project_payload(db, project.id), message="Successfully joined the project")


@router.get("/{project_id}")
async def get_project(ctx: ProjectContext = Depends(project_member)):
    return envelope(ProjectResponse.model_validate(ctx.project))


@router.put("/{project_id}")
async def update_project(
    data: ProjectUpdate,
    ctx: ProjectContext = Depends(project_owner),
    db: AsyncSession = Depends(get_db),
):
    project = await project_service.update_project(db, ctx.project, data)
    await db.commit()
    return envelope(await project_payload(db, project.id))


@router.delete("/{project_id}")
async def delete_project(
    ctx: ProjectContext = Depends(project_owner),
    db: AsyncSession = Depends(get_db),
):
    await project_service.delete_project(db, ctx.project)
    await db.commit()
    return envelope(message="Project and associated issues deleted successfully")


@router.get("/{project_id}/stats")
async def get_project_stats(
    ctx: ProjectContext = Depends(project_member),
    db: AsyncSession = Depends(get_db),
):
    stats = await project_service.get_project_stats(db, ctx.project)
    return envelope(ProjectStats(**stats))


@router.post("/{project_id}/invite")
async def invite_member(
    data: InviteCreate,
    ctx: ProjectContext = Depends(project_owner),
    db: AsyncSession = Depends(get_db),
):
    await project_service.invite_member(db, ctx.project, ctx.user, data.email, data.role)
    return envelope(message="Invitation sent successfully")


@router.delete("/{project_id}/members/{member_id}")
async def remove_member(
    member_id: str,
    ctx: ProjectContext = Depends(project_owner),
    db: AsyncSession = Depends(get_db),
):
    await project_service.remove_member(db, ctx.project, ctx.user, member_id)
    await db.commit()
    return envelope(message="Member removed successfully")
