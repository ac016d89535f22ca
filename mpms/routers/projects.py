# mpms/routers/projects.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from mpms.database import get_db
from mpms.core.auth import get_current_actor
from mpms.models.enums import ProjectStatus
from mpms.schemas.project import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectStats, ProjectWithStats, TeamMemberRequest,
)
from mpms.services import projects as project_service


router = APIRouter(prefix="/projects", tags=["projects"])


def _with_stats(project, stats) -> ProjectWithStats:
    return ProjectWithStats(
        **ProjectResponse.model_validate(project).model_dump(),
        stats=ProjectStats(
            total_tasks=stats.total_tasks,
            completed_tasks=stats.completed_tasks,
            in_progress_tasks=stats.in_progress_tasks,
            progress=stats.progress,
        ),
    )


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await project_service.create_project(db, actor, project_in)


@router.get("", response_model=List[ProjectWithStats])
async def list_projects(
    status: Optional[ProjectStatus] = None,
    client: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    rows = await project_service.list_projects(
        db, actor, status=status.value if status else None, client=client, search=search
    )
    return [_with_stats(project, stats) for project, stats in rows]


@router.get("/{project_id}", response_model=ProjectWithStats)
async def get_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    project, stats = await project_service.get_project(db, actor, project_id)
    return _with_stats(project, stats)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await project_service.update_project(db, actor, project_id, project_in)


@router.delete("/{project_id}")
async def delete_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    await project_service.delete_project(db, actor, project_id)
    return {"message": "Project deleted successfully"}


@router.post("/{project_id}/team", response_model=ProjectResponse)
async def add_team_member(
    project_id: int,
    member_in: TeamMemberRequest,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await project_service.add_team_member(db, actor, project_id, member_in.user_id)


@router.delete("/{project_id}/team/{user_id}", response_model=ProjectResponse)
async def remove_team_member(
    project_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await project_service.remove_team_member(db, actor, project_id, user_id)
