# mpms/routers/sprints.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from mpms.database import get_db
from mpms.core.auth import get_current_actor
from mpms.schemas.sprint import (
    SprintCreate, SprintUpdate, SprintResponse, SprintStats, SprintWithStats, SprintDetailResponse,
)
from mpms.schemas.task import TaskResponse
from mpms.services import sprints as sprint_service

router = APIRouter(prefix="/sprints", tags=["sprints"])


def _stats(stats) -> SprintStats:
    return SprintStats(
        total_tasks=stats.total_tasks,
        completed_tasks=stats.completed_tasks,
        progress=stats.progress,
    )


@router.post("", response_model=SprintResponse, status_code=status.HTTP_201_CREATED)
async def create_sprint(
    sprint_in: SprintCreate,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await sprint_service.create_sprint(db, actor, sprint_in)


@router.get("", response_model=List[SprintWithStats])
async def list_sprints(
    project_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    rows = await sprint_service.list_sprints(db, actor, project_id=project_id)
    return [
        SprintWithStats(**SprintResponse.model_validate(sprint).model_dump(), stats=_stats(stats))
        for sprint, stats in rows
    ]


@router.get("/{sprint_id}", response_model=SprintDetailResponse)
async def get_sprint(
    sprint_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    sprint, tasks, stats = await sprint_service.get_sprint(db, actor, sprint_id)
    return SprintDetailResponse(
        **SprintResponse.model_validate(sprint).model_dump(),
        stats=_stats(stats),
        tasks=[TaskResponse.model_validate(t) for t in tasks],
    )


@router.put("/{sprint_id}", response_model=SprintResponse)
async def update_sprint(
    sprint_id: int,
    sprint_in: SprintUpdate,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await sprint_service.update_sprint(db, actor, sprint_id, sprint_in)


@router.delete("/{sprint_id}")
async def delete_sprint(
    sprint_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    await sprint_service.delete_sprint(db, actor, sprint_id)
    return {"message": "Sprint deleted successfully"}
