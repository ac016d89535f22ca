# mpms/routers/team.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from mpms.database import get_db
from mpms.core.auth import get_current_actor
from mpms.models.enums import UserRole
from mpms.schemas.user import (
    TeamMemberCreate, TeamMemberUpdate, TeamMemberResponse, TeamMemberStats, UserResponse,
)
from mpms.services import team as team_service

router = APIRouter(prefix="/team", tags=["team"])


@router.get("", response_model=List[TeamMemberResponse])
async def list_team_members(
    search: Optional[str] = None,
    department: Optional[str] = None,
    role: Optional[UserRole] = None,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    rows = await team_service.list_team_members(
        db, actor, search=search, department=department, role=role.value if role else None
    )
    return [
        TeamMemberResponse(**UserResponse.model_validate(user).model_dump(), stats=TeamMemberStats(**stats))
        for user, stats in rows
    ]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_team_member(
    user_in: TeamMemberCreate,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await team_service.create_team_member(db, actor, user_in)


@router.put("/{user_id}", response_model=UserResponse)
async def update_team_member(
    user_id: int,
    user_in: TeamMemberUpdate,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await team_service.update_team_member(db, actor, user_id, user_in)


@router.delete("/{user_id}")
async def deactivate_team_member(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    await team_service.deactivate_team_member(db, actor, user_id)
    return {"message": "Team member deactivated successfully"}
