# mpms/routers/reports.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from mpms.database import get_db
from mpms.core.auth import get_current_actor
from mpms.schemas.report import (
    DashboardStatsResponse, ProjectReportResponse, SprintReportResponse, UserWorkloadResponse,
)
from mpms.services import reports as report_service

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/dashboard", response_model=DashboardStatsResponse)
async def dashboard_stats(
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await report_service.compute_dashboard_stats(db, actor)


@router.get("/project/{project_id}", response_model=ProjectReportResponse)
async def project_report(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await report_service.get_project_report(db, actor, project_id)


@router.get("/sprint/{sprint_id}", response_model=SprintReportResponse)
async def sprint_report(
    sprint_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await report_service.compute_sprint_report(db, actor, sprint_id)


@router.get("/user/{user_id}", response_model=UserWorkloadResponse)
async def user_workload(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await report_service.compute_user_workload(db, actor, user_id)
