# mpms/services/reports.py
"""Report read paths; counting is left to the statistics module."""
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from mpms.config import settings
from mpms.models.enums import ProjectStatus
from mpms.models.project import Project
from mpms.models.sprint import Sprint
from mpms.models.task import Task
from mpms.models.user import User
from mpms.schemas.report import (
    ActivityItem, BurnDownPoint, DashboardOverview, DashboardStatsResponse, DeadlineItem,
    ProjectReportResponse, ProjectSummary, SprintReportResponse, SprintSummary,
    TaskStatisticsResponse, UserWorkloadResponse, WorkloadProject,
)
from mpms.services import statistics
from mpms.services.authorization import Actor, Action, can_act, ensure_allowed, is_team_member
from mpms.services.store import fetch_one


def _stats_response(stats: statistics.TaskStatistics) -> TaskStatisticsResponse:
    return TaskStatisticsResponse(**stats.as_dict())


def _activity(tasks: List[Any], limit: int) -> List[ActivityItem]:
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    recent = sorted(tasks, key=lambda t: (statistics.utc(t.updated_at) or epoch, t.id), reverse=True)
    return [
        ActivityItem(
            id=t.id, title=t.title, project_id=t.project_id, status=t.status,
            assignee_ids=t.assignee_ids or [], updated_at=t.updated_at,
        )
        for t in recent[:limit]
    ]


async def compute_project_stats(
    db: AsyncSession,
    project_id: int,
    now: Optional[datetime] = None,
    visible: Optional[statistics.TaskPredicate] = None,
) -> ProjectReportResponse:
    now = now or datetime.now(timezone.utc)
    project = await fetch_one(db, Project, project_id, "Project")
    tasks = (await db.execute(select(Task).where(Task.project_id == project.id))).scalars().all()

    stats = statistics.summarize(tasks, now=now)
    return ProjectReportResponse(
        project=ProjectSummary(
            id=project.id, title=project.title, client=project.client, status=project.status,
            start_date=project.start_date, end_date=project.end_date, progress=stats.progress,
        ),
        statistics=_stats_response(stats),
        upcoming_deadlines=[
            DeadlineItem(id=t.id, title=t.title, due_date=t.due_date, status=t.status, assignee_ids=t.assignee_ids or [])
            for t in statistics.upcoming_deadlines(
                [t for t in tasks if visible is None or visible(t)], now, settings.UPCOMING_DEADLINE_LIMIT
            )
        ],
    )


async def get_project_report(db: AsyncSession, actor: Actor, project_id: int, now: Optional[datetime] = None) -> ProjectReportResponse:
    project = await fetch_one(db, Project, project_id, "Project")
    ensure_allowed(actor, Action.VIEW, project)
    # statistics stay project-wide; listed tasks are only those the actor may open
    return await compute_project_stats(db, project_id, now=now, visible=lambda t: bool(can_act(actor, Action.VIEW, t)))


async def compute_sprint_report(db: AsyncSession, actor: Actor, sprint_id: int, now: Optional[datetime] = None) -> SprintReportResponse:
    now = now or datetime.now(timezone.utc)
    sprint = await fetch_one(db, Sprint, sprint_id, "Sprint")
    ensure_allowed(actor, Action.VIEW, sprint)
    tasks = (await db.execute(select(Task).where(Task.sprint_id == sprint.id))).scalars().all()

    stats = statistics.summarize(tasks, now=now)
    velocity = statistics.sprint_velocity(stats.completed_tasks, sprint.start_date, now)
    total_days = statistics.days_between(sprint.start_date, sprint.end_date)
    days_passed = statistics.days_between(sprint.start_date, now)

    return SprintReportResponse(
        sprint=SprintSummary(
            id=sprint.id, title=sprint.title, sprint_number=sprint.sprint_number, project_id=sprint.project_id,
            start_date=sprint.start_date, end_date=sprint.end_date, goal=sprint.goal, progress=stats.progress,
        ),
        statistics=_stats_response(stats),
        days_remaining=max(0, total_days - days_passed),
        velocity=round(velocity, 2),
        projected_completion_days=statistics.projected_completion_days(
            stats.total_tasks - stats.completed_tasks, velocity
        ),
        burn_down=[BurnDownPoint(**p) for p in statistics.burn_down(tasks, sprint.start_date, sprint.end_date, now)],
        top_performers=statistics.done_count_by_assignee(tasks),
    )


async def compute_user_workload(db: AsyncSession, actor: Actor, user_id: int, now: Optional[datetime] = None) -> UserWorkloadResponse:
    user = await fetch_one(db, User, user_id, "User")
    ensure_allowed(actor, Action.VIEW, user)

    all_tasks = (await db.execute(select(Task))).scalars().all()
    tasks = [t for t in all_tasks if statistics.assigned_to(user.id)(t)]
    stats = statistics.summarize(tasks, now=now)

    project_ids = list(dict.fromkeys(t.project_id for t in tasks))
    titles = {}
    if project_ids:
        rows = await db.execute(select(Project.id, Project.title).where(Project.id.in_(project_ids)))
        titles = {row.id: row.title for row in rows}

    projects = []
    for pid in project_ids:
        in_project = [t for t in tasks if t.project_id == pid]
        done = sum(1 for t in in_project if statistics.is_done(t))
        projects.append(WorkloadProject(
            project_id=pid, title=titles.get(pid), completed=done, total=len(in_project),
            completion_rate=statistics.round_percent(done, len(in_project)),
        ))

    return UserWorkloadResponse(
        user_id=user.id, name=user.name, email=user.email, role=user.role, department=user.department,
        statistics=_stats_response(stats),
        pending_tasks=stats.pending_tasks,
        projects=projects,
        recent_activity=_activity(tasks, 10),
    )


async def compute_dashboard_stats(db: AsyncSession, actor: Actor, now: Optional[datetime] = None) -> DashboardStatsResponse:
    """Organisation-wide figures, narrowed to the actor's own work for members."""
    projects = (await db.execute(select(Project))).scalars().all()
    tasks = (await db.execute(select(Task))).scalars().all()

    if actor.is_member:
        projects = [p for p in projects if is_team_member(actor, p)]
        where = statistics.assigned_to(actor.id)
    else:
        where = None
    scoped_tasks = [t for t in tasks if where is None or where(t)]
    stats = statistics.summarize(scoped_tasks, now=now)

    total_users = (await db.execute(select(func.count(User.id)).where(User.is_active.is_(True)))).scalar_one()
    total_sprints = (await db.execute(select(func.count(Sprint.id)))).scalar_one()

    return DashboardStatsResponse(
        overview=DashboardOverview(
            total_projects=len(projects),
            active_projects=sum(1 for p in projects if p.status == ProjectStatus.ACTIVE.value),
            total_tasks=stats.total_tasks,
            total_users=total_users,
            total_sprints=total_sprints,
        ),
        statistics=_stats_response(stats),
        recent_activities=_activity(scoped_tasks, settings.RECENT_ACTIVITY_LIMIT),
    )
