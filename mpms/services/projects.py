# mpms/services/projects.py
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from mpms.core.errors import InvariantViolation, NotFoundError, ValidationError
from mpms.models.comment import Comment
from mpms.models.project import Project
from mpms.models.sprint import Sprint
from mpms.models.task import Task
from mpms.models.user import User
from mpms.schemas.project import ProjectCreate, ProjectUpdate
from mpms.services import statistics
from mpms.services.authorization import Actor, Action, ensure_allowed, is_team_member
from mpms.services.store import fetch_one, ensure_users_exist, unique_ids

logger = logging.getLogger(__name__)


async def _tasks_by_project(db: AsyncSession, project_ids: List[int]) -> Dict[int, List[Task]]:
    grouped: Dict[int, List[Task]] = {pid: [] for pid in project_ids}
    if not project_ids:
        return grouped
    result = await db.execute(select(Task).where(Task.project_id.in_(project_ids)))
    for task in result.scalars():
        grouped[task.project_id].append(task)
    return grouped


async def _active_user(db: AsyncSession, user_id: int) -> User:
    user = await fetch_one(db, User, user_id, "User")
    if not user.is_active:
        raise ValidationError("User account is deactivated", code="inactive_user")
    return user


async def create_project(db: AsyncSession, actor: Actor, project_in: ProjectCreate) -> Project:
    ensure_allowed(actor, Action.CREATE, Project())

    manager_id = project_in.manager_id or actor.id
    await _active_user(db, manager_id)
    team_ids = unique_ids([manager_id, *project_in.team_ids])
    await ensure_users_exist(db, team_ids)

    project = Project(
        title=project_in.title,
        client=project_in.client,
        description=project_in.description,
        start_date=project_in.start_date,
        end_date=project_in.end_date,
        budget=project_in.budget,
        status=project_in.status,
        thumbnail=project_in.thumbnail,
        manager_id=manager_id,
        team_ids=team_ids,
        progress=0,
    )
    db.add(project)
    await db.commit()
    await db.refresh(project)
    logger.info("Project created id=%s manager=%s by actor=%s", project.id, manager_id, actor.id)
    return project


async def list_projects(
    db: AsyncSession,
    actor: Actor,
    status: Optional[str] = None,
    client: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Tuple[Project, statistics.TaskStatistics]]:
    query = select(Project)
    if status:
        query = query.where(Project.status == status)
    if client:
        query = query.where(Project.client.ilike(f"%{client}%"))
    if search:
        pattern = f"%{search}%"
        query = query.where(
            Project.title.ilike(pattern)
            | Project.description.ilike(pattern)
            | Project.client.ilike(pattern)
        )

    result = await db.execute(query.order_by(Project.created_at.desc(), Project.id.desc()))
    projects = [p for p in result.scalars() if not actor.is_member or is_team_member(actor, p)]

    tasks = await _tasks_by_project(db, [p.id for p in projects])
    return [(p, statistics.summarize(tasks[p.id])) for p in projects]


async def get_project(db: AsyncSession, actor: Actor, project_id: int) -> Tuple[Project, statistics.TaskStatistics]:
    project = await fetch_one(db, Project, project_id, "Project")
    ensure_allowed(actor, Action.VIEW, project)

    tasks = await _tasks_by_project(db, [project.id])
    stats = statistics.summarize(tasks[project.id])
    if project.progress != stats.progress:
        project.progress = stats.progress
        await db.commit()
        await db.refresh(project)
    return project, stats


async def update_project(db: AsyncSession, actor: Actor, project_id: int, project_in: ProjectUpdate) -> Project:
    project = await fetch_one(db, Project, project_id, "Project")
    ensure_allowed(actor, Action.UPDATE, project)

    values = {k: v for k, v in project_in.model_dump(exclude_unset=True).items() if v is not None}
    start = values.get("start_date", project.start_date)
    end = values.get("end_date", project.end_date)
    if statistics.utc(end) < statistics.utc(start):
        raise ValidationError("end_date must not be before start_date", code="invalid_date_range")

    if "manager_id" in values and values["manager_id"] != project.manager_id:
        await _active_user(db, values["manager_id"])
        # the manager is always part of the team
        project.team_ids = unique_ids([*(project.team_ids or []), values["manager_id"]])

    for key, value in values.items():
        setattr(project, key, value)
    await db.commit()
    await db.refresh(project)
    logger.info("Project updated id=%s fields=%s by actor=%s", project.id, sorted(values), actor.id)
    return project


async def delete_project(db: AsyncSession, actor: Actor, project_id: int) -> None:
    project = await fetch_one(db, Project, project_id, "Project")
    ensure_allowed(actor, Action.DELETE, project)

    task_ids = select(Task.id).where(Task.project_id == project_id)
    await db.execute(delete(Comment).where(Comment.task_id.in_(task_ids)))
    await db.execute(delete(Task).where(Task.project_id == project_id))
    await db.execute(delete(Sprint).where(Sprint.project_id == project_id))
    await db.delete(project)
    await db.commit()
    logger.info("Project deleted id=%s (tasks, sprints and comments cascaded) by actor=%s", project_id, actor.id)


async def add_team_member(db: AsyncSession, actor: Actor, project_id: int, user_id: int) -> Project:
    project = await fetch_one(db, Project, project_id, "Project")
    ensure_allowed(actor, Action.MANAGE_TEAM, project)

    await _active_user(db, user_id)
    if user_id in (project.team_ids or []):
        raise ValidationError("User is already in the team", code="already_team_member")

    project.team_ids = [*(project.team_ids or []), user_id]
    await db.commit()
    await db.refresh(project)
    logger.info("User %s added to project=%s team by actor=%s", user_id, project.id, actor.id)
    return project


async def remove_team_member(db: AsyncSession, actor: Actor, project_id: int, user_id: int) -> Project:
    project = await fetch_one(db, Project, project_id, "Project")
    ensure_allowed(actor, Action.MANAGE_TEAM, project)

    if user_id == project.manager_id:
        logger.warning("Refused to remove manager %s from project=%s team (actor=%s)", user_id, project.id, actor.id)
        raise InvariantViolation("Cannot remove project manager from the team")
    if user_id not in (project.team_ids or []):
        raise NotFoundError("Team member", user_id)

    project.team_ids = [uid for uid in project.team_ids if uid != user_id]
    await db.commit()
    await db.refresh(project)
    logger.info("User %s removed from project=%s team by actor=%s", user_id, project.id, actor.id)
    return project
