# mpms/services/sprints.py
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mpms.config import settings
from mpms.core.errors import InvariantViolation, ValidationError
from mpms.models.project import Project
from mpms.models.sprint import Sprint
from mpms.models.task import Task
from mpms.schemas.sprint import SprintCreate, SprintUpdate
from mpms.services import statistics
from mpms.services.authorization import Actor, Action, can_act, ensure_allowed
from mpms.services.store import fetch_one

logger = logging.getLogger(__name__)


async def next_sprint_number(db: AsyncSession, project_id: int) -> int:
    result = await db.execute(
        select(func.max(Sprint.sprint_number)).where(Sprint.project_id == project_id)
    )
    return (result.scalar_one() or 0) + 1


async def create_sprint(db: AsyncSession, actor: Actor, sprint_in: SprintCreate) -> Sprint:
    ensure_allowed(actor, Action.CREATE, Sprint(project_id=sprint_in.project_id))
    await fetch_one(db, Project, sprint_in.project_id, "Project")

    # read-max-then-insert; the (project_id, sprint_number) unique constraint
    # turns a lost race into an IntegrityError and we take the next number
    for attempt in range(1, settings.SPRINT_NUMBER_RETRIES + 1):
        number = await next_sprint_number(db, sprint_in.project_id)
        sprint = Sprint(
            title=sprint_in.title,
            sprint_number=number,
            project_id=sprint_in.project_id,
            start_date=sprint_in.start_date,
            end_date=sprint_in.end_date,
            goal=sprint_in.goal,
            progress=0,
        )
        db.add(sprint)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(
                "Sprint number %s already taken in project=%s (attempt %s/%s)",
                number, sprint_in.project_id, attempt, settings.SPRINT_NUMBER_RETRIES,
            )
            continue
        await db.refresh(sprint)
        logger.info("Sprint created id=%s number=%s project=%s by actor=%s", sprint.id, number, sprint.project_id, actor.id)
        return sprint

    raise InvariantViolation("Could not allocate a sprint number, try again")


async def _tasks_by_sprint(db: AsyncSession, sprint_ids: List[int]) -> dict:
    grouped = {sid: [] for sid in sprint_ids}
    if not sprint_ids:
        return grouped
    result = await db.execute(
        select(Task).where(Task.sprint_id.in_(sprint_ids)).order_by(Task.created_at.desc(), Task.id.desc())
    )
    for task in result.scalars():
        grouped[task.sprint_id].append(task)
    return grouped


async def list_sprints(
    db: AsyncSession,
    actor: Actor,
    project_id: Optional[int] = None,
) -> List[Tuple[Sprint, statistics.TaskStatistics]]:
    query = select(Sprint)
    if project_id:
        query = query.where(Sprint.project_id == project_id)
    result = await db.execute(query.order_by(Sprint.project_id, Sprint.sprint_number))
    sprints = [s for s in result.scalars() if can_act(actor, Action.VIEW, s)]

    tasks = await _tasks_by_sprint(db, [s.id for s in sprints])
    return [(s, statistics.summarize(tasks[s.id])) for s in sprints]


async def get_sprint(db: AsyncSession, actor: Actor, sprint_id: int) -> Tuple[Sprint, List[Task], statistics.TaskStatistics]:
    sprint = await fetch_one(db, Sprint, sprint_id, "Sprint")
    ensure_allowed(actor, Action.VIEW, sprint)

    tasks = (await _tasks_by_sprint(db, [sprint.id]))[sprint.id]
    stats = statistics.summarize(tasks)
    if sprint.progress != stats.progress:
        sprint.progress = stats.progress
        await db.commit()
        await db.refresh(sprint)
    # stats cover the whole sprint; the task list only what the actor may open
    tasks = [t for t in tasks if can_act(actor, Action.VIEW, t)]
    return sprint, tasks, stats


async def update_sprint(db: AsyncSession, actor: Actor, sprint_id: int, sprint_in: SprintUpdate) -> Sprint:
    sprint = await fetch_one(db, Sprint, sprint_id, "Sprint")
    ensure_allowed(actor, Action.UPDATE, sprint)

    values = sprint_in.model_dump(exclude_unset=True)
    start = values.get("start_date") or sprint.start_date
    end = values.get("end_date") or sprint.end_date
    if statistics.utc(end) < statistics.utc(start):
        raise ValidationError("end_date must not be before start_date", code="invalid_date_range")

    for key, value in values.items():
        if value is None and key != "goal":
            continue
        setattr(sprint, key, value)
    await db.commit()
    await db.refresh(sprint)
    logger.info("Sprint updated id=%s fields=%s by actor=%s", sprint.id, sorted(values), actor.id)
    return sprint


async def delete_sprint(db: AsyncSession, actor: Actor, sprint_id: int) -> None:
    sprint = await fetch_one(db, Sprint, sprint_id, "Sprint")
    ensure_allowed(actor, Action.DELETE, sprint)

    # tasks survive their sprint, unassigned
    result = await db.execute(
        update(Task)
        .where(Task.sprint_id == sprint_id)
        .values(sprint_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(sprint)
    await db.commit()
    logger.info("Sprint deleted id=%s (%s task(s) unassigned) by actor=%s", sprint_id, result.rowcount, actor.id)
