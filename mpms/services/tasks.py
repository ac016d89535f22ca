# mpms/services/tasks.py
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from mpms.core.errors import NotFoundError, ValidationError, StaleStatusError
from mpms.models.comment import Comment
from mpms.models.project import Project
from mpms.models.sprint import Sprint
from mpms.models.task import Task
from mpms.schemas.comment import CommentCreate
from mpms.schemas.task import TaskCreate, TaskUpdate, MemberTaskUpdate, TaskFilter, Subtask
from mpms.services.authorization import Actor, Action, ensure_allowed
from mpms.services.lifecycle import INITIAL_STATUS, check_transition, transition_changes, check_time_delta
from mpms.services.store import fetch_one, ensure_users_exist, unique_ids

logger = logging.getLogger(__name__)


def _subtask_docs(subtasks: List[Subtask], now: datetime) -> List[Dict[str, Any]]:
    docs = []
    for sub in subtasks:
        completed_at = sub.completed_at
        if sub.is_completed and completed_at is None:
            completed_at = now
        elif not sub.is_completed:
            completed_at = None
        docs.append({
            "title": sub.title,
            "is_completed": sub.is_completed,
            "completed_at": completed_at.isoformat() if completed_at else None,
        })
    return docs


async def _check_placement(db: AsyncSession, project_id: int, sprint_id: int) -> None:
    await fetch_one(db, Project, project_id, "Project")
    sprint = await fetch_one(db, Sprint, sprint_id, "Sprint")
    if sprint.project_id != project_id:
        raise ValidationError("Sprint does not belong to the project", code="sprint_project_mismatch")


async def _write(
    db: AsyncSession,
    task: Task,
    changes: Dict[str, Any],
    expected_status: Optional[str] = None,
) -> Task:
    """
    Apply ``changes`` in one UPDATE. When ``expected_status`` is given the
    write only lands if the stored status still equals it.
    """
    task_id = task.id
    stmt = update(Task).where(Task.id == task_id)
    if expected_status is not None:
        stmt = stmt.where(Task.status == expected_status)
    result = await db.execute(stmt.values(**changes).execution_options(synchronize_session=False))
    if result.rowcount == 0:
        await db.rollback()
        if expected_status is None:
            raise NotFoundError("Task", task_id)
        logger.warning("Stale status write on task=%s (expected %s)", task_id, expected_status)
        raise StaleStatusError(expected_status, changes.get("status"))
    await db.commit()
    await db.refresh(task)
    return task


async def create_task(db: AsyncSession, actor: Actor, task_in: TaskCreate) -> Task:
    ensure_allowed(actor, Action.CREATE, Task(project_id=task_in.project_id))

    await _check_placement(db, task_in.project_id, task_in.sprint_id)
    assignee_ids = unique_ids(task_in.assignee_ids)
    await ensure_users_exist(db, assignee_ids)

    task = Task(
        title=task_in.title,
        description=task_in.description,
        project_id=task_in.project_id,
        sprint_id=task_in.sprint_id,
        assignee_ids=assignee_ids,
        estimated_hours=task_in.estimated_hours,
        actual_hours=0.0,
        priority=task_in.priority,
        status=INITIAL_STATUS.value,
        due_date=task_in.due_date,
        tags=task_in.tags,
        attachments=[],
        subtasks=[],
        completed_at=None,
    )
    db.add(task)
    await db.commit()
    await db.refresh(task)
    logger.info("Task created id=%s project=%s by actor=%s", task.id, task.project_id, actor.id)
    return task


async def get_task(db: AsyncSession, actor: Actor, task_id: int) -> Tuple[Task, List[Comment]]:
    task = await fetch_one(db, Task, task_id, "Task")
    ensure_allowed(actor, Action.VIEW, task)

    result = await db.execute(
        select(Comment)
        .where(Comment.task_id == task.id)
        .order_by(Comment.created_at, Comment.id)
    )
    return task, list(result.scalars().all())


async def list_tasks(db: AsyncSession, actor: Actor, filters: TaskFilter) -> Tuple[List[Task], int]:
    query = select(Task)
    if filters.project_id:
        query = query.where(Task.project_id == filters.project_id)
    if filters.sprint_id:
        query = query.where(Task.sprint_id == filters.sprint_id)
    if filters.status:
        query = query.where(Task.status == filters.status)
    if filters.priority:
        query = query.where(Task.priority == filters.priority)

    result = await db.execute(query.order_by(Task.created_at.desc(), Task.id.desc()))
    tasks = list(result.scalars().all())

    # assignee lists live in JSON columns, so membership filters run here
    if actor.is_member:
        tasks = [t for t in tasks if actor.id in (t.assignee_ids or [])]
    if filters.assignee_id:
        tasks = [t for t in tasks if filters.assignee_id in (t.assignee_ids or [])]
    if filters.search:
        needle = filters.search.lower()
        tasks = [
            t for t in tasks
            if needle in t.title.lower()
            or needle in (t.description or "").lower()
            or any(needle in tag.lower() for tag in t.tags or [])
        ]

    total = len(tasks)
    offset = (filters.page - 1) * filters.limit
    return tasks[offset:offset + filters.limit], total


def pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


async def update_task(db: AsyncSession, actor: Actor, task_id: int, task_in: TaskUpdate) -> Task:
    task = await fetch_one(db, Task, task_id, "Task")

    sent = task_in.sent_fields()
    ensure_allowed(actor, Action.UPDATE, task, changes=dict.fromkeys(sent))

    unknown = set(task_in.model_extra or {})
    if unknown:
        raise ValidationError(
            "Unknown task field(s): " + ", ".join(sorted(unknown)),
            code="unknown_fields",
            extra={"fields": sorted(unknown)},
        )

    if actor.is_member:
        # narrow to the closed member payload before anything is applied
        payload = MemberTaskUpdate(**task_in.model_dump(exclude_unset=True))
    else:
        payload = task_in
    values = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if not values:
        return task

    now = datetime.now(timezone.utc)
    expected_status = None
    target = values.pop("status", None)
    if target is not None and target != task.status:
        check_transition(actor, task.status, target)
        values.update(transition_changes(target, now))
        expected_status = task.status

    if "subtasks" in values:
        values["subtasks"] = _subtask_docs(payload.subtasks, now)
    if "project_id" in values or "sprint_id" in values:
        project_id = values.get("project_id", task.project_id)
        sprint_id = values.get("sprint_id", task.sprint_id)
        if sprint_id is None:
            raise ValidationError("A task must belong to a sprint", code="sprint_required")
        await _check_placement(db, project_id, sprint_id)
    if "assignee_ids" in values:
        values["assignee_ids"] = unique_ids(values["assignee_ids"])
        await ensure_users_exist(db, values["assignee_ids"])

    if not values:
        return task

    from_status = task.status
    task = await _write(db, task, values, expected_status)
    if expected_status is not None:
        logger.info("Task %s status %s -> %s by actor=%s", task.id, from_status, task.status, actor.id)
    logger.info("Task updated id=%s fields=%s by actor=%s", task.id, sorted(values), actor.id)
    return task


async def transition_task_status(db: AsyncSession, actor: Actor, task_id: int, new_status: Any) -> Task:
    task = await fetch_one(db, Task, task_id, "Task")
    ensure_allowed(actor, Action.TRANSITION, task)

    from_status = task.status
    check_transition(actor, from_status, new_status)
    task = await _write(db, task, transition_changes(new_status), expected_status=from_status)
    logger.info("Task %s status %s -> %s by actor=%s", task.id, from_status, task.status, actor.id)
    return task


async def log_time(db: AsyncSession, actor: Actor, task_id: int, hours: Any) -> Task:
    hours = check_time_delta(hours)
    task = await fetch_one(db, Task, task_id, "Task")
    ensure_allowed(actor, Action.LOG_TIME, task)

    # increment in SQL so concurrent logs never overwrite each other
    await db.execute(
        update(Task)
        .where(Task.id == task.id)
        .values(actual_hours=Task.actual_hours + hours)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(task)
    logger.info("Logged %.2fh on task=%s by actor=%s (total %.2fh)", hours, task.id, actor.id, task.actual_hours)
    return task


async def delete_task(db: AsyncSession, actor: Actor, task_id: int) -> None:
    task = await fetch_one(db, Task, task_id, "Task")
    ensure_allowed(actor, Action.DELETE, task)

    await db.execute(delete(Comment).where(Comment.task_id == task.id))
    await db.delete(task)
    await db.commit()
    logger.info("Task deleted id=%s by actor=%s", task_id, actor.id)


async def add_comment(db: AsyncSession, actor: Actor, task_id: int, comment_in: CommentCreate) -> Comment:
    task = await fetch_one(db, Task, task_id, "Task")
    ensure_allowed(actor, Action.COMMENT, task)

    if comment_in.parent_comment_id is not None:
        parent = await fetch_one(db, Comment, comment_in.parent_comment_id, "Comment")
        if parent.task_id != task.id:
            raise ValidationError("Parent comment belongs to another task", code="parent_task_mismatch")

    comment = Comment(
        task_id=task.id,
        user_id=actor.id,
        content=comment_in.content,
        parent_comment_id=comment_in.parent_comment_id,
        attachments=comment_in.attachments,
    )
    db.add(comment)
    await db.commit()
    await db.refresh(comment)
    logger.info("Comment %s added to task=%s by actor=%s", comment.id, task.id, actor.id)
    return comment
