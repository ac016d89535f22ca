# mpms/services/statistics.py
"""Derived figures over task collections. Percentages round half up."""
import math
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from mpms.models.enums import TaskPriority, TaskStatus

TaskPredicate = Callable[[Any], bool]

SECONDS_PER_DAY = 24 * 3600


def utc(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; they were written as UTC
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)


def round_percent(part: float, whole: float) -> int:
    if not whole or whole <= 0:
        return 0
    return math.floor(100 * part / whole + 0.5)


def is_done(task: Any) -> bool:
    return task.status == TaskStatus.DONE.value


def is_overdue(task: Any, now: datetime) -> bool:
    due = utc(task.due_date)
    return due is not None and due < utc(now) and not is_done(task)


def progress(tasks: Iterable[Any]) -> int:
    tasks = list(tasks)
    return round_percent(sum(1 for t in tasks if is_done(t)), len(tasks))


def count_by_status(tasks: Iterable[Any]) -> Dict[str, int]:
    counts = {s.value: 0 for s in TaskStatus}
    for t in tasks:
        if t.status in counts:
            counts[t.status] += 1
    return counts


def count_by_priority(tasks: Iterable[Any]) -> Dict[str, int]:
    counts = {p.value: 0 for p in TaskPriority}
    for t in tasks:
        if t.priority in counts:
            counts[t.priority] += 1
    return counts


def overdue_count(tasks: Iterable[Any], now: datetime) -> int:
    return sum(1 for t in tasks if is_overdue(t, now))


def estimated_over_actual_ratio(total_estimated: float, total_actual: float) -> int:
    """
    Estimated hours as a percentage of actual hours.

    Below 100 means the work overran its estimate. This orientation is what
    dashboards already consume; do not flip it to actual/estimated.
    """
    if not total_actual or total_actual <= 0:
        return 0
    return round_percent(total_estimated, total_actual)


@dataclass
class TaskStatistics:
    total_tasks: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
    review_tasks: int = 0
    todo_tasks: int = 0
    total_estimated_hours: float = 0.0
    total_actual_hours: float = 0.0
    estimated_over_actual_ratio: int = 0
    overdue_tasks: int = 0
    progress: int = 0
    tasks_by_status: Dict[str, int] = field(default_factory=dict)
    tasks_by_priority: Dict[str, int] = field(default_factory=dict)

    @property
    def efficiency(self) -> int:
        return self.estimated_over_actual_ratio

    @property
    def pending_tasks(self) -> int:
        return self.total_tasks - self.completed_tasks - self.in_progress_tasks

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize(
    tasks: Iterable[Any],
    where: Optional[TaskPredicate] = None,
    now: Optional[datetime] = None,
) -> TaskStatistics:
    """Aggregate ``tasks`` (optionally narrowed by ``where``) into one TaskStatistics."""
    now = now or datetime.now(timezone.utc)
    scoped = [t for t in tasks if where is None or where(t)]

    by_status = count_by_status(scoped)
    estimated = float(sum(t.estimated_hours or 0 for t in scoped))
    actual = float(sum(t.actual_hours or 0 for t in scoped))

    return TaskStatistics(
        total_tasks=len(scoped),
        completed_tasks=by_status[TaskStatus.DONE.value],
        in_progress_tasks=by_status[TaskStatus.IN_PROGRESS.value],
        review_tasks=by_status[TaskStatus.REVIEW.value],
        todo_tasks=by_status[TaskStatus.TODO.value],
        total_estimated_hours=estimated,
        total_actual_hours=actual,
        estimated_over_actual_ratio=estimated_over_actual_ratio(estimated, actual),
        overdue_tasks=overdue_count(scoped, now),
        progress=round_percent(by_status[TaskStatus.DONE.value], len(scoped)),
        tasks_by_status=by_status,
        tasks_by_priority=count_by_priority(scoped),
    )


def assigned_to(user_id: int) -> TaskPredicate:
    return lambda task: user_id in (task.assignee_ids or [])


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from ``start`` to ``end``, partial days counted as full."""
    return math.ceil((utc(end) - utc(start)).total_seconds() / SECONDS_PER_DAY)


def sprint_velocity(completed: int, start_date: datetime, now: datetime) -> float:
    """Completed tasks per elapsed day; 0 before the sprint has started."""
    elapsed = days_between(start_date, now)
    if elapsed <= 0:
        return 0.0
    return completed / elapsed


def projected_completion_days(remaining: int, velocity: float) -> int:
    if velocity <= 0:
        return 0
    return math.ceil(remaining / velocity)


def burn_down(tasks: Iterable[Any], start_date: datetime, end_date: datetime, now: datetime) -> List[Dict[str, Any]]:
    """
    One point per elapsed sprint day (capped at the sprint length).

    A task counts as remaining on a day unless it is Done, or its
    completed_at (set on entering Review) falls on or before that day.
    """
    tasks = list(tasks)
    start = utc(start_date)
    last_day = min(days_between(start_date, now), days_between(start_date, end_date))
    points = []
    for i in range(0, last_day + 1):
        day = start + timedelta(days=i)
        remaining = sum(
            1 for t in tasks
            if not is_done(t) and (t.completed_at is None or utc(t.completed_at) > day)
        )
        points.append({"day": i + 1, "date": day, "tasks_remaining": remaining})
    return points


def upcoming_deadlines(tasks: Iterable[Any], now: datetime, limit: int = 5) -> List[Any]:
    pending = [t for t in tasks if not is_done(t) and utc(t.due_date) > utc(now)]
    pending.sort(key=lambda t: utc(t.due_date))
    return pending[:limit]


def done_count_by_assignee(tasks: Iterable[Any]) -> Dict[int, int]:
    counts: Dict[int, int] = {}
    for t in tasks:
        if is_done(t):
            for user_id in t.assignee_ids or []:
                counts[user_id] = counts.get(user_id, 0) + 1
    return counts
