# tests/test_statistics.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from mpms.services import statistics

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _task(status="To Do", estimated=0.0, actual=0.0, due=None, priority="medium", completed_at=None, assignees=()):
    return SimpleNamespace(
        status=status,
        priority=priority,
        estimated_hours=estimated,
        actual_hours=actual,
        due_date=due or NOW + timedelta(days=1),
        completed_at=completed_at,
        assignee_ids=list(assignees),
    )


@pytest.mark.parametrize(
    "part,whole,expected",
    [(0, 0, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (1, 2, 50), (3, 8, 38), (5, 5, 100)],
)
def test_round_percent_rounds_half_up(part, whole, expected) -> None:
    assert statistics.round_percent(part, whole) == expected


def test_progress_of_nothing_is_zero() -> None:
    assert statistics.progress([]) == 0


def test_progress_counts_done_only() -> None:
    tasks = [_task("Done"), _task("Review"), _task("In Progress")]
    assert statistics.progress(tasks) == 33
    assert statistics.progress([_task("Done"), _task("Done")]) == 100


def test_ratio_is_zero_without_actual_hours() -> None:
    assert statistics.estimated_over_actual_ratio(10, 0) == 0
    stats = statistics.summarize([_task(estimated=10)], now=NOW)
    assert stats.efficiency == 0


def test_ratio_keeps_estimated_over_actual_orientation() -> None:
    # 8h estimated, 10h spent: the work overran, so the ratio is below 100
    assert statistics.estimated_over_actual_ratio(8, 10) == 80


def test_empty_summary_has_every_status_key() -> None:
    stats = statistics.summarize([], now=NOW)
    assert stats.total_tasks == 0
    assert stats.progress == 0
    assert stats.tasks_by_status == {"To Do": 0, "In Progress": 0, "Review": 0, "Done": 0}
    assert set(stats.tasks_by_priority) == {"low", "medium", "high", "urgent"}


def test_summarize_mixed_tasks() -> None:
    tasks = [
        _task("Done", estimated=4, actual=5, priority="high", assignees=[1]),
        _task("In Progress", estimated=6, actual=3, due=NOW - timedelta(days=1), assignees=[1, 2]),
        _task("Review", estimated=2, actual=2, assignees=[2]),
        _task("To Do", estimated=8, due=NOW - timedelta(hours=1)),
        # overdue but finished, so not counted as overdue
        _task("Done", estimated=0, actual=0, due=NOW - timedelta(days=3)),
    ]
    stats = statistics.summarize(tasks, now=NOW)

    assert stats.total_tasks == 5
    assert stats.completed_tasks == 2
    assert stats.in_progress_tasks == 1
    assert stats.review_tasks == 1
    assert stats.todo_tasks == 1
    assert stats.pending_tasks == 2
    assert stats.total_estimated_hours == 20
    assert stats.total_actual_hours == 10
    assert stats.estimated_over_actual_ratio == 200
    assert stats.overdue_tasks == 2
    assert stats.progress == 40
    assert stats.tasks_by_priority["high"] == 1

    mine = statistics.summarize(tasks, where=statistics.assigned_to(2), now=NOW)
    assert mine.total_tasks == 2
    assert mine.completed_tasks == 0


def test_naive_datetimes_are_treated_as_utc() -> None:
    naive_past = (NOW - timedelta(hours=2)).replace(tzinfo=None)
    assert statistics.is_overdue(_task(due=naive_past), NOW)


def test_velocity_and_projection() -> None:
    start = NOW - timedelta(days=2)
    assert statistics.sprint_velocity(3, start, NOW) == 1.5
    assert statistics.projected_completion_days(4, 1.5) == 3
    assert statistics.projected_completion_days(4, 0) == 0
    # sprint has not started yet
    assert statistics.sprint_velocity(3, NOW + timedelta(days=1), NOW) == 0.0


def test_days_between_counts_partial_days() -> None:
    assert statistics.days_between(NOW, NOW + timedelta(days=2, hours=1)) == 3
    assert statistics.days_between(NOW, NOW) == 0


def test_burn_down_counts_tasks_not_yet_handed_in() -> None:
    start = NOW - timedelta(days=2)
    tasks = [
        _task("Done", completed_at=start),
        _task("Review", completed_at=start + timedelta(days=1)),
        _task("To Do"),
    ]
    points = statistics.burn_down(tasks, start, NOW + timedelta(days=5), NOW)

    assert [p["day"] for p in points] == [1, 2, 3]
    assert [p["tasks_remaining"] for p in points] == [2, 1, 1]
    assert points[0]["date"] == start


def test_burn_down_stops_at_sprint_end() -> None:
    start = NOW - timedelta(days=10)
    points = statistics.burn_down([_task()], start, start + timedelta(days=4), NOW)
    assert len(points) == 5


def test_upcoming_deadlines_sorted_and_limited() -> None:
    soon = _task(due=NOW + timedelta(hours=3))
    later = _task(due=NOW + timedelta(days=2))
    latest = _task(due=NOW + timedelta(days=9))
    past = _task(due=NOW - timedelta(days=1))
    finished = _task("Done", due=NOW + timedelta(hours=1))

    result = statistics.upcoming_deadlines([latest, past, later, finished, soon], NOW, limit=2)
    assert result == [soon, later]


def test_done_count_by_assignee() -> None:
    tasks = [
        _task("Done", assignees=[1, 2]),
        _task("Done", assignees=[1]),
        _task("Review", assignees=[2]),
    ]
    assert statistics.done_count_by_assignee(tasks) == {1: 2, 2: 1}
