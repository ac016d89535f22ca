# tests/test_lifecycle.py

from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest

from mpms.core.errors import ForbiddenTransitionError, InvalidTransitionError, ValidationError
from mpms.models.enums import TaskStatus, UserRole
from mpms.services.authorization import Actor
from mpms.services.lifecycle import (
    TRANSITIONS,
    allowed_next,
    check_time_delta,
    check_transition,
    transition_changes,
)

MANAGER = Actor(2, UserRole.MANAGER)
MEMBER = Actor(3, UserRole.MEMBER)

ALLOWED = [(src, dst) for src, targets in TRANSITIONS.items() for dst in targets]
NOT_ALLOWED = [
    (src, dst) for src, dst in itertools.product(TaskStatus, TaskStatus)
    if dst not in TRANSITIONS[src]
]


def test_table_shape() -> None:
    assert allowed_next("To Do") == {TaskStatus.IN_PROGRESS}
    assert allowed_next(TaskStatus.DONE) == {TaskStatus.REVIEW}
    assert len(ALLOWED) == 6


@pytest.mark.parametrize("src,dst", ALLOWED)
def test_manager_may_take_every_listed_edge(src: TaskStatus, dst: TaskStatus) -> None:
    check_transition(MANAGER, src.value, dst.value)


@pytest.mark.parametrize("src,dst", NOT_ALLOWED)
def test_unlisted_edges_are_rejected(src: TaskStatus, dst: TaskStatus) -> None:
    expected = ForbiddenTransitionError if dst == TaskStatus.DONE else InvalidTransitionError
    with pytest.raises(expected):
        check_transition(MEMBER, src.value, dst.value)
    with pytest.raises(InvalidTransitionError):
        check_transition(MANAGER, src.value, dst.value)


@pytest.mark.parametrize("src", list(TaskStatus))
def test_member_can_never_reach_done(src: TaskStatus) -> None:
    with pytest.raises(ForbiddenTransitionError) as exc_info:
        check_transition(MEMBER, src, TaskStatus.DONE)
    assert exc_info.value.status_code == 403


def test_member_may_leave_done() -> None:
    check_transition(MEMBER, "Done", "Review")


def test_unknown_status_is_a_validation_error() -> None:
    with pytest.raises(ValidationError) as exc_info:
        check_transition(MANAGER, "To Do", "Blocked")
    assert exc_info.value.code == "unknown_status"


def test_entering_review_or_done_stamps_completed_at() -> None:
    now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    assert transition_changes("Review", now) == {"status": "Review", "completed_at": now}
    assert transition_changes(TaskStatus.DONE, now) == {"status": "Done", "completed_at": now}
    assert transition_changes("In Progress", now) == {"status": "In Progress"}
    assert transition_changes("To Do", now) == {"status": "To Do"}


@pytest.mark.parametrize("hours", [0, -1, float("nan"), float("inf"), "abc", None])
def test_time_delta_must_be_positive_and_finite(hours) -> None:
    with pytest.raises(ValidationError) as exc_info:
        check_time_delta(hours)
    assert exc_info.value.code == "invalid_hours"


def test_time_delta_accepts_numeric_strings() -> None:
    assert check_time_delta("2.5") == 2.5
