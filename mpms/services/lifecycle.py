# mpms/services/lifecycle.py
"""Task status state machine; Done is reserved for managers and admins."""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional

from mpms.core.errors import ForbiddenTransitionError, InvalidTransitionError, ValidationError
from mpms.models.enums import TaskStatus
from mpms.services.authorization import Actor

logger = logging.getLogger(__name__)

INITIAL_STATUS = TaskStatus.TODO

TRANSITIONS: Dict[TaskStatus, FrozenSet[TaskStatus]] = {
    TaskStatus.TODO: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.REVIEW, TaskStatus.TODO}),
    TaskStatus.REVIEW: frozenset({TaskStatus.DONE, TaskStatus.IN_PROGRESS}),
    TaskStatus.DONE: frozenset({TaskStatus.REVIEW}),
}

# entering one of these overwrites completed_at
COMPLETION_STATES = frozenset({TaskStatus.REVIEW, TaskStatus.DONE})

MANAGER_ONLY_TARGETS = frozenset({TaskStatus.DONE})


def _as_status(value: Any) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown task status: {value!r}", code="unknown_status")


def allowed_next(current: Any) -> FrozenSet[TaskStatus]:
    return TRANSITIONS[_as_status(current)]


def check_transition(actor: Actor, current: Any, target: Any) -> None:
    """Raise unless ``actor`` may move a task from ``current`` to ``target``."""
    current = _as_status(current)
    target = _as_status(target)

    # role gating comes first: a member never reaches Done, whatever the source state
    if target in MANAGER_ONLY_TARGETS and actor.is_member:
        logger.warning("Refused %s -> %s for member actor=%s", current.value, target.value, actor.id)
        raise ForbiddenTransitionError(current.value, target.value)
    if target not in TRANSITIONS[current]:
        logger.warning("Invalid transition %s -> %s by actor=%s", current.value, target.value, actor.id)
        raise InvalidTransitionError(current.value, target.value)


def transition_changes(target: Any, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Column values to write for a transition that already passed ``check_transition``."""
    target = _as_status(target)
    changes: Dict[str, Any] = {"status": target.value}
    if target in COMPLETION_STATES:
        changes["completed_at"] = now or datetime.now(timezone.utc)
    return changes


def check_time_delta(hours: Any) -> float:
    try:
        hours = float(hours)
    except (TypeError, ValueError):
        raise ValidationError("Hours must be a number", code="invalid_hours")
    if not math.isfinite(hours) or hours <= 0:
        raise ValidationError("Hours must be greater than 0", code="invalid_hours")
    return hours
