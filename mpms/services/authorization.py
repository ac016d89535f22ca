# mpms/services/authorization.py
"""Authorization gate: pure decisions over actor, action and resource."""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple

from mpms.core.errors import ForbiddenError, ForbiddenFieldError
from mpms.models.enums import UserRole
from mpms.models.project import Project
from mpms.models.sprint import Sprint
from mpms.models.task import Task
from mpms.models.user import User
from mpms.schemas.task import MEMBER_TASK_FIELDS

logger = logging.getLogger(__name__)

# Stable reason codes surfaced to callers with every denial
ROLE_NOT_PERMITTED = "role_not_permitted"
NOT_TEAM_MEMBER = "not_team_member"
NOT_ASSIGNEE = "not_assignee"
NOT_SELF = "not_self"
FORBIDDEN_FIELDS = "forbidden_fields"
CANNOT_MODIFY_ADMIN = "cannot_modify_admin"
CANNOT_GRANT_ADMIN = "cannot_grant_admin"
SELF_PROTECTION = "self_protection"


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation."""
    id: int
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, role=UserRole(user.role))

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_member(self) -> bool:
        return self.role == UserRole.MEMBER


class Action(str, Enum):
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    TRANSITION = "transition"
    LOG_TIME = "log_time"
    COMMENT = "comment"
    MANAGE_TEAM = "manage_team"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    message: str = ""
    fields: Tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str, message: str, fields: Iterable[str] = ()) -> Decision:
    return Decision(False, reason=reason, message=message, fields=tuple(sorted(fields)))


def can_act(
    actor: Actor,
    action: Action,
    resource: Any,
    changes: Optional[Mapping[str, Any]] = None,
) -> Decision:
    """
    Decide whether ``actor`` may perform ``action`` on ``resource``.

    ``resource`` is a model instance (transient instances are fine for
    CREATE). ``changes`` holds the keys and values of an UPDATE payload.
    """
    # user records carry self-protection rules that bind admins too
    if isinstance(resource, User):
        return _user_decision(actor, action, resource, changes or {})

    if actor.is_admin:
        return ALLOW

    if isinstance(resource, Task):
        return _task_decision(actor, action, resource, changes or {})
    if isinstance(resource, Project):
        return _project_decision(actor, action, resource)
    if isinstance(resource, Sprint):
        return _sprint_decision(actor, action)

    return deny(ROLE_NOT_PERMITTED, f"{actor.role.value} may not {action.value} this resource")


def ensure_allowed(
    actor: Actor,
    action: Action,
    resource: Any,
    changes: Optional[Mapping[str, Any]] = None,
) -> None:
    decision = can_act(actor, action, resource, changes)
    if decision:
        return
    logger.warning(
        "Denied actor=%s role=%s action=%s resource=%s id=%s reason=%s",
        actor.id, actor.role.value, action.value, type(resource).__name__,
        getattr(resource, "id", None), decision.reason,
    )
    if decision.reason == FORBIDDEN_FIELDS:
        raise ForbiddenFieldError(decision.fields, MEMBER_TASK_FIELDS)
    raise ForbiddenError(decision.message, code=decision.reason)


def is_assignee(actor: Actor, task: Task) -> bool:
    return actor.id in (task.assignee_ids or [])


def is_team_member(actor: Actor, project: Project) -> bool:
    return actor.id in (project.team_ids or [])


def _task_decision(actor: Actor, action: Action, task: Task, changes: Mapping[str, Any]) -> Decision:
    if not actor.is_member:
        return ALLOW

    if action in (Action.CREATE, Action.DELETE):
        return deny(ROLE_NOT_PERMITTED, f"Members cannot {action.value} tasks")
    if not is_assignee(actor, task):
        return deny(NOT_ASSIGNEE, "Not authorized to access this task")

    if action == Action.UPDATE:
        rejected = set(changes) - MEMBER_TASK_FIELDS
        if rejected:
            return deny(FORBIDDEN_FIELDS, "Members can only update: " + ", ".join(sorted(MEMBER_TASK_FIELDS)), rejected)
    return ALLOW


def _project_decision(actor: Actor, action: Action, project: Project) -> Decision:
    if not actor.is_member:
        return ALLOW
    if action == Action.VIEW:
        if is_team_member(actor, project):
            return ALLOW
        return deny(NOT_TEAM_MEMBER, "Not authorized to access this project")
    return deny(ROLE_NOT_PERMITTED, f"Members cannot {action.value} projects")


def _sprint_decision(actor: Actor, action: Action) -> Decision:
    if action == Action.VIEW or not actor.is_member:
        return ALLOW
    return deny(ROLE_NOT_PERMITTED, f"Members cannot {action.value} sprints")


def _user_decision(actor: Actor, action: Action, target: User, changes: Mapping[str, Any]) -> Decision:
    is_self = target.id is not None and target.id == actor.id

    if action == Action.VIEW:
        if actor.is_member and not is_self:
            return deny(NOT_SELF, "Members can only view their own profile")
        return ALLOW

    if action == Action.DELETE:
        if is_self:
            return deny(SELF_PROTECTION, "Cannot delete your own account")
        if not actor.is_admin:
            return deny(ROLE_NOT_PERMITTED, "Only admins can delete users")
        return ALLOW

    if action == Action.UPDATE and is_self and changes.get("is_active") is False:
        return deny(SELF_PROTECTION, "Cannot deactivate your own account")

    if action not in (Action.CREATE, Action.UPDATE):
        return deny(ROLE_NOT_PERMITTED, f"{action.value} is not a user operation")
    if actor.is_admin:
        return ALLOW
    if actor.is_member:
        return deny(ROLE_NOT_PERMITTED, "Members cannot manage team members")

    # manager from here on
    if action == Action.CREATE:
        if target.role == UserRole.ADMIN.value:
            return deny(CANNOT_GRANT_ADMIN, "Only admins can create admin users")
        return ALLOW
    if target.role == UserRole.ADMIN.value:
        return deny(CANNOT_MODIFY_ADMIN, "Cannot modify admin users")
    if changes.get("role") == UserRole.ADMIN.value:
        return deny(CANNOT_GRANT_ADMIN, "Only admins can grant the admin role")
    return ALLOW
