# tests/test_authorization.py

from __future__ import annotations

import pytest

from mpms.core.errors import ForbiddenError, ForbiddenFieldError
from mpms.models.enums import UserRole
from mpms.models.project import Project
from mpms.models.sprint import Sprint
from mpms.models.task import Task
from mpms.models.user import User
from mpms.services import authorization as gate
from mpms.services.authorization import Action, Actor, can_act, ensure_allowed

ADMIN = Actor(1, UserRole.ADMIN)
MANAGER = Actor(2, UserRole.MANAGER)
MEMBER = Actor(3, UserRole.MEMBER)
OTHER_MEMBER = Actor(4, UserRole.MEMBER)


def _task() -> Task:
    return Task(id=10, project_id=1, sprint_id=1, assignee_ids=[MEMBER.id], status="To Do")


def _project() -> Project:
    return Project(id=1, manager_id=MANAGER.id, team_ids=[MANAGER.id, MEMBER.id])


def _user(user_id: int, role: UserRole) -> User:
    return User(id=user_id, role=role.value, is_active=True)


@pytest.mark.parametrize("action", list(Action))
def test_admin_may_do_anything_to_tasks_and_projects(action: Action) -> None:
    assert can_act(ADMIN, action, _task())
    assert can_act(ADMIN, action, _project())


def test_member_cannot_create_or_delete_tasks() -> None:
    for action in (Action.CREATE, Action.DELETE):
        decision = can_act(MEMBER, action, _task())
        assert not decision
        assert decision.reason == gate.ROLE_NOT_PERMITTED


@pytest.mark.parametrize("action", [Action.VIEW, Action.TRANSITION, Action.LOG_TIME, Action.COMMENT])
def test_assignee_member_may_work_on_task(action: Action) -> None:
    assert can_act(MEMBER, action, _task())


@pytest.mark.parametrize("action", [Action.VIEW, Action.UPDATE, Action.TRANSITION, Action.LOG_TIME, Action.COMMENT])
def test_non_assignee_member_is_denied(action: Action) -> None:
    decision = can_act(OTHER_MEMBER, action, _task(), changes={"status": "In Progress"})
    assert not decision
    assert decision.reason == gate.NOT_ASSIGNEE


def test_member_update_limited_to_member_fields() -> None:
    ok = can_act(MEMBER, Action.UPDATE, _task(), changes={"status": "In Progress", "actual_hours": 2})
    assert ok

    denied = can_act(MEMBER, Action.UPDATE, _task(), changes={"status": "In Progress", "priority": "high"})
    assert not denied
    assert denied.reason == gate.FORBIDDEN_FIELDS
    assert denied.fields == ("priority",)


def test_manager_may_update_any_task_field() -> None:
    assert can_act(MANAGER, Action.UPDATE, _task(), changes={"priority": "high", "title": "Renamed"})


def test_member_sees_only_projects_they_belong_to() -> None:
    assert can_act(MEMBER, Action.VIEW, _project())

    decision = can_act(OTHER_MEMBER, Action.VIEW, _project())
    assert decision.reason == gate.NOT_TEAM_MEMBER

    decision = can_act(MEMBER, Action.UPDATE, _project())
    assert decision.reason == gate.ROLE_NOT_PERMITTED


def test_sprints_are_visible_to_all_but_managed_by_managers() -> None:
    sprint = Sprint(id=1, project_id=1)
    assert can_act(OTHER_MEMBER, Action.VIEW, sprint)
    assert not can_act(MEMBER, Action.CREATE, sprint)
    assert can_act(MANAGER, Action.DELETE, sprint)


def test_nobody_deletes_themselves() -> None:
    decision = can_act(ADMIN, Action.DELETE, _user(ADMIN.id, UserRole.ADMIN))
    assert decision.reason == gate.SELF_PROTECTION


def test_nobody_deactivates_themselves() -> None:
    decision = can_act(ADMIN, Action.UPDATE, _user(ADMIN.id, UserRole.ADMIN), changes={"is_active": False})
    assert decision.reason == gate.SELF_PROTECTION

    assert can_act(ADMIN, Action.UPDATE, _user(ADMIN.id, UserRole.ADMIN), changes={"name": "Ada"})


def test_only_admins_delete_users() -> None:
    target = _user(9, UserRole.MEMBER)
    assert can_act(ADMIN, Action.DELETE, target)
    assert can_act(MANAGER, Action.DELETE, target).reason == gate.ROLE_NOT_PERMITTED


def test_manager_cannot_touch_admins() -> None:
    assert can_act(MANAGER, Action.CREATE, _user(None, UserRole.ADMIN)).reason == gate.CANNOT_GRANT_ADMIN
    assert can_act(MANAGER, Action.UPDATE, _user(ADMIN.id, UserRole.ADMIN)).reason == gate.CANNOT_MODIFY_ADMIN

    target = _user(9, UserRole.MEMBER)
    assert can_act(MANAGER, Action.UPDATE, target, changes={"role": "admin"}).reason == gate.CANNOT_GRANT_ADMIN
    assert can_act(MANAGER, Action.UPDATE, target, changes={"role": "manager", "is_active": False})


def test_members_cannot_manage_users_but_can_view_themselves() -> None:
    assert not can_act(MEMBER, Action.CREATE, _user(None, UserRole.MEMBER))
    assert can_act(MEMBER, Action.VIEW, _user(MEMBER.id, UserRole.MEMBER))
    assert can_act(MEMBER, Action.VIEW, _user(MANAGER.id, UserRole.MANAGER)).reason == gate.NOT_SELF


def test_ensure_allowed_names_rejected_fields() -> None:
    with pytest.raises(ForbiddenFieldError) as exc_info:
        ensure_allowed(MEMBER, Action.UPDATE, _task(), changes={"priority": "high", "title": "x", "status": "Review"})

    err = exc_info.value
    assert err.status_code == 403
    assert err.fields == ["priority", "title"]
    assert err.to_dict()["fields"] == ["priority", "title"]


def test_ensure_allowed_carries_reason_code() -> None:
    with pytest.raises(ForbiddenError) as exc_info:
        ensure_allowed(OTHER_MEMBER, Action.VIEW, _task())
    assert exc_info.value.code == gate.NOT_ASSIGNEE
