# tests/test_reports_service.py

from __future__ import annotations

from datetime import timedelta

import pytest

from mpms.core.errors import ForbiddenError, NotFoundError
from mpms.models.enums import TaskStatus
from mpms.services import reports as report_service

from .factories import NOW, actor, make_project, make_sprint, make_task


@pytest.mark.asyncio
async def test_project_stats(db, project, sprint, member) -> None:
    await make_task(db, sprint, assignees=[member], status=TaskStatus.DONE, estimated_hours=4, actual_hours=5)
    await make_task(db, sprint, assignees=[member], estimated_hours=6, actual_hours=3,
                    due_date=NOW - timedelta(days=1), title="Late")
    soon = await make_task(db, sprint, due_date=NOW + timedelta(hours=2), title="Soon")

    report = await report_service.compute_project_stats(db, project.id, now=NOW)

    assert report.project.progress == 33
    assert report.statistics.total_tasks == 3
    assert report.statistics.overdue_tasks == 1
    assert report.statistics.estimated_over_actual_ratio == round(100 * 18 / 8)
    assert report.upcoming_deadlines[0].id == soon.id
    assert len(report.upcoming_deadlines) == 1


@pytest.mark.asyncio
async def test_project_report_respects_team_membership(db, project, member, outsider) -> None:
    report = await report_service.get_project_report(db, actor(member), project.id, now=NOW)
    assert report.project.id == project.id

    with pytest.raises(ForbiddenError):
        await report_service.get_project_report(db, actor(outsider), project.id, now=NOW)
    with pytest.raises(NotFoundError):
        await report_service.compute_project_stats(db, 9999)


@pytest.mark.asyncio
async def test_project_report_lists_only_own_deadlines_to_members(db, project, sprint, manager, member) -> None:
    mine = await make_task(db, sprint, assignees=[member], title="Mine")
    theirs = await make_task(db, sprint, assignees=[manager], due_date=NOW + timedelta(hours=1), title="Theirs")

    report = await report_service.get_project_report(db, actor(member), project.id, now=NOW)
    assert [d.id for d in report.upcoming_deadlines] == [mine.id]
    assert report.statistics.total_tasks == 2

    report = await report_service.get_project_report(db, actor(manager), project.id, now=NOW)
    assert [d.id for d in report.upcoming_deadlines] == [theirs.id, mine.id]


@pytest.mark.asyncio
async def test_sprint_report(db, sprint, member, manager) -> None:
    await make_task(db, sprint, assignees=[member], status=TaskStatus.DONE)
    await make_task(db, sprint, assignees=[member, manager], status=TaskStatus.DONE)
    await make_task(db, sprint)

    report = await report_service.compute_sprint_report(db, actor(manager), sprint.id, now=NOW)

    assert report.sprint.sprint_number == 1
    assert report.statistics.completed_tasks == 2
    assert report.sprint.progress == 67
    assert report.days_remaining == 11
    assert report.velocity == pytest.approx(0.67)
    assert report.projected_completion_days == 2
    assert [p.tasks_remaining for p in report.burn_down] == [1, 1, 1, 1]
    assert report.top_performers == {member.id: 2, manager.id: 1}


@pytest.mark.asyncio
async def test_sprint_report_before_start_has_no_velocity(db, project, manager) -> None:
    sprint = await make_sprint(db, project, number=2)
    sprint.start_date = NOW + timedelta(days=1)
    sprint.end_date = NOW + timedelta(days=8)
    await db.commit()
    await make_task(db, sprint)

    report = await report_service.compute_sprint_report(db, actor(manager), sprint.id, now=NOW)
    assert report.velocity == 0
    assert report.projected_completion_days == 0


@pytest.mark.asyncio
async def test_user_workload(db, manager, member, project, sprint) -> None:
    other = await make_project(db, manager, team=[member], title="Intranet")
    other_sprint = await make_sprint(db, other)
    await make_task(db, sprint, assignees=[member], status=TaskStatus.DONE)
    await make_task(db, sprint, assignees=[member], status=TaskStatus.IN_PROGRESS)
    await make_task(db, other_sprint, assignees=[member])
    await make_task(db, other_sprint, assignees=[manager])

    workload = await report_service.compute_user_workload(db, actor(member), member.id, now=NOW)

    assert workload.statistics.total_tasks == 3
    assert workload.pending_tasks == 1
    rates = {p.project_id: p.completion_rate for p in workload.projects}
    assert rates == {project.id: 50, other.id: 0}
    assert len(workload.recent_activity) == 3


@pytest.mark.asyncio
async def test_members_see_only_their_own_workload(db, manager, member) -> None:
    with pytest.raises(ForbiddenError):
        await report_service.compute_user_workload(db, actor(member), manager.id, now=NOW)

    seen = await report_service.compute_user_workload(db, actor(manager), member.id, now=NOW)
    assert seen.user_id == member.id


@pytest.mark.asyncio
async def test_dashboard_is_scoped_for_members(db, admin, manager, member, outsider, project, sprint) -> None:
    await make_task(db, sprint, assignees=[member], status=TaskStatus.DONE)
    await make_task(db, sprint, assignees=[manager])

    everything = await report_service.compute_dashboard_stats(db, actor(admin), now=NOW)
    assert everything.overview.total_projects == 1
    assert everything.overview.active_projects == 1
    assert everything.overview.total_tasks == 2
    assert everything.overview.total_users == 4
    assert everything.overview.total_sprints == 1
    assert everything.statistics.progress == 50

    mine = await report_service.compute_dashboard_stats(db, actor(member), now=NOW)
    assert mine.overview.total_tasks == 1
    assert mine.statistics.progress == 100
    assert len(mine.recent_activities) == 1

    nothing = await report_service.compute_dashboard_stats(db, actor(outsider), now=NOW)
    assert nothing.overview.total_projects == 0
    assert nothing.overview.total_tasks == 0
    assert nothing.statistics.progress == 0
