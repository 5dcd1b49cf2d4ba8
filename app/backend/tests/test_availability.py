from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.orm import Session, sessionmaker

from conftest import LedgerWorld
from wbsledger.core.errors import NotFoundError
from wbsledger.db.seed import NON_WORKING_TASK_TITLES
from wbsledger.services.availability import AvailabilityResolver, render_label
from wbsledger.services.effort_ledger import EffortLedger
from wbsledger.services.planning_service import (
    PlanningService,
    ProjectCreateData,
    TaskCreateData,
    WorkPackageCreateData,
)

DAY = date(2024, 3, 4)


@pytest.fixture()
def resolver(session_factory: sessionmaker[Session]) -> AvailabilityResolver:
    return AvailabilityResolver(session_factory)


def _task_ids(resolver: AvailabilityResolver, user_id: int, day: date = DAY) -> list[int]:
    return [task.task_id for task in resolver.available_tasks(user_id, day)]


def _create_assigned_task(db: Session, world: LedgerWorld, *, title: str, visible: bool) -> tuple[int, int]:
    service = PlanningService(db)
    project = service.create_project(
        admin_id=world.admin_id,
        data=ProjectCreateData(title=title, description=None, supervisor_id=world.supervisor_id),
    )
    if visible:
        service.grant_visibility(project_id=project.id, user_id=world.researcher_id)
    work_package = service.create_work_package(
        project_id=project.id,
        data=WorkPackageCreateData(
            title=f"{title} WP",
            description=None,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
        ),
    )
    task = service.create_task(
        work_package_id=work_package.id,
        data=TaskCreateData(
            title=f"{title} task",
            description="",
            effort_hours=10,
            duration_hours=10,
            deadline=date(2024, 12, 31),
        ),
    )
    service.assign_task(task_id=task.id, user_id=world.researcher_id, effort_hypothetic=4)
    return project.id, task.id


def test_assigned_tasks_come_first_then_catalogue(resolver: AvailabilityResolver, world: LedgerWorld) -> None:
    tasks = resolver.available_tasks(world.researcher_id, DAY)

    assert [task.task_id for task in tasks[:2]] == [world.task_id, world.other_task_id]
    assert all(task.non_working is False for task in tasks[:2])
    assert [task.task_title for task in tasks[2:]] == list(NON_WORKING_TASK_TITLES)
    assert all(task.non_working for task in tasks[2:])


def test_logged_task_is_excluded_until_removed(
    session_factory: sessionmaker[Session],
    resolver: AvailabilityResolver,
    world: LedgerWorld,
) -> None:
    ledger = EffortLedger(session_factory)
    ledger.record_hours(world.researcher_id, world.task_id, DAY, 3)

    assert world.task_id not in _task_ids(resolver, world.researcher_id)
    assert world.other_task_id in _task_ids(resolver, world.researcher_id)
    assert world.task_id in _task_ids(resolver, world.researcher_id, date(2024, 3, 5))

    ledger.remove_hours(world.researcher_id, world.task_id, DAY)

    assert world.task_id in _task_ids(resolver, world.researcher_id)


def test_logged_catalogue_task_is_excluded_until_removed(
    session_factory: sessionmaker[Session],
    resolver: AvailabilityResolver,
    world: LedgerWorld,
) -> None:
    time_off = world.catalogue_task_ids["Time off"]
    ledger = EffortLedger(session_factory)
    ledger.record_hours(world.researcher_id, time_off, DAY, 8)

    offered = _task_ids(resolver, world.researcher_id)
    assert time_off not in offered
    assert world.catalogue_task_ids["Blood donation"] in offered
    assert time_off in _task_ids(resolver, world.researcher_id, date(2024, 3, 5))
    assert time_off in _task_ids(resolver, world.supervisor_id)

    ledger.remove_hours(world.researcher_id, time_off, DAY)

    assert time_off in _task_ids(resolver, world.researcher_id)


def test_invisible_and_archived_projects_are_excluded(
    db_session: Session,
    resolver: AvailabilityResolver,
    world: LedgerWorld,
) -> None:
    _, hidden_task = _create_assigned_task(db_session, world, title="Hidden", visible=False)
    archived_project, archived_task = _create_assigned_task(db_session, world, title="Old", visible=True)

    assert hidden_task not in _task_ids(resolver, world.researcher_id)
    assert archived_task in _task_ids(resolver, world.researcher_id)

    PlanningService(db_session).set_archived(archived_project, True)

    assert archived_task not in _task_ids(resolver, world.researcher_id)


def test_user_without_assignments_sees_only_catalogue(resolver: AvailabilityResolver, world: LedgerWorld) -> None:
    tasks = resolver.available_tasks(world.supervisor_id, DAY)

    assert sorted(task.task_id for task in tasks) == sorted(world.catalogue_task_ids.values())


def test_labels_render_id_and_title(resolver: AvailabilityResolver, world: LedgerWorld) -> None:
    labels = resolver.available_task_labels(world.researcher_id, DAY)

    assert labels[render_label(world.task_id, "Literature review")] == render_label(world.project_id, "Alpha")
    time_off = world.catalogue_task_ids["Time off"]
    assert labels[f"{time_off} - Time off"] == f"{world.catalogue_project_id} - TimeOffProj"
    assert len(labels) == 2 + len(NON_WORKING_TASK_TITLES)


def test_unknown_user_raises_not_found(resolver: AvailabilityResolver, world: LedgerWorld) -> None:
    with pytest.raises(NotFoundError):
        resolver.available_tasks(999, DAY)
