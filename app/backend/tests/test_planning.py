from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
from sqlalchemy.orm import Session, sessionmaker

from conftest import LedgerWorld
from wbsledger.core.config import get_settings
from wbsledger.core.errors import ConstraintViolationError, NotFoundError
from wbsledger.db.seed import PRIORITY_NAMES, ROLE_NAMES, STATUS_NAMES, seed_reference_data
from wbsledger.models.entities import ROLE_ADMINISTRATOR, ROLE_SUPERVISOR
from wbsledger.repositories.planning_repository import PlanningRepository
from wbsledger.services.effort_ledger import EffortLedger
from wbsledger.services.planning_service import (
    AssignmentEffort,
    PlanningService,
    ProjectCreateData,
    TaskCreateData,
    UserCreateData,
    WorkPackageCreateData,
)


CATALOGUE_TITLE = get_settings().non_working_project_title


def _task_data(deadline: date) -> TaskCreateData:
    return TaskCreateData(
        title="Analysis",
        description="Data analysis",
        effort_hours=10,
        duration_hours=20,
        deadline=deadline,
    )


def test_seed_is_idempotent(db_session: Session) -> None:
    repo = PlanningRepository(db_session)
    catalogue = seed_reference_data(db_session)

    assert seed_reference_data(db_session).id == catalogue.id
    assert [role.role_name for role in repo.list_roles()] == list(ROLE_NAMES)
    assert all(repo.get_priority_by_name(name) is not None for name in PRIORITY_NAMES)
    assert all(repo.get_status_by_name(name) is not None for name in STATUS_NAMES)
    assert len(repo.list_tasks_for_project(catalogue.id)) == 4
    assert catalogue.non_working is True
    assert repo.get_non_working_project().id == catalogue.id


@pytest.mark.parametrize("deadline", [date(2024, 1, 1), date(2024, 6, 15), date(2024, 12, 31)])
def test_task_deadline_inside_window_is_accepted(db_session: Session, world: LedgerWorld, deadline: date) -> None:
    task = PlanningService(db_session).create_task(work_package_id=world.work_package_id, data=_task_data(deadline))

    assert task.deadline == deadline


@pytest.mark.parametrize("deadline", [date(2023, 12, 31), date(2025, 1, 1)])
def test_task_deadline_outside_window_is_rejected(db_session: Session, world: LedgerWorld, deadline: date) -> None:
    with pytest.raises(ConstraintViolationError):
        PlanningService(db_session).create_task(work_package_id=world.work_package_id, data=_task_data(deadline))


def test_work_package_window_must_be_ordered(db_session: Session, world: LedgerWorld) -> None:
    with pytest.raises(ConstraintViolationError):
        PlanningService(db_session).create_work_package(
            project_id=world.project_id,
            data=WorkPackageCreateData(
                title="Backwards",
                description=None,
                start_date=date(2024, 5, 1),
                end_date=date(2024, 4, 1),
            ),
        )


def test_duplicate_email_is_rejected(db_session: Session, world: LedgerWorld) -> None:
    with pytest.raises(ConstraintViolationError):
        PlanningService(db_session).create_user(
            UserCreateData(
                email="Researcher@local.test",
                password="x",
                role_name="Researcher",
                working_hours_weekly=20,
            )
        )


def test_assignment_starts_at_zero_and_is_unique(db_session: Session, world: LedgerWorld) -> None:
    service = PlanningService(db_session)
    assignment = service.assign_task(task_id=world.task_id, user_id=world.supervisor_id, effort_hypothetic=5)

    assert assignment.effort_consumed == 0
    with pytest.raises(ConstraintViolationError):
        service.assign_task(task_id=world.task_id, user_id=world.supervisor_id, effort_hypothetic=5)


def test_list_assignment_efforts_reflects_ledger(
    db_session: Session,
    session_factory: sessionmaker[Session],
    world: LedgerWorld,
) -> None:
    EffortLedger(session_factory).record_hours(world.researcher_id, world.task_id, date(2024, 3, 4), "3.5")

    efforts = PlanningService(db_session).list_assignment_efforts(world.task_id)

    assert efforts == [
        AssignmentEffort(
            user_id=world.researcher_id,
            email="researcher@local.test",
            effort_consumed=3,
            effort_hypothetic=8,
        )
    ]


def test_read_accessors(db_session: Session, world: LedgerWorld) -> None:
    service = PlanningService(db_session)

    assert service.get_working_hours_weekly(world.researcher_id) == 40
    assert service.get_project_title(world.project_id) == "Alpha"
    assert service.get_task_title(world.task_id) == "Literature review"
    with pytest.raises(NotFoundError):
        service.get_task_title(999)
    with pytest.raises(NotFoundError):
        service.get_project_title(999)
    with pytest.raises(NotFoundError):
        service.get_working_hours_weekly(999)


def test_role_change_is_never_self_service(db_session: Session, world: LedgerWorld) -> None:
    service = PlanningService(db_session)

    with pytest.raises(ConstraintViolationError):
        service.change_role(actor_id=world.admin_id, user_id=world.admin_id, role_name=ROLE_SUPERVISOR)

    user = service.change_role(actor_id=world.admin_id, user_id=world.researcher_id, role_name=ROLE_ADMINISTRATOR)
    assert service.role_name(user) == ROLE_ADMINISTRATOR


def test_grant_visibility_is_idempotent(db_session: Session, world: LedgerWorld) -> None:
    service = PlanningService(db_session)

    assert service.grant_visibility(project_id=world.project_id, user_id=world.researcher_id) is False
    assert service.grant_visibility(project_id=world.project_id, user_id=world.admin_id) is True


@pytest.mark.parametrize("title", [CATALOGUE_TITLE, f"  {CATALOGUE_TITLE} "])
def test_catalogue_title_is_reserved(db_session: Session, world: LedgerWorld, title: str) -> None:
    service = PlanningService(db_session)

    with pytest.raises(ConstraintViolationError):
        service.create_project(
            admin_id=world.admin_id,
            data=ProjectCreateData(title=title, description=None, supervisor_id=world.supervisor_id),
        )

    catalogue = PlanningRepository(db_session).get_non_working_project()
    assert catalogue.id == world.catalogue_project_id


def test_project_records_creation_time_in_utc(db_session: Session, world: LedgerWorld) -> None:
    before = datetime.now(UTC).replace(tzinfo=None)
    project = PlanningService(db_session).create_project(
        admin_id=world.admin_id,
        data=ProjectCreateData(title="Beta", description=None, supervisor_id=world.supervisor_id),
    )
    after = datetime.now(UTC).replace(tzinfo=None)

    assert before <= project.created_at.replace(tzinfo=None) <= after
