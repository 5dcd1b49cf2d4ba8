"""Idempotent reference-data seeding."""

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from wbsledger.core.config import Settings, get_settings
from wbsledger.core.logging_config import get_logger
from wbsledger.models.entities import (
    ROLE_ADMINISTRATOR,
    ROLE_RESEARCHER,
    ROLE_SUPERVISOR,
    Priority,
    Project,
    Role,
    Status,
    Task,
    User,
    WorkPackage,
)
from wbsledger.repositories.planning_repository import PlanningRepository

logger = get_logger("db.seed")

ROLE_NAMES = (ROLE_RESEARCHER, ROLE_SUPERVISOR, ROLE_ADMINISTRATOR)
PRIORITY_NAMES = ("High", "Medium", "Low")
STATUS_NAMES = ("In Progress", "Waiting dependency", "Blocked", "Completed", "Not started")

SYSTEM_ADMIN_EMAIL = "admin"
# Accounts are managed by the identity provider; this marker never matches a credential.
UNUSABLE_PASSWORD = "!"

NON_WORKING_WORK_PACKAGE_TITLE = "Non-working time"
NON_WORKING_TASK_TITLES = (
    "Time off",
    "Medical certification",
    "Blood donation",
    "Public holiday",
)
CATALOGUE_WINDOW = (date(2000, 1, 1), date(2099, 12, 31))


def _ensure_reference_rows(session: Session) -> None:
    repo = PlanningRepository(session)
    for role_name in ROLE_NAMES:
        if repo.get_role_by_name(role_name) is None:
            session.add(Role(role_name=role_name))
    for priority_name in PRIORITY_NAMES:
        if repo.get_priority_by_name(priority_name) is None:
            session.add(Priority(priority_name=priority_name))
    for status_name in STATUS_NAMES:
        if repo.get_status_by_name(status_name) is None:
            session.add(Status(status_name=status_name))
    session.flush()


def _ensure_admin(session: Session) -> User:
    repo = PlanningRepository(session)
    admin = repo.get_user_by_email(SYSTEM_ADMIN_EMAIL)
    if admin is not None:
        return admin

    role = repo.get_role_by_name(ROLE_ADMINISTRATOR)
    admin = User(
        email=SYSTEM_ADMIN_EMAIL,
        password=UNUSABLE_PASSWORD,
        role_id=role.id,
        privacy_accepted=True,
        working_hours_weekly=0,
    )
    return repo.add_user(admin)


def _ensure_non_working_catalogue(session: Session, *, admin: User, settings: Settings) -> Project:
    repo = PlanningRepository(session)
    project = repo.get_non_working_project()
    if project is None:
        project = repo.add_project(
            Project(
                title=settings.non_working_project_title,
                description="Time-off reasons available to every user.",
                created_by_admin_id=admin.id,
                supervisor_id=admin.id,
                archived=False,
                non_working=True,
            )
        )

    work_packages = repo.list_work_packages(project.id)
    if work_packages:
        work_package = work_packages[0]
    else:
        start_date, end_date = CATALOGUE_WINDOW
        work_package = repo.add_work_package(
            WorkPackage(
                project_id=project.id,
                title=NON_WORKING_WORK_PACKAGE_TITLE,
                start_date=start_date,
                end_date=end_date,
            )
        )

    existing_titles = {task.title for task in repo.list_tasks_for_project(project.id)}
    priority = repo.get_priority_by_name("Low")
    status = repo.get_status_by_name("In Progress")
    for title in NON_WORKING_TASK_TITLES:
        if title in existing_titles:
            continue
        repo.add_task(
            Task(
                work_package_id=work_package.id,
                title=title,
                description=title,
                effort_hours=0,
                duration_hours=0,
                deadline=work_package.end_date,
                priority_id=priority.id,
                status_id=status.id,
            )
        )
    return project


def seed_reference_data(session: Session, settings: Settings | None = None) -> Project:
    """Create roles, priorities, statuses, the system admin and the non-working catalogue.

    Safe to run repeatedly. Returns the catalogue project.
    """

    settings = settings or get_settings()
    _ensure_reference_rows(session)
    admin = _ensure_admin(session)
    project = _ensure_non_working_catalogue(session, admin=admin, settings=settings)
    session.commit()
    logger.info("reference_data_seeded", extra={"catalogue_project_id": project.id})
    return project
