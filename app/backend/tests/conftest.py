from __future__ import annotations

import os

os.environ.setdefault("WBS_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("WBS_LOG_JSON", "false")

from collections.abc import Generator
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from wbsledger.core.logging_config import reset_logging
from wbsledger.db.base import Base
from wbsledger.db.dependencies import get_db_session, get_session_factory
from wbsledger.db.seed import SYSTEM_ADMIN_EMAIL, seed_reference_data
from wbsledger.db.session import build_engine, build_session_factory
from wbsledger.main import create_app
from wbsledger.models.entities import ROLE_RESEARCHER, ROLE_SUPERVISOR
from wbsledger.repositories.planning_repository import PlanningRepository
from wbsledger.services.planning_service import (
    PlanningService,
    ProjectCreateData,
    TaskCreateData,
    UserCreateData,
    WorkPackageCreateData,
)

RESEARCHER_EMAIL = "researcher@local.test"
SUPERVISOR_EMAIL = "supervisor@local.test"


@dataclass
class LedgerWorld:
    admin_id: int
    researcher_id: int
    supervisor_id: int
    project_id: int
    work_package_id: int
    task_id: int
    other_task_id: int
    catalogue_project_id: int
    catalogue_task_ids: dict[str, int]


@pytest.fixture(autouse=True)
def _isolated_logging() -> Generator[None, None, None]:
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def engine(tmp_path: Path) -> Generator[Engine, None, None]:
    engine = build_engine(
        f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    factory = build_session_factory(engine)
    with factory() as session:
        seed_reference_data(session)
    return factory


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def world(db_session: Session) -> LedgerWorld:
    repo = PlanningRepository(db_session)
    service = PlanningService(db_session)
    admin = repo.get_user_by_email(SYSTEM_ADMIN_EMAIL)

    researcher = service.create_user(
        UserCreateData(
            email=RESEARCHER_EMAIL,
            password="secret",
            role_name=ROLE_RESEARCHER,
            working_hours_weekly=40,
        )
    )
    supervisor = service.create_user(
        UserCreateData(
            email=SUPERVISOR_EMAIL,
            password="secret",
            role_name=ROLE_SUPERVISOR,
            working_hours_weekly=40,
        )
    )
    project = service.create_project(
        admin_id=admin.id,
        data=ProjectCreateData(title="Alpha", description="Alpha research", supervisor_id=supervisor.id),
    )
    service.grant_visibility(project_id=project.id, user_id=researcher.id)
    work_package = service.create_work_package(
        project_id=project.id,
        data=WorkPackageCreateData(
            title="WP1",
            description=None,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
        ),
    )
    task = service.create_task(
        work_package_id=work_package.id,
        data=TaskCreateData(
            title="Literature review",
            description="",
            effort_hours=40,
            duration_hours=80,
            deadline=date(2024, 6, 30),
        ),
    )
    other_task = service.create_task(
        work_package_id=work_package.id,
        data=TaskCreateData(
            title="Prototype",
            description="",
            effort_hours=80,
            duration_hours=160,
            deadline=date(2024, 9, 30),
        ),
    )
    service.assign_task(task_id=task.id, user_id=researcher.id, effort_hypothetic=8)
    service.assign_task(task_id=other_task.id, user_id=researcher.id, effort_hypothetic=16)

    catalogue = repo.get_non_working_project()
    return LedgerWorld(
        admin_id=admin.id,
        researcher_id=researcher.id,
        supervisor_id=supervisor.id,
        project_id=project.id,
        work_package_id=work_package.id,
        task_id=task.id,
        other_task_id=other_task.id,
        catalogue_project_id=catalogue.id,
        catalogue_task_ids={item.title: item.id for item in repo.list_tasks_for_project(catalogue.id)},
    )


@pytest.fixture()
def client(session_factory: sessionmaker[Session]) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = override_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(email: str = RESEARCHER_EMAIL) -> dict[str, str]:
    return {"X-User-Email": email}
