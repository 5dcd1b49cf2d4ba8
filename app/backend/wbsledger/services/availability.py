"""Tasks a user may log hours against on a given day."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from wbsledger.core.errors import NotFoundError, StoreUnavailableError
from wbsledger.repositories.ledger_repository import LedgerRepository
from wbsledger.repositories.planning_repository import PlanningRepository


def render_label(record_id: int, title: str) -> str:
    return f"{record_id} - {title}"


def task_labels(tasks: list[AvailableTask]) -> dict[str, str]:
    """``"{id} - {title}"`` task label -> project label; later entries win on collision."""

    labels: dict[str, str] = {}
    for task in tasks:
        labels[task.task_label] = task.project_label
    return labels


@dataclass(slots=True, frozen=True)
class AvailableTask:
    task_id: int
    task_title: str
    project_id: int
    project_title: str
    non_working: bool = False

    @property
    def task_label(self) -> str:
        return render_label(self.task_id, self.task_title)

    @property
    def project_label(self) -> str:
        return render_label(self.project_id, self.project_title)


class AvailabilityResolver:
    """Union of unlogged assigned tasks and the non-working catalogue."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    @contextmanager
    def _session_scope(self, operation: str) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(operation, type(exc).__name__) from exc
        finally:
            session.close()

    def _catalogue(self, session: Session, user_id: int, day: date) -> list[AvailableTask]:
        project = PlanningRepository(session).get_non_working_project()
        if project is None:
            return []
        return [
            AvailableTask(
                task_id=task.id,
                task_title=task.title,
                project_id=project.id,
                project_title=project.title,
                non_working=True,
            )
            for task in LedgerRepository(session).list_unlogged_project_tasks(user_id, project.id, day)
        ]

    def available_tasks(self, user_id: int, day: date) -> list[AvailableTask]:
        """Assigned, visible, non-archived tasks not yet logged on ``day``, then the catalogue.

        Catalogue tasks follow the same rule: one logged on ``day`` is not offered.
        """

        with self._session_scope("available_tasks") as session:
            if PlanningRepository(session).get_user(user_id) is None:
                raise NotFoundError("User", user_id)

            assigned = [
                AvailableTask(
                    task_id=task.id,
                    task_title=task.title,
                    project_id=project.id,
                    project_title=project.title,
                )
                for task, project in LedgerRepository(session).list_unlogged_assigned_tasks(user_id, day)
            ]
            return assigned + self._catalogue(session, user_id, day)

    def available_task_labels(self, user_id: int, day: date) -> dict[str, str]:
        return task_labels(self.available_tasks(user_id, day))
