"""Repository helpers for the two ledger tables."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import and_, delete, exists, select, update
from sqlalchemy.orm import Session

from wbsledger.models.entities import (
    Project,
    ProjectVisibility,
    Task,
    TaskAssignment,
    TimeEntry,
    WorkPackage,
)


class LedgerRepository:
    """Statements over ``time_entries`` and ``task_assignments.effort_consumed``."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Time entries ----------
    def get_entry(self, user_id: int, task_id: int, entry_date: date) -> TimeEntry | None:
        return self.db.scalar(
            select(TimeEntry).where(
                and_(
                    TimeEntry.user_id == user_id,
                    TimeEntry.task_id == task_id,
                    TimeEntry.entry_date == entry_date,
                )
            )
        )

    def add_entry(self, entry: TimeEntry) -> TimeEntry:
        self.db.add(entry)
        self.db.flush()
        return entry

    def delete_entry(self, user_id: int, task_id: int, entry_date: date) -> int:
        result = self.db.execute(
            delete(TimeEntry)
            .where(
                and_(
                    TimeEntry.user_id == user_id,
                    TimeEntry.task_id == task_id,
                    TimeEntry.entry_date == entry_date,
                )
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def list_entries(self, user_id: int, *, from_date: date, to_date: date) -> list[TimeEntry]:
        return self.db.scalars(
            select(TimeEntry)
            .where(
                and_(
                    TimeEntry.user_id == user_id,
                    TimeEntry.entry_date >= from_date,
                    TimeEntry.entry_date <= to_date,
                )
            )
            .order_by(TimeEntry.entry_date.asc(), TimeEntry.task_id.asc())
        ).all()

    def list_entry_hours_for_assignment(self, user_id: int, task_id: int) -> list[Decimal]:
        return self.db.scalars(
            select(TimeEntry.hours).where(
                and_(TimeEntry.user_id == user_id, TimeEntry.task_id == task_id)
            )
        ).all()

    def list_entries_with_project(
        self,
        user_id: int,
        *,
        from_date: date,
        to_date: date,
    ) -> list[tuple[date, int, int, Decimal]]:
        rows = self.db.execute(
            select(
                TimeEntry.entry_date,
                WorkPackage.project_id,
                TimeEntry.task_id,
                TimeEntry.hours,
            )
            .join(Task, Task.id == TimeEntry.task_id)
            .join(WorkPackage, WorkPackage.id == Task.work_package_id)
            .where(
                and_(
                    TimeEntry.user_id == user_id,
                    TimeEntry.entry_date >= from_date,
                    TimeEntry.entry_date <= to_date,
                )
            )
            .order_by(
                TimeEntry.entry_date.asc(),
                WorkPackage.project_id.asc(),
                TimeEntry.task_id.asc(),
            )
        ).all()
        return [(entry_date, project_id, task_id, hours) for entry_date, project_id, task_id, hours in rows]

    # ---------- Effort counter ----------
    def get_consumed(self, task_id: int, user_id: int) -> int | None:
        return self.db.scalar(
            select(TaskAssignment.effort_consumed).where(
                and_(TaskAssignment.task_id == task_id, TaskAssignment.user_id == user_id)
            )
        )

    def increment_consumed(self, task_id: int, user_id: int, delta: int) -> int:
        result = self.db.execute(
            update(TaskAssignment)
            .where(and_(TaskAssignment.task_id == task_id, TaskAssignment.user_id == user_id))
            .values(effort_consumed=TaskAssignment.effort_consumed + delta)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def set_consumed(self, task_id: int, user_id: int, value: int) -> int:
        result = self.db.execute(
            update(TaskAssignment)
            .where(and_(TaskAssignment.task_id == task_id, TaskAssignment.user_id == user_id))
            .values(effort_consumed=value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    # ---------- Availability ----------
    @staticmethod
    def _logged_on(user_id: int, entry_date: date):
        return exists().where(
            and_(
                TimeEntry.user_id == user_id,
                TimeEntry.task_id == Task.id,
                TimeEntry.entry_date == entry_date,
            )
        )

    def list_unlogged_assigned_tasks(self, user_id: int, entry_date: date) -> list[tuple[Task, Project]]:
        rows = self.db.execute(
            select(Task, Project)
            .join(TaskAssignment, TaskAssignment.task_id == Task.id)
            .join(WorkPackage, WorkPackage.id == Task.work_package_id)
            .join(Project, Project.id == WorkPackage.project_id)
            .join(
                ProjectVisibility,
                and_(
                    ProjectVisibility.project_id == Project.id,
                    ProjectVisibility.user_id == user_id,
                ),
            )
            .where(
                and_(
                    TaskAssignment.user_id == user_id,
                    Project.archived.is_(False),
                    Project.non_working.is_(False),
                    ~self._logged_on(user_id, entry_date),
                )
            )
            .order_by(Project.id.asc(), Task.id.asc())
        ).all()
        return [(task, project) for task, project in rows]

    def list_unlogged_project_tasks(self, user_id: int, project_id: int, entry_date: date) -> list[Task]:
        """Tasks of one project without an entry by ``user_id`` on ``entry_date``."""

        return self.db.scalars(
            select(Task)
            .join(WorkPackage, WorkPackage.id == Task.work_package_id)
            .where(
                and_(
                    WorkPackage.project_id == project_id,
                    ~self._logged_on(user_id, entry_date),
                )
            )
            .order_by(Task.id.asc())
        ).all()
