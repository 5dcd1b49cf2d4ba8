"""Repository helpers for users, projects, work packages, tasks and assignments."""

from __future__ import annotations

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from wbsledger.models.entities import (
    Priority,
    Project,
    ProjectVisibility,
    Role,
    Status,
    Task,
    TaskAssignment,
    User,
    WorkPackage,
)


class PlanningRepository:
    """Persistence operations used by planning collaborators and read accessors."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Reference data ----------
    def get_role_by_name(self, role_name: str) -> Role | None:
        return self.db.scalar(select(Role).where(Role.role_name == role_name))

    def get_role(self, role_id: int) -> Role | None:
        return self.db.scalar(select(Role).where(Role.id == role_id))

    def list_roles(self) -> list[Role]:
        return self.db.scalars(select(Role).order_by(Role.id.asc())).all()

    def get_priority_by_name(self, priority_name: str) -> Priority | None:
        return self.db.scalar(select(Priority).where(Priority.priority_name == priority_name))

    def get_status_by_name(self, status_name: str) -> Status | None:
        return self.db.scalar(select(Status).where(Status.status_name == status_name))

    # ---------- Users ----------
    def get_user(self, user_id: int) -> User | None:
        return self.db.scalar(select(User).where(User.id == user_id))

    def get_user_by_email(self, email: str) -> User | None:
        return self.db.scalar(select(User).where(User.email == email))

    def add_user(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    # ---------- Projects ----------
    def get_project(self, project_id: int) -> Project | None:
        return self.db.scalar(select(Project).where(Project.id == project_id))

    def get_non_working_project(self) -> Project | None:
        return self.db.scalar(
            select(Project).where(Project.non_working.is_(True)).order_by(Project.id.asc())
        )

    def add_project(self, project: Project) -> Project:
        self.db.add(project)
        self.db.flush()
        return project

    def get_visibility(self, project_id: int, user_id: int) -> ProjectVisibility | None:
        return self.db.scalar(
            select(ProjectVisibility).where(
                and_(
                    ProjectVisibility.project_id == project_id,
                    ProjectVisibility.user_id == user_id,
                )
            )
        )

    def add_visibility(self, visibility: ProjectVisibility) -> ProjectVisibility:
        self.db.add(visibility)
        self.db.flush()
        return visibility

    # ---------- Work packages ----------
    def get_work_package(self, work_package_id: int) -> WorkPackage | None:
        return self.db.scalar(select(WorkPackage).where(WorkPackage.id == work_package_id))

    def list_work_packages(self, project_id: int) -> list[WorkPackage]:
        return self.db.scalars(
            select(WorkPackage).where(WorkPackage.project_id == project_id).order_by(WorkPackage.id.asc())
        ).all()

    def add_work_package(self, work_package: WorkPackage) -> WorkPackage:
        self.db.add(work_package)
        self.db.flush()
        return work_package

    # ---------- Tasks ----------
    def get_task(self, task_id: int) -> Task | None:
        return self.db.scalar(select(Task).where(Task.id == task_id))

    def get_task_project(self, task_id: int) -> Project | None:
        return self.db.scalar(
            select(Project)
            .join(WorkPackage, WorkPackage.project_id == Project.id)
            .join(Task, Task.work_package_id == WorkPackage.id)
            .where(Task.id == task_id)
        )

    def list_tasks_for_project(self, project_id: int) -> list[Task]:
        return self.db.scalars(
            select(Task)
            .join(WorkPackage, WorkPackage.id == Task.work_package_id)
            .where(WorkPackage.project_id == project_id)
            .order_by(Task.id.asc())
        ).all()

    def add_task(self, task: Task) -> Task:
        self.db.add(task)
        self.db.flush()
        return task

    # ---------- Task assignments ----------
    def get_assignment(self, task_id: int, user_id: int) -> TaskAssignment | None:
        return self.db.scalar(
            select(TaskAssignment).where(
                and_(
                    TaskAssignment.task_id == task_id,
                    TaskAssignment.user_id == user_id,
                )
            )
        )

    def list_assignments_with_users(self, task_id: int) -> list[tuple[TaskAssignment, User]]:
        rows = self.db.execute(
            select(TaskAssignment, User)
            .join(User, User.id == TaskAssignment.user_id)
            .where(TaskAssignment.task_id == task_id)
            .order_by(User.id.asc())
        ).all()
        return [(assignment, user) for assignment, user in rows]

    def add_assignment(self, assignment: TaskAssignment) -> TaskAssignment:
        self.db.add(assignment)
        self.db.flush()
        return assignment
