"""Application service for the planning records the ledger depends on."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wbsledger.core.config import get_settings
from wbsledger.core.errors import ConstraintViolationError, NotFoundError
from wbsledger.core.logging_config import get_logger
from wbsledger.models.entities import (
    Project,
    ProjectVisibility,
    Task,
    TaskAssignment,
    User,
    WorkPackage,
)
from wbsledger.repositories.planning_repository import PlanningRepository

logger = get_logger("services.planning")


@dataclass(slots=True)
class UserCreateData:
    email: str
    password: str
    role_name: str
    working_hours_weekly: int


@dataclass(slots=True)
class ProjectCreateData:
    title: str
    description: str | None
    supervisor_id: int


@dataclass(slots=True)
class WorkPackageCreateData:
    title: str
    description: str | None
    start_date: date
    end_date: date


@dataclass(slots=True)
class TaskCreateData:
    title: str
    description: str
    effort_hours: int
    duration_hours: int
    deadline: date
    priority_name: str = "Medium"
    status_name: str = "Not started"


@dataclass(slots=True, frozen=True)
class AssignmentEffort:
    user_id: int
    email: str
    effort_consumed: int
    effort_hypothetic: int


def deadline_within_window(work_package: WorkPackage, deadline: date) -> bool:
    return work_package.start_date <= deadline <= work_package.end_date


class PlanningService:
    """Thin creation and lookup operations around projects, tasks and assignments."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = PlanningRepository(db)

    @contextmanager
    def _write(self, conflict_detail: str) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConstraintViolationError(conflict_detail) from exc

    # ---------- Serialization ----------
    @staticmethod
    def serialize_user(user: User, role_name: str) -> dict[str, object]:
        return {
            "id": user.id,
            "email": user.email,
            "role": role_name,
            "working_hours_weekly": user.working_hours_weekly,
        }

    @staticmethod
    def serialize_project(project: Project) -> dict[str, object]:
        return {
            "id": project.id,
            "title": project.title,
            "description": project.description,
            "supervisor_id": project.supervisor_id,
            "created_by_admin_id": project.created_by_admin_id,
            "archived": project.archived,
        }

    @staticmethod
    def serialize_work_package(work_package: WorkPackage) -> dict[str, object]:
        return {
            "id": work_package.id,
            "project_id": work_package.project_id,
            "title": work_package.title,
            "description": work_package.description,
            "start_date": work_package.start_date.isoformat(),
            "end_date": work_package.end_date.isoformat(),
        }

    @staticmethod
    def serialize_task(task: Task) -> dict[str, object]:
        return {
            "id": task.id,
            "work_package_id": task.work_package_id,
            "title": task.title,
            "description": task.description,
            "effort_hours": task.effort_hours,
            "duration_hours": task.duration_hours,
            "deadline": task.deadline.isoformat(),
            "priority_id": task.priority_id,
            "status_id": task.status_id,
        }

    @staticmethod
    def serialize_assignment(assignment: TaskAssignment) -> dict[str, object]:
        return {
            "task_id": assignment.task_id,
            "user_id": assignment.user_id,
            "effort_hypothetic": assignment.effort_hypothetic,
            "effort_consumed": assignment.effort_consumed,
        }

    # ---------- Users ----------
    def create_user(self, data: UserCreateData) -> User:
        role = self.repo.get_role_by_name(data.role_name)
        if role is None:
            raise NotFoundError("Role", data.role_name)
        if data.working_hours_weekly < 0:
            raise ConstraintViolationError("working_hours_weekly must be non-negative.")

        user = User(
            email=data.email.strip().lower(),
            password=data.password,
            role_id=role.id,
            privacy_accepted=False,
            working_hours_weekly=data.working_hours_weekly,
        )
        with self._write("A user with this email already exists."):
            self.repo.add_user(user)
        logger.info("user_created", extra={"user_id": user.id, "role": role.role_name})
        return user

    def change_role(self, *, actor_id: int, user_id: int, role_name: str) -> User:
        if actor_id == user_id:
            raise ConstraintViolationError("Users cannot change their own role.")
        user = self.repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        role = self.repo.get_role_by_name(role_name)
        if role is None:
            raise NotFoundError("Role", role_name)
        user.role_id = role.id
        self.db.commit()
        logger.info("user_role_changed", extra={"user_id": user.id, "role": role.role_name, "actor_id": actor_id})
        return user

    def role_name(self, user: User) -> str:
        role = self.repo.get_role(user.role_id)
        return role.role_name if role is not None else ""

    # ---------- Projects ----------
    def create_project(self, *, admin_id: int, data: ProjectCreateData) -> Project:
        title = data.title.strip()
        if title == get_settings().non_working_project_title:
            raise ConstraintViolationError(f"Project title {title!r} is reserved for the time-off catalogue.")
        if self.repo.get_user(data.supervisor_id) is None:
            raise NotFoundError("User", data.supervisor_id)

        project = Project(
            title=title,
            description=data.description.strip() if data.description else None,
            created_by_admin_id=admin_id,
            supervisor_id=data.supervisor_id,
            archived=False,
        )
        with self._write("Project could not be created."):
            self.repo.add_project(project)
            # The supervisor always sees the projects they run.
            self.repo.add_visibility(ProjectVisibility(project_id=project.id, user_id=data.supervisor_id))
        return project

    def set_archived(self, project_id: int, archived: bool) -> Project:
        project = self.repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        project.archived = archived
        self.db.commit()
        return project

    def grant_visibility(self, *, project_id: int, user_id: int) -> bool:
        """Make ``project_id`` visible to ``user_id``; returns False if it already was."""

        if self.repo.get_project(project_id) is None:
            raise NotFoundError("Project", project_id)
        if self.repo.get_user(user_id) is None:
            raise NotFoundError("User", user_id)
        if self.repo.get_visibility(project_id, user_id) is not None:
            return False
        with self._write("Project visibility could not be granted."):
            self.repo.add_visibility(ProjectVisibility(project_id=project_id, user_id=user_id))
        return True

    # ---------- Work packages ----------
    def create_work_package(self, *, project_id: int, data: WorkPackageCreateData) -> WorkPackage:
        if self.repo.get_project(project_id) is None:
            raise NotFoundError("Project", project_id)
        if data.end_date < data.start_date:
            raise ConstraintViolationError("end_date must be greater than or equal to start_date.")

        work_package = WorkPackage(
            project_id=project_id,
            title=data.title.strip(),
            description=data.description.strip() if data.description else None,
            start_date=data.start_date,
            end_date=data.end_date,
        )
        with self._write("Work package could not be created."):
            self.repo.add_work_package(work_package)
        return work_package

    # ---------- Tasks ----------
    def create_task(self, *, work_package_id: int, data: TaskCreateData) -> Task:
        work_package = self.repo.get_work_package(work_package_id)
        if work_package is None:
            raise NotFoundError("Work package", work_package_id)
        if not deadline_within_window(work_package, data.deadline):
            raise ConstraintViolationError(
                "Task deadline must lie within the work package window "
                f"[{work_package.start_date.isoformat()}, {work_package.end_date.isoformat()}]."
            )
        if data.effort_hours < 0 or data.duration_hours < 0:
            raise ConstraintViolationError("effort_hours and duration_hours must be non-negative.")

        priority = self.repo.get_priority_by_name(data.priority_name)
        if priority is None:
            raise NotFoundError("Priority", data.priority_name)
        task_status = self.repo.get_status_by_name(data.status_name)
        if task_status is None:
            raise NotFoundError("Status", data.status_name)

        task = Task(
            work_package_id=work_package_id,
            title=data.title.strip(),
            description=data.description.strip(),
            effort_hours=data.effort_hours,
            duration_hours=data.duration_hours,
            deadline=data.deadline,
            priority_id=priority.id,
            status_id=task_status.id,
        )
        with self._write("Task could not be created."):
            self.repo.add_task(task)
        return task

    # ---------- Assignments ----------
    def assign_task(self, *, task_id: int, user_id: int, effort_hypothetic: int) -> TaskAssignment:
        if self.repo.get_task(task_id) is None:
            raise NotFoundError("Task", task_id)
        if self.repo.get_user(user_id) is None:
            raise NotFoundError("User", user_id)
        if effort_hypothetic < 0:
            raise ConstraintViolationError("effort_hypothetic must be non-negative.")
        if self.repo.get_assignment(task_id, user_id) is not None:
            raise ConstraintViolationError(f"User {user_id} is already assigned to task {task_id}.")

        assignment = TaskAssignment(
            task_id=task_id,
            user_id=user_id,
            effort_hypothetic=effort_hypothetic,
            effort_consumed=0,
        )
        with self._write("Task assignment could not be created."):
            self.repo.add_assignment(assignment)
        logger.info(
            "task_assigned",
            extra={"task_id": task_id, "user_id": user_id, "effort_hypothetic": effort_hypothetic},
        )
        return assignment

    def list_assignment_efforts(self, task_id: int) -> list[AssignmentEffort]:
        if self.repo.get_task(task_id) is None:
            raise NotFoundError("Task", task_id)
        return [
            AssignmentEffort(
                user_id=user.id,
                email=user.email,
                effort_consumed=assignment.effort_consumed,
                effort_hypothetic=assignment.effort_hypothetic,
            )
            for assignment, user in self.repo.list_assignments_with_users(task_id)
        ]

    # ---------- Read accessors ----------
    def get_working_hours_weekly(self, user_id: int) -> int:
        user = self.repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user.working_hours_weekly

    def get_project_title(self, project_id: int) -> str:
        project = self.repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project.title

    def get_task_title(self, task_id: int) -> str:
        task = self.repo.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task.title
