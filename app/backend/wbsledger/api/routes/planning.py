"""Project, work package, task and assignment setup endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wbsledger.core.auth import RequestUserContext, require_roles
from wbsledger.db.dependencies import get_db_session
from wbsledger.models.entities import ROLE_ADMINISTRATOR, ROLE_SUPERVISOR
from wbsledger.services.planning_service import (
    PlanningService,
    ProjectCreateData,
    TaskCreateData,
    WorkPackageCreateData,
)

router = APIRouter(tags=["planning"])

require_planner = require_roles(ROLE_ADMINISTRATOR, ROLE_SUPERVISOR)


class ProjectCreatePayload(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=255)
    supervisor_id: int


class ProjectArchivePayload(BaseModel):
    archived: bool


class VisibilityCreatePayload(BaseModel):
    user_id: int


class WorkPackageCreatePayload(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=255)
    start_date: date
    end_date: date


class TaskCreatePayload(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=255)
    effort_hours: int = Field(ge=0)
    duration_hours: int = Field(ge=0)
    deadline: date
    priority: str = "Medium"
    status: str = "Not started"


class AssignmentCreatePayload(BaseModel):
    user_id: int
    effort_hypothetic: int = Field(ge=0)


def _planning_service(db: Session) -> PlanningService:
    return PlanningService(db)


@router.post("/projects", status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreatePayload,
    context: RequestUserContext = Depends(require_planner),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    project = service.create_project(
        admin_id=context.user_id,
        data=ProjectCreateData(
            title=payload.title,
            description=payload.description,
            supervisor_id=payload.supervisor_id,
        ),
    )
    return service.serialize_project(project)


@router.patch("/projects/{project_id}/archive")
def archive_project(
    project_id: int,
    payload: ProjectArchivePayload,
    context: RequestUserContext = Depends(require_planner),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    project = service.set_archived(project_id, payload.archived)
    return service.serialize_project(project)


@router.post("/projects/{project_id}/visibility", status_code=status.HTTP_201_CREATED)
def grant_project_visibility(
    project_id: int,
    payload: VisibilityCreatePayload,
    context: RequestUserContext = Depends(require_planner),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    granted = _planning_service(db).grant_visibility(project_id=project_id, user_id=payload.user_id)
    return {"project_id": project_id, "user_id": payload.user_id, "granted": granted}


@router.post("/projects/{project_id}/work-packages", status_code=status.HTTP_201_CREATED)
def create_work_package(
    project_id: int,
    payload: WorkPackageCreatePayload,
    context: RequestUserContext = Depends(require_planner),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    work_package = service.create_work_package(
        project_id=project_id,
        data=WorkPackageCreateData(
            title=payload.title,
            description=payload.description,
            start_date=payload.start_date,
            end_date=payload.end_date,
        ),
    )
    return service.serialize_work_package(work_package)


@router.post("/work-packages/{work_package_id}/tasks", status_code=status.HTTP_201_CREATED)
def create_task(
    work_package_id: int,
    payload: TaskCreatePayload,
    context: RequestUserContext = Depends(require_planner),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    task = service.create_task(
        work_package_id=work_package_id,
        data=TaskCreateData(
            title=payload.title,
            description=payload.description,
            effort_hours=payload.effort_hours,
            duration_hours=payload.duration_hours,
            deadline=payload.deadline,
            priority_name=payload.priority,
            status_name=payload.status,
        ),
    )
    return service.serialize_task(task)


@router.post("/tasks/{task_id}/assignments", status_code=status.HTTP_201_CREATED)
def assign_task(
    task_id: int,
    payload: AssignmentCreatePayload,
    context: RequestUserContext = Depends(require_planner),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    assignment = service.assign_task(
        task_id=task_id,
        user_id=payload.user_id,
        effort_hypothetic=payload.effort_hypothetic,
    )
    return service.serialize_assignment(assignment)


@router.get("/tasks/{task_id}/assignments")
def list_task_assignments(
    task_id: int,
    context: RequestUserContext = Depends(require_planner),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    efforts = _planning_service(db).list_assignment_efforts(task_id)
    return {
        "items": [
            {
                "user_id": effort.user_id,
                "email": effort.email,
                "effort_consumed": effort.effort_consumed,
                "effort_hypothetic": effort.effort_hypothetic,
            }
            for effort in efforts
        ]
    }
