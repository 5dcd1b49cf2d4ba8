"""Administration endpoints for user accounts and roles."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wbsledger.core.auth import RequestUserContext, require_roles
from wbsledger.db.dependencies import get_db_session
from wbsledger.models.entities import ROLE_ADMINISTRATOR, ROLE_RESEARCHER
from wbsledger.services.planning_service import PlanningService, UserCreateData

router = APIRouter(prefix="/users", tags=["admin"])


class UserCreatePayload(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=255)
    role: str = ROLE_RESEARCHER
    working_hours_weekly: int = Field(default=40, ge=0, le=168)


class UserRoleUpdatePayload(BaseModel):
    role: str


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreatePayload,
    context: RequestUserContext = Depends(require_roles(ROLE_ADMINISTRATOR)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = PlanningService(db)
    user = service.create_user(
        UserCreateData(
            email=payload.email,
            password=payload.password,
            role_name=payload.role,
            working_hours_weekly=payload.working_hours_weekly,
        )
    )
    return service.serialize_user(user, service.role_name(user))


@router.patch("/{user_id}/role")
def update_user_role(
    user_id: int,
    payload: UserRoleUpdatePayload,
    context: RequestUserContext = Depends(require_roles(ROLE_ADMINISTRATOR)),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = PlanningService(db)
    user = service.change_role(actor_id=context.user_id, user_id=user_id, role_name=payload.role)
    return service.serialize_user(user, service.role_name(user))
