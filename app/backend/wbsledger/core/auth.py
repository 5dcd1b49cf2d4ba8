"""Authentication context extraction and role guard utilities."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from wbsledger.core.config import get_settings
from wbsledger.db.dependencies import get_db_session
from wbsledger.models.entities import ROLE_ADMINISTRATOR, ROLE_RESEARCHER, ROLE_SUPERVISOR
from wbsledger.repositories.planning_repository import PlanningRepository

KNOWN_ROLES: frozenset[str] = frozenset({ROLE_RESEARCHER, ROLE_SUPERVISOR, ROLE_ADMINISTRATOR})


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from headers and DB state."""

    user_id: int
    email: str
    role_name: str
    working_hours_weekly: int

    @property
    def is_admin(self) -> bool:
        return self.role_name == ROLE_ADMINISTRATOR


def _resolve_email(x_user_email: str | None) -> str:
    if x_user_email and x_user_email.strip():
        return x_user_email.strip().lower()

    settings = get_settings()
    if settings.auth_allow_dev_principal:
        return settings.auth_dev_email.strip().lower()

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Missing identity header. Expected X-User-Email or enable development principal fallback.",
    )


def load_user_context(db: Session, email: str) -> RequestUserContext | None:
    """Resolve a persisted user and role name by email; ``None`` when unknown."""

    repo = PlanningRepository(db)
    user = repo.get_user_by_email(email.strip().lower())
    if user is None:
        return None
    role = repo.get_role(user.role_id)
    return RequestUserContext(
        user_id=user.id,
        email=user.email,
        role_name=role.role_name if role is not None else "",
        working_hours_weekly=user.working_hours_weekly,
    )


def get_current_user_context(
    x_user_email: str | None = Header(default=None, alias="X-User-Email"),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve the current request user.

    Users are never created implicitly here; an unknown email is rejected.
    """

    email = _resolve_email(x_user_email)
    context = load_user_context(db, email)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown user: {email}",
        )
    return context


def has_role(context: RequestUserContext, allowed_roles: set[str]) -> bool:
    """Check whether user holds one of the allowed roles."""

    return context.role_name in allowed_roles


def require_roles(*roles: str):
    """Dependency factory requiring one of the provided roles."""

    allowed = set(roles)
    unknown = allowed - KNOWN_ROLES
    if unknown:
        raise ValueError(f"Unknown roles: {sorted(unknown)}")

    def dependency(context: RequestUserContext = Depends(get_current_user_context)) -> RequestUserContext:
        if not has_role(context, allowed):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role permissions for this operation.",
            )
        return context

    return dependency
