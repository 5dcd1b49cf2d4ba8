"""Current user endpoint."""

from fastapi import APIRouter, Depends

from wbsledger.core.auth import RequestUserContext, get_current_user_context

router = APIRouter(prefix="/me", tags=["me"])


@router.get("")
def get_me(context: RequestUserContext = Depends(get_current_user_context)) -> dict[str, object]:
    """Return current authenticated user profile and role."""

    return {
        "id": context.user_id,
        "email": context.email,
        "role": context.role_name,
        "working_hours_weekly": context.working_hours_weekly,
    }
