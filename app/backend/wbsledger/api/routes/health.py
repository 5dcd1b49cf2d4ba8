"""Health check endpoints."""

from fastapi import APIRouter

from wbsledger.core.config import get_settings

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Simple liveness endpoint."""

    return {"status": "ok", "service": get_settings().app_name}
