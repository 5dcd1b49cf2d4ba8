"""Top-level API router."""

from fastapi import APIRouter

from wbsledger.api.routes.admin import router as admin_router
from wbsledger.api.routes.health import router as health_router
from wbsledger.api.routes.me import router as me_router
from wbsledger.api.routes.planning import router as planning_router
from wbsledger.api.routes.tracking import router as tracking_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(me_router)
api_router.include_router(admin_router)
api_router.include_router(planning_router)
api_router.include_router(tracking_router)
