from __future__ import annotations

from fastapi import APIRouter

from projects_api.api.routes.auth import router as auth_router
from projects_api.api.routes.health import router as health_router
from projects_api.api.routes.projects import router as projects_router
from projects_api.api.routes.tasks import router as tasks_router
from projects_api.api.routes.users import router as users_router

API_PREFIX = "/api/v1"

api_router = APIRouter(prefix=API_PREFIX)
api_router.include_router(users_router)
api_router.include_router(auth_router)
api_router.include_router(projects_router)
api_router.include_router(tasks_router)

__all__ = ["API_PREFIX", "api_router", "health_router"]
