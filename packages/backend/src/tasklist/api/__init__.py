"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects every route in the per-user
routers without relying on each handler to remember it. Health, login,
register and the public user listing are open.
"""

from fastapi import APIRouter, Depends

from tasklist.api.auth import router as auth_router
from tasklist.api.health import router as health_router
from tasklist.api.tasks import router as tasks_router
from tasklist.api.users import owner_router as user_owner_router
from tasklist.api.users import router as users_router
from tasklist.auth.dependencies import require_path_owner

# Per-user routes: the token must belong to {user_id}
_owner = [Depends(require_path_owner)]

api_router = APIRouter()

# Open routes, no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])

# Protected routes, path owner only
api_router.include_router(user_owner_router, tags=["users"], dependencies=_owner)
api_router.include_router(tasks_router, tags=["tasks"], dependencies=_owner)
