"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Signup, login and health are open. Everything under /users other
than signup is admin-only; the gate is declared per route with
Depends(require_admin), which itself depends on authentication.
"""

from fastapi import APIRouter

from spacehub.api.auth import router as auth_router
from spacehub.api.health import router as health_router
from spacehub.api.users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
