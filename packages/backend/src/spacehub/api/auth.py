"""Auth API — login and current user.

- POST /login → email/password → {message, token}
- GET  /me    → the caller's own account (any authenticated user)
"""

from fastapi import APIRouter, Depends

from spacehub.api.deps import get_identity_service
from spacehub.auth.dependencies import get_current_identity
from spacehub.auth.jwt import TokenPayload
from spacehub.schemas.user import AuthResponse, LoginRequest, UserRead
from spacehub.services.identity_service import IdentityService

router = APIRouter()


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest, svc: IdentityService = Depends(get_identity_service)
):
    """Login with email and password → JWT token."""
    return await svc.login(body)


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: TokenPayload = Depends(get_current_identity),
    svc: IdentityService = Depends(get_identity_service),
):
    return await svc.get_by_id(identity.id)
