"""User account API routes.

Learn: Routes handle HTTP concerns (status codes, auth gates); the
IdentityService handles business rules. Errors are raised as AppError
and rendered by the exception handlers, so no route builds an error
response by hand.

- POST   /users        → signup (open)       → 201 {message, token}
- GET    /users?q=     → list (admin)
- GET    /users/{id}   → read (admin)
- PUT    /users/{id}   → partial update (admin)
- DELETE /users/{id}   → delete non-admin (admin) → 204
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Response

from spacehub.api.deps import get_identity_service
from spacehub.auth.dependencies import require_admin
from spacehub.auth.jwt import TokenPayload
from spacehub.schemas.user import AuthResponse, SignupRequest, UserRead, UserUpdate
from spacehub.services.identity_service import IdentityService

router = APIRouter()


@router.post("/users", response_model=AuthResponse, status_code=201)
async def signup(
    body: SignupRequest, svc: IdentityService = Depends(get_identity_service)
):
    """Create a new user account and return a token for it."""
    return await svc.signup(body)


@router.get("/users", response_model=list[UserRead])
async def list_users(
    q: Optional[str] = None,
    identity: TokenPayload = Depends(require_admin),
    svc: IdentityService = Depends(get_identity_service),
):
    return await svc.get_all(q, identity)


@router.get(
    "/users/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_admin)],
)
async def get_user(
    user_id: uuid.UUID, svc: IdentityService = Depends(get_identity_service)
):
    return await svc.get_by_id(user_id)


@router.put(
    "/users/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_admin)],
)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    svc: IdentityService = Depends(get_identity_service),
):
    return await svc.update(user_id, body)


@router.delete(
    "/users/{user_id}",
    status_code=204,
    dependencies=[Depends(require_admin)],
)
async def delete_user(
    user_id: uuid.UUID, svc: IdentityService = Depends(get_identity_service)
):
    """Delete an account. Admin accounts can't be deleted."""
    await svc.delete(user_id)
    return Response(status_code=204)
