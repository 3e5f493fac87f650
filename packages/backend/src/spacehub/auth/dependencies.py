"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. The authorization
dependencies depend on get_current_identity, so FastAPI always runs
authentication first — an unauthenticated request can never reach a
role check, let alone a handler.

They must be `async def`. Sync dependencies run in a worker
thread with a copied context, and the user_id bound into structlog's
contextvars would never reach the handler's log lines.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from spacehub.auth import policy
from spacehub.auth.jwt import TokenPayload, TokenService


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


async def get_current_identity(
    request: Request,
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> TokenPayload:
    """Authenticate the bearer token (401 if missing or invalid)."""
    payload = policy.authenticate(authorization, tokens)
    request.state.identity = payload
    structlog.contextvars.bind_contextvars(user_id=payload.id)
    return payload


async def require_admin(
    identity: TokenPayload = Depends(get_current_identity),
) -> TokenPayload:
    """Authenticated AND admin (403 otherwise)."""
    return policy.require_admin(identity)


def require_any_role(*roles: str):
    """Build a dependency that admits admins or holders of any of `roles`."""
    allowed = frozenset(roles)

    async def dependency(
        identity: TokenPayload = Depends(get_current_identity),
    ) -> TokenPayload:
        return policy.require_any_role(identity, allowed)

    return dependency
