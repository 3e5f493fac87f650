"""Access policy — the two request gates as plain functions.

Learn: Nothing here touches FastAPI. authenticate() turns an
Authorization header into a verified TokenPayload; the require_*
checks take that payload and either return it or raise. The FastAPI
dependencies in auth/dependencies.py are thin wrappers, which keeps
these rules trivially unit-testable.
"""

from typing import Iterable, Optional

from spacehub.auth.jwt import TokenPayload, TokenService
from spacehub.errors import ForbiddenError, UnauthorizedError


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an "Authorization: Bearer <token>" header."""
    if not authorization:
        raise UnauthorizedError("Authentication required")
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedError("Authentication required")
    return token


def authenticate(authorization: Optional[str], tokens: TokenService) -> TokenPayload:
    token = extract_bearer_token(authorization)
    return tokens.verify(token)


def require_admin(payload: TokenPayload) -> TokenPayload:
    if not payload.is_admin:
        raise ForbiddenError("Admin privileges required")
    return payload


def require_any_role(payload: TokenPayload, roles: Iterable[str]) -> TokenPayload:
    """Admins always pass; everyone else needs one of `roles`."""
    if payload.is_admin or payload.has_any_role(roles):
        return payload
    raise ForbiddenError("Insufficient permissions")
