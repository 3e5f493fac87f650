"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The token
carries the caller's identity claims (id, name, isAdmin, roles) plus
iat/exp, signed with a process-wide HMAC secret. There is no revocation
list — a token is valid until it expires.

Verification failures are deliberately uniform: expired, tampered and
garbage tokens all raise the same AuthenticationError. The real reason
only goes to the server log.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import jwt
import structlog
from jwt.utils import base64url_decode, base64url_encode

from spacehub.config import Settings
from spacehub.errors import AuthenticationError, ConfigurationError

logger = structlog.get_logger()

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


@dataclass(frozen=True)
class TokenPayload:
    """Identity claims embedded in a token. Holds no secret material."""

    id: str
    name: str
    is_admin: bool = False
    roles: frozenset[str] = field(default_factory=frozenset)

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return not self.roles.isdisjoint(roles)

    def to_claims(self) -> dict:
        claims = {"id": self.id, "name": self.name, "isAdmin": self.is_admin}
        if self.roles:
            claims["roles"] = sorted(self.roles)
        return claims

    @classmethod
    def from_claims(cls, claims: dict) -> "TokenPayload":
        """Rebuild a payload from decoded claims, rejecting bad shapes."""
        user_id = claims.get("id")
        name = claims.get("name")
        is_admin = claims.get("isAdmin", False)
        roles = claims.get("roles", [])
        if not isinstance(user_id, str) or not isinstance(name, str):
            raise ValueError("Token claims missing id or name")
        if not isinstance(is_admin, bool):
            raise ValueError("Token claim isAdmin must be a boolean")
        if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
            raise ValueError("Token claim roles must be a list of strings")
        return cls(id=user_id, name=name, is_admin=is_admin, roles=frozenset(roles))


def _require_canonical(token: str) -> None:
    """Reject tokens whose segments aren't canonical base64url.

    Learn: base64 ignores the spare low bits of the last character, so
    two different strings can decode to the same signature. Requiring
    the canonical form means ANY changed character invalidates a token.
    """
    segments = token.split(".")
    if len(segments) != 3:
        raise ValueError("Token must have three segments")
    for segment in segments:
        if base64url_encode(base64url_decode(segment)).decode("ascii") != segment:
            raise ValueError("Token segment is not canonical base64url")


class TokenService:
    """Signs and verifies expiring identity tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(minutes=60),
    ):
        if not secret:
            raise ConfigurationError("SPACEHUB_JWT_SECRET must be set")
        if ttl <= timedelta(0):
            raise ConfigurationError("Token TTL must be positive")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl=timedelta(minutes=settings.access_token_expire_minutes),
        )

    def create_token(
        self, payload: TokenPayload, ttl: Optional[timedelta] = None
    ) -> str:
        """Create a signed token that expires after `ttl` (default from config)."""
        now = datetime.now(timezone.utc)
        claims = {
            **payload.to_claims(),
            "iat": now,
            "exp": now + (ttl if ttl is not None else self.ttl),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenPayload:
        """Verify signature and expiry, returning the embedded payload.

        Raises AuthenticationError on any failure.
        """
        try:
            _require_canonical(token)
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
            payload = TokenPayload.from_claims(claims)
        except jwt.ExpiredSignatureError:
            reason = "expired"
        except (jwt.InvalidTokenError, ValueError, TypeError) as e:
            reason = str(e) or type(e).__name__
        else:
            return payload

        logger.info("token.verify_failed", reason=reason)
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)
