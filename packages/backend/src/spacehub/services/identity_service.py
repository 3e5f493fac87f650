"""Identity service — signup, login, and account management.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the identity store.
This makes the code testable (test services without HTTP)
and reusable (the CLI and API routes share the same logic).

Rules owned here:
- email is unique (pre-checked here, enforced by the store)
- passwords are hashed before they reach the store, on signup AND update
- only signup and login mint tokens
- no method returns a password hash — results are UserRead projections
- admins can't be deleted
"""

import uuid
from datetime import datetime
from typing import Callable, Optional, TypeVar, Union

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from spacehub.auth.jwt import TokenPayload, TokenService
from spacehub.auth.password import CredentialHasher
from spacehub.db.models import User, utcnow
from spacehub.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    describe_validation_errors,
)
from spacehub.schemas.user import (
    AuthResponse,
    LoginRequest,
    SignupRequest,
    UserRead,
    UserUpdate,
)
from spacehub.store.base import EMAIL_TAKEN, IdentityStore

logger = structlog.get_logger()

INVALID_CREDENTIALS = "invalid credentials"
USER_NOT_FOUND = "user not found"

M = TypeVar("M", bound=BaseModel)


def _parse(model: type[M], data: Union[M, dict]) -> M:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(describe_validation_errors(e.errors())) from e


def _as_uuid(user_id: Union[uuid.UUID, str]) -> uuid.UUID:
    if isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except ValueError:
        raise NotFoundError(USER_NOT_FOUND) from None


def token_payload_for(user: User) -> TokenPayload:
    return TokenPayload(
        id=str(user.id),
        name=user.name,
        is_admin=bool(user.is_admin),
        roles=frozenset(user.roles or ()),
    )


class IdentityService:
    """Business logic for user accounts."""

    def __init__(
        self,
        store: IdentityStore,
        hasher: CredentialHasher,
        tokens: TokenService,
        *,
        id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
        clock: Callable[[], datetime] = utcnow,
        hide_unknown_email: bool = False,
    ):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.id_factory = id_factory
        self.clock = clock
        self.hide_unknown_email = hide_unknown_email

    # ─── Signup / login ─────────────────────────────────

    async def signup(self, data: Union[SignupRequest, dict]) -> AuthResponse:
        """Create an account and return a token for it.

        Learn: The email lookup is only a fast path for the common case.
        Two concurrent signups can both pass it; the store's unique
        constraint then rejects the second INSERT with the same
        ConflictError, so callers see one outcome either way.
        """
        body = _parse(SignupRequest, data)

        if await self.store.get_by_email(body.email):
            raise ConflictError(EMAIL_TAKEN)

        now = self.clock()
        user = User(
            id=self.id_factory(),
            name=body.name,
            email=body.email,
            password_hash=await self.hasher.hash(body.password),
            phone=body.phone,
            document_type=body.document_type,
            document_number=body.document_number,
            is_admin=body.is_admin,
            roles=[],
            created_at=now,
            updated_at=now,
        )
        user = await self.store.add(user)
        logger.info("identity.signup", user_id=str(user.id), is_admin=user.is_admin)

        return AuthResponse(
            message="User created successfully",
            token=self.tokens.create_token(token_payload_for(user)),
        )

    async def login(self, data: Union[LoginRequest, dict]) -> AuthResponse:
        """Exchange email + password for a token.

        Learn: An unknown email is a 404 by default, which tells the
        caller the address isn't registered. Set hide_unknown_email to
        answer with the same "invalid credentials" as a wrong password,
        after a compare against a dummy hash so it takes as long too.
        """
        body = _parse(LoginRequest, data)

        user = await self.store.get_by_email(body.email)
        if user is None:
            logger.info("identity.login_unknown_email")
            if self.hide_unknown_email:
                # Pay for a full compare so timing matches a wrong password
                await self.hasher.compare(body.password, self.hasher.dummy_hash)
                raise BadRequestError(INVALID_CREDENTIALS)
            raise NotFoundError(USER_NOT_FOUND)

        if not await self.hasher.compare(body.password, user.password_hash):
            logger.info("identity.login_failed", user_id=str(user.id))
            raise BadRequestError(INVALID_CREDENTIALS)

        # Transparently move old hashes to the configured cost
        if self.hasher.needs_rehash(user.password_hash):
            user = await self.store.update(
                user,
                {
                    "password_hash": await self.hasher.hash(body.password),
                    "updated_at": self.clock(),
                },
            )
            logger.info("identity.password_rehashed", user_id=str(user.id))

        logger.info("identity.login", user_id=str(user.id))
        return AuthResponse(
            message="Login successful",
            token=self.tokens.create_token(token_payload_for(user)),
        )

    # ─── Reads ──────────────────────────────────────────

    async def get_by_id(self, user_id: Union[uuid.UUID, str]) -> UserRead:
        user = await self._require_user(user_id)
        return UserRead.model_validate(user)

    async def get_all(
        self, query: Optional[str], requester: TokenPayload
    ) -> list[UserRead]:
        if not requester.is_admin:
            raise ForbiddenError("Admin privileges required")
        users = await self.store.list_all(query or None)
        return [UserRead.model_validate(u) for u in users]

    # ─── Writes ─────────────────────────────────────────

    async def update(
        self, user_id: Union[uuid.UUID, str], data: Union[UserUpdate, dict]
    ) -> UserRead:
        user = await self._require_user(user_id)
        body = _parse(UserUpdate, data)

        changes = body.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("no fields to update")

        if "password" in changes:
            changes["password_hash"] = await self.hasher.hash(changes.pop("password"))
        changes["updated_at"] = self.clock()

        user = await self.store.update(user, changes)
        logger.info(
            "identity.updated",
            user_id=str(user.id),
            fields=sorted(k for k in changes if k != "updated_at"),
        )
        return UserRead.model_validate(user)

    async def delete(self, user_id: Union[uuid.UUID, str]) -> None:
        user = await self._require_user(user_id)
        if user.is_admin:
            raise ForbiddenError("cannot delete an admin account")
        await self.store.delete(user)
        logger.info("identity.deleted", user_id=str(user.id))

    async def _require_user(self, user_id: Union[uuid.UUID, str]) -> User:
        user = await self.store.get(_as_uuid(user_id))
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        return user
