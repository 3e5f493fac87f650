"""Error taxonomy shared by every layer.

Learn: There is ONE error type, AppError, carrying a `kind`. The kind
decides the HTTP status and whether the failure is operational (an
expected, user-facing outcome) or an internal fault. Subclasses exist
only so call sites read naturally (`raise NotFoundError("...")`); the
exception handlers look at `kind` and `status_code`, never at the class.

Non-operational errors (INTERNAL) keep their real message for the logs
but render a generic message to the caller.
"""

from enum import Enum
from typing import Iterable, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    BAD_REQUEST = "bad_request"
    AUTHENTICATION = "authentication"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}

GENERIC_INTERNAL_MESSAGE = "Internal server error"


class AppError(Exception):
    """A classified failure with a status code and a caller-facing message."""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = GENERIC_INTERNAL_MESSAGE

    def __init__(
        self, message: Optional[str] = None, *, kind: Optional[ErrorKind] = None
    ):
        if kind is not None:
            self.kind = kind
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @property
    def is_operational(self) -> bool:
        return self.kind is not ErrorKind.INTERNAL

    @property
    def public_message(self) -> str:
        """The message that may leave the process."""
        if self.is_operational:
            return self.message
        return GENERIC_INTERNAL_MESSAGE

    def to_dict(self) -> dict:
        return {"statusCode": self.status_code, "message": self.public_message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION
    default_message = "Invalid request"


class BadRequestError(AppError):
    kind = ErrorKind.BAD_REQUEST
    default_message = "Bad request"


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION
    default_message = "Authentication required"


UnauthorizedError = AuthenticationError


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "Conflict"


class InternalError(AppError):
    kind = ErrorKind.INTERNAL


class ConfigurationError(Exception):
    """Fatal startup misconfiguration. Never rendered to a client."""


def describe_validation_errors(errors: Iterable[dict]) -> str:
    """Flatten pydantic error dicts into one readable line."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid input"
