"""Identity store interface.

Learn: The service layer only talks to this interface, never to a
session or a dict directly. A store is opened per request (or per unit
of work) through a StoreProvider — an async context manager factory —
so the SQLAlchemy implementation can bind one AsyncSession to one
request, while the in-memory one just hands back itself.

Uniqueness contract: add() and update() MUST raise ConflictError when a
write would duplicate an email or document number. Callers may pre-check,
but the store is the authority.
"""

import uuid
from abc import ABC, abstractmethod
from typing import AsyncContextManager, Callable, Optional

from spacehub.db.models import User

EMAIL_TAKEN = "email already registered"
DOCUMENT_NUMBER_TAKEN = "document number already registered"


class IdentityStore(ABC):
    """CRUD over persisted identities."""

    @abstractmethod
    async def add(self, user: User) -> User:
        """Persist a new identity. Raises ConflictError on duplicates."""

    @abstractmethod
    async def get(self, user_id: uuid.UUID) -> Optional[User]:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def list_all(self, query: Optional[str] = None) -> list[User]:
        """All identities, optionally filtered by a name/email substring."""

    @abstractmethod
    async def update(self, user: User, changes: dict) -> User:
        """Apply column changes. Raises ConflictError on duplicates."""

    @abstractmethod
    async def delete(self, user: User) -> None:
        ...

    async def ping(self) -> bool:
        """Connectivity check for the health endpoint."""
        return True


StoreProvider = Callable[[], AsyncContextManager[IdentityStore]]
