"""In-memory identity store — tests and local development.

Learn: Mirrors the PostgreSQL behavior the service relies on: unique
email and document number, list ordered by creation time. Every write
checks uniqueness and mutates under one asyncio.Lock, so two concurrent
signups with the same email behave exactly like two racing INSERTs
against a unique index: one wins, the other gets ConflictError.
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from spacehub.db.models import User
from spacehub.errors import ConflictError
from spacehub.store.base import DOCUMENT_NUMBER_TAKEN, EMAIL_TAKEN, IdentityStore


class InMemoryIdentityStore(IdentityStore):
    """Dict-backed store. One instance is shared by every request."""

    def __init__(self) -> None:
        self._users: dict[uuid.UUID, User] = {}
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def open(self) -> AsyncIterator["InMemoryIdentityStore"]:
        """StoreProvider for this instance."""
        yield self

    def __len__(self) -> int:
        return len(self._users)

    def _check_unique(
        self,
        email: str,
        document_number: Optional[str],
        exclude: Optional[uuid.UUID] = None,
    ) -> None:
        for other in self._users.values():
            if other.id == exclude:
                continue
            if other.email == email:
                raise ConflictError(EMAIL_TAKEN)
            if document_number is not None and other.document_number == document_number:
                raise ConflictError(DOCUMENT_NUMBER_TAKEN)

    async def add(self, user: User) -> User:
        async with self._lock:
            if user.id in self._users:
                raise ConflictError(f"identity {user.id} already exists")
            self._check_unique(user.email, user.document_number)
            self._users[user.id] = user
            return user

    async def get(self, user_id: uuid.UUID) -> Optional[User]:
        return self._users.get(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        for user in self._users.values():
            if user.email == email:
                return user
        return None

    async def list_all(self, query: Optional[str] = None) -> list[User]:
        users = sorted(self._users.values(), key=lambda u: u.created_at)
        if query:
            needle = query.lower()
            users = [
                u for u in users
                if needle in u.name.lower() or needle in u.email.lower()
            ]
        return users

    async def update(self, user: User, changes: dict) -> User:
        async with self._lock:
            self._check_unique(
                changes.get("email", user.email),
                changes.get("document_number", user.document_number),
                exclude=user.id,
            )
            for column, value in changes.items():
                setattr(user, column, value)
            return user

    async def delete(self, user: User) -> None:
        async with self._lock:
            self._users.pop(user.id, None)
