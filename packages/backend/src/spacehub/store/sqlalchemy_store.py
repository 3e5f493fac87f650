"""PostgreSQL identity store (SQLAlchemy async).

Learn: One store wraps one AsyncSession, and every write commits on its
own — each operation is its own transaction. Database errors are
translated at this boundary:
- IntegrityError on a named unique constraint → ConflictError, with the
  same message the service's pre-check uses, so a lost signup race looks
  identical to a plain duplicate.
- Any other SQLAlchemyError → InternalError (generic to the caller, the
  real error goes to the log).
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog
from sqlalchemy import or_, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from spacehub.db.models import DOCUMENT_NUMBER_CONSTRAINT, EMAIL_CONSTRAINT, User
from spacehub.errors import ConflictError, InternalError
from spacehub.store.base import (
    DOCUMENT_NUMBER_TAKEN,
    EMAIL_TAKEN,
    IdentityStore,
    StoreProvider,
)

logger = structlog.get_logger()


def conflict_from_integrity_error(error: IntegrityError) -> ConflictError:
    detail = str(error.orig)
    if EMAIL_CONSTRAINT in detail:
        return ConflictError(EMAIL_TAKEN)
    if DOCUMENT_NUMBER_CONSTRAINT in detail:
        return ConflictError(DOCUMENT_NUMBER_TAKEN)
    return ConflictError("identity conflicts with an existing record")


class SqlAlchemyIdentityStore(IdentityStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError as e:
            await self.session.rollback()
            logger.info("store.conflict", operation=operation, error=str(e.orig))
            raise conflict_from_integrity_error(e) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("store.error", operation=operation, error=str(e))
            raise InternalError(f"identity store {operation} failed") from e

    async def add(self, user: User) -> User:
        async with self._guard("add"):
            self.session.add(user)
            await self.session.commit()
        return user

    async def get(self, user_id: uuid.UUID) -> Optional[User]:
        async with self._guard("get"):
            return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        async with self._guard("get_by_email"):
            result = await self.session.execute(
                select(User).where(User.email == email)
            )
            return result.scalars().first()

    async def list_all(self, query: Optional[str] = None) -> list[User]:
        q = select(User).order_by(User.created_at)
        if query:
            q = q.where(
                or_(
                    User.name.icontains(query, autoescape=True),
                    User.email.icontains(query, autoescape=True),
                )
            )
        async with self._guard("list"):
            result = await self.session.execute(q)
            return list(result.scalars().all())

    async def update(self, user: User, changes: dict) -> User:
        async with self._guard("update"):
            for column, value in changes.items():
                setattr(user, column, value)
            await self.session.commit()
        return user

    async def delete(self, user: User) -> None:
        async with self._guard("delete"):
            await self.session.delete(user)
            await self.session.commit()

    async def ping(self) -> bool:
        try:
            await self.session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("store.ping_failed", error=str(e))
            return False


def sqlalchemy_store_provider(
    session_factory: async_sessionmaker[AsyncSession],
) -> StoreProvider:
    """StoreProvider that opens a fresh session per unit of work."""

    @asynccontextmanager
    async def open_store() -> AsyncIterator[SqlAlchemyIdentityStore]:
        async with session_factory() as session:
            yield SqlAlchemyIdentityStore(session)

    return open_store
