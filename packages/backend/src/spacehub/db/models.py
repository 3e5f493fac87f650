"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Alembic migrations mirror these models.

The unique constraints are named so the store can tell WHICH one fired
when PostgreSQL rejects an insert (see store/sqlalchemy_store.py). They
are the final word on uniqueness — the service's pre-check is advisory.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, UniqueConstraint, false, func, text
from sqlalchemy.dialects.postgresql import ARRAY, UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

EMAIL_CONSTRAINT = "uq_users_email"
DOCUMENT_NUMBER_CONSTRAINT = "uq_users_document_number"


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class User(Base):
    """A person who can log in. Admins can manage other accounts.

    Learn: password_hash is the bcrypt output, never the plaintext, and
    never leaves the service layer — API schemas don't have the field.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name=EMAIL_CONSTRAINT),
        UniqueConstraint("document_number", name=DOCUMENT_NUMBER_CONSTRAINT),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    document_type: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    # NULLs don't collide in a PostgreSQL unique constraint
    document_number: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    is_admin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    roles: Mapped[list[str]] = mapped_column(
        ARRAY(String(50)), nullable=False, default=list, server_default=text("'{}'")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"
