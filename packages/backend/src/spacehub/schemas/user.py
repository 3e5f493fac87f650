"""Pydantic schemas for users and auth.

Learn: Separate schemas for create/update/read keep the API clean.
- SignupRequest: what you POST to /users
- UserUpdate: what you PUT to /users/{id} (all optional, no extra keys)
- UserRead: what the API returns — there is no password field at all,
  so a hash can't leak through a response by accident

Passwords are never stripped or normalized; emails are lower-cased so
uniqueness and login lookups agree.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

DOCUMENT_TYPE_PATTERN = r"^(CPF|CNPJ)$"


def _normalize_email(value: str) -> str:
    return value.strip().lower()


def _strip_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("name must not be blank")
    return value


class SignupRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=30)
    document_type: Optional[str] = Field(None, pattern=DOCUMENT_TYPE_PATTERN)
    document_number: Optional[str] = Field(None, min_length=1, max_length=30)
    is_admin: bool = False

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _strip_name(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class UserUpdate(BaseModel):
    """Partial update — only fields present in the body are applied.

    An explicit null clears phone and the document fields. The columns
    that can't be empty (name, email, password, is_admin, roles) reject it.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=30)
    document_type: Optional[str] = Field(None, pattern=DOCUMENT_TYPE_PATTERN)
    document_number: Optional[str] = Field(None, min_length=1, max_length=30)
    is_admin: Optional[bool] = None
    roles: Optional[list[str]] = None

    @field_validator("name", "email", "password", "is_admin", "roles", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _strip_name(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator("roles")
    @classmethod
    def dedupe_roles(cls, value: list[str]) -> list[str]:
        return sorted({r.strip() for r in value if r.strip()})


class UserRead(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None
    document_type: Optional[str] = None
    document_number: Optional[str] = None
    is_admin: bool
    roles: list[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    message: str
    token: str
