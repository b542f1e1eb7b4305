"""Pydantic schemas for user registration."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import Field, field_validator

from projects_api.models.entities import User
from projects_api.models.enums import Role
from projects_api.schemas.common import CamelModel

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")

PASSWORD_RULE_MESSAGE = (
    "Password must be at least 8 characters long, contain at least one uppercase letter, "
    "one lowercase letter, one number, and one special character"
)


class UserRequest(CamelModel):
    """Public registration payload."""

    username: str | None = Field(default=None, validate_default=True)
    password: str | None = Field(default=None, validate_default=True)
    email: str | None = Field(default=None, validate_default=True)
    role: Role | None = Field(
        default=None,
        description="ROLE_USER (default) or ROLE_ADMIN.",
    )

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: str | None) -> str:
        if value is None or not value.strip():
            raise ValueError("Username must not be empty")
        if not 3 <= len(value) <= 50:
            raise ValueError("Username must be between 3 and 50 characters")
        return value

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str | None) -> str:
        if not value:
            raise ValueError("Password must not be empty")
        if not PASSWORD_PATTERN.match(value):
            raise ValueError(PASSWORD_RULE_MESSAGE)
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str | None) -> str:
        if not value:
            raise ValueError("Email must not be empty")
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Email should be valid")
        return value


class UserResponse(CamelModel):
    id: int
    username: str
    email: str
    role: Role
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
            created_by=user.created_by,
            updated_by=user.updated_by,
        )
