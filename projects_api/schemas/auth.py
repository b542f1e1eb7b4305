"""Pydantic schemas for login."""

from __future__ import annotations

from pydantic import Field

from projects_api.schemas.common import CamelModel


class LoginRequest(CamelModel):
    # Empty credentials are an authentication failure, not a validation error.
    username: str | None = None
    password: str | None = None


class TokenResponse(CamelModel):
    token: str = Field(..., description="Bearer token to send as 'Authorization: Bearer <token>'.")
