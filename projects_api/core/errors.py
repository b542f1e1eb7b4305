"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Every error carries
an ``ErrorKind``; the HTTP layer maps kinds to status codes in one place
(see ``projects_api.core.exception_handlers``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    MALFORMED_BODY = "MALFORMED_BODY"
    BAD_PARAMETER = "BAD_PARAMETER"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    BUSINESS_RULE = "BUSINESS_RULE"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL = "INTERNAL"


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message (rendered as problem ``detail``).
        properties: Optional extra members for the problem-detail body.
        title: Optional override for the problem ``title``.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.INTERNAL

    code: str
    message: str
    properties: dict[str, Any] = field(default_factory=dict)
    title: str | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request fields fail validation.

    ``properties["validationErrors"]`` maps wire field names to messages.
    """

    kind = ErrorKind.VALIDATION

    @classmethod
    def for_fields(cls, errors: dict[str, str]) -> "ValidationAppError":
        return cls(
            code="validation_failed",
            message="One or more fields are invalid",
            properties={"validationErrors": dict(errors)},
        )


class MalformedBodyAppError(AppError):
    """Raised when the request body cannot be decoded."""

    kind = ErrorKind.MALFORMED_BODY


class BadParameterAppError(AppError):
    """Raised when a query or path parameter has an unusable value."""

    kind = ErrorKind.BAD_PARAMETER

    @classmethod
    def for_parameter(cls, name: str, value: Any, expected: str) -> "BadParameterAppError":
        return cls(
            code="invalid_parameter",
            message=f"Parameter '{name}' has invalid value '{value}'. Expected type: {expected}",
            properties={"parameter": name, "value": value, "expectedType": expected},
        )


class AuthenticationAppError(AppError):
    """Raised when the caller cannot be authenticated."""

    kind = ErrorKind.UNAUTHENTICATED


class ForbiddenAppError(AppError):
    """Raised when an authenticated caller lacks the required role."""

    kind = ErrorKind.FORBIDDEN


class NotFoundAppError(AppError):
    """Raised when a referenced record does not exist."""

    kind = ErrorKind.NOT_FOUND


class ConflictAppError(AppError):
    """Raised when a write would violate a uniqueness or dependency rule."""

    kind = ErrorKind.CONFLICT


class BusinessRuleAppError(AppError):
    """Raised when a request is well-formed but breaks a business rule."""

    kind = ErrorKind.BUSINESS_RULE


class RateLimitAppError(AppError):
    """Raised when a client has exhausted its request budget."""

    kind = ErrorKind.RATE_LIMITED

    @property
    def retry_after_seconds(self) -> int:
        return int(self.properties.get("retryAfterSeconds", 0))


class InternalAppError(AppError):
    """Raised for server-side faults that must not leak details."""

    kind = ErrorKind.INTERNAL
