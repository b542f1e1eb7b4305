"""Global exception handlers rendering every failure as a problem detail.

Design:
- AppError subclasses -> status/title looked up by ``ErrorKind`` (one table)
- Request validation errors -> VALIDATION, MALFORMED_BODY or BAD_PARAMETER
- Framework HTTP errors (unknown route, wrong method) -> same body shape
- Unexpected Exception -> generic 500 (safety net, nothing leaked)

Body: ``{title, status, detail, instance, timestamp, properties?}``.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from projects_api.core.errors import (
    AppError,
    BadParameterAppError,
    ErrorKind,
    MalformedBodyAppError,
    RateLimitAppError,
    ValidationAppError,
)
from projects_api.core.logging import get_request_id
from projects_api.schemas.common import DATE_TIME_FORMAT_HINT, ProblemDetail

logger = logging.getLogger(__name__)

RETRY_AFTER_HEADER = "X-Rate-Limit-Retry-After-Seconds"

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.MALFORMED_BODY: 400,
    ErrorKind.BAD_PARAMETER: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.BUSINESS_RULE: 400,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INTERNAL: 500,
}

TITLE_BY_KIND: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "Validation error",
    ErrorKind.MALFORMED_BODY: "Malformed JSON request",
    ErrorKind.BAD_PARAMETER: "Invalid parameter",
    ErrorKind.UNAUTHENTICATED: "Unauthorized",
    ErrorKind.FORBIDDEN: "Forbidden",
    ErrorKind.NOT_FOUND: "Resource not found",
    ErrorKind.CONFLICT: "Conflict",
    ErrorKind.BUSINESS_RULE: "Business rule violation",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded",
    ErrorKind.INTERNAL: "Internal server error",
}

GENERIC_INTERNAL_MESSAGE = "An unexpected error occurred"

_EXPECTED_TYPES = {
    "int_parsing": "int",
    "int_type": "int",
    "int_from_float": "int",
    "float_parsing": "float",
    "bool_parsing": "bool",
    "string_type": "str",
}

_MALFORMED_BODY_TYPES = {"json_invalid", "model_attributes_type", "dict_type", "list_type"}

_VALUE_ERROR_PREFIX = "Value error, "


def _wire_name(part: Any) -> str:
    # Defaults checked with validate_default report the Python field name.
    text = str(part)
    return to_camel(text) if "_" in text else text


def _problem_response(
    request: Request,
    *,
    status: int,
    title: str,
    detail: str,
    properties: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    problem = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=request.url.path,
        properties=properties or None,
    )
    return JSONResponse(
        status_code=status,
        content=problem.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=headers,
    )


def _headers_for(exc: AppError) -> dict[str, str] | None:
    if exc.kind is ErrorKind.UNAUTHENTICATED:
        return {"WWW-Authenticate": "Bearer"}
    if isinstance(exc, RateLimitAppError):
        retry_after = str(exc.retry_after_seconds)
        return {RETRY_AFTER_HEADER: retry_after, "Retry-After": retry_after}
    return None


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map a domain error to its status code and problem-detail body.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the problem detail.
    """
    status = STATUS_BY_KIND[exc.kind]
    title = exc.title or TITLE_BY_KIND[exc.kind]

    if exc.kind is ErrorKind.INTERNAL:
        logger.error(
            "app_error_internal",
            extra={"error_code": exc.code, "error_msg": exc.message, "request_id": get_request_id()},
        )
        return _problem_response(request, status=status, title=title, detail=GENERIC_INTERNAL_MESSAGE)

    logger.info(
        "app_error_handled",
        extra={
            "error_kind": exc.kind.value,
            "error_code": exc.code,
            "status_code": status,
            "request_path": request.url.path,
        },
    )
    return _problem_response(
        request,
        status=status,
        title=title,
        detail=exc.message,
        properties=exc.properties,
        headers=_headers_for(exc),
    )


def _clean_message(error: dict[str, Any]) -> str:
    message = str(error.get("msg") or "Invalid value")
    if message.startswith(_VALUE_ERROR_PREFIX):
        return message[len(_VALUE_ERROR_PREFIX):]
    return message


def translate_validation_error(exc: RequestValidationError) -> AppError:
    """Turn FastAPI/pydantic request validation errors into a domain error.

    Priority: undecodable body, then bad query/path parameter, then unparsable
    date-times, then per-field validation errors.
    """
    errors = list(exc.errors())

    for error in errors:
        loc = tuple(error.get("loc", ()))
        if error.get("type") in _MALFORMED_BODY_TYPES or (loc == ("body",) and error.get("type") == "missing"):
            return MalformedBodyAppError(
                code="malformed_body",
                message="Request body is invalid or malformed",
            )

    for error in errors:
        loc = tuple(error.get("loc", ()))
        if loc and loc[0] in ("query", "path", "header"):
            error_type = str(error.get("type", ""))
            expected = _EXPECTED_TYPES.get(error_type) or (error.get("ctx") or {}).get("expected") or error_type
            return BadParameterAppError.for_parameter(str(loc[-1]), error.get("input"), str(expected))

    for error in errors:
        error_type = str(error.get("type", ""))
        if error_type.startswith(("datetime", "date_")):
            return MalformedBodyAppError(
                code="invalid_date_format",
                message="Invalid date format. Use 'yyyy-MM-ddTHH:mm' (e.g., 2025-10-16T14:30)",
                properties={
                    "expectedFormat": DATE_TIME_FORMAT_HINT,
                    "example": {"startDate": "2025-10-16T09:00", "endDate": "2025-10-16T18:00"},
                },
            )

    field_errors: dict[str, str] = {}
    for error in errors:
        loc = tuple(error.get("loc", ()))
        field = ".".join(_wire_name(part) for part in loc[1:]) or "body"
        field_errors.setdefault(field, _clean_message(error))
    return ValidationAppError.for_fields(field_errors)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return await app_error_handler(request, translate_validation_error(exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (404 route, 405 method, ...) as problem details."""
    if exc.status_code == 404:
        title = TITLE_BY_KIND[ErrorKind.NOT_FOUND]
    else:
        try:
            title = HTTPStatus(exc.status_code).phrase
        except ValueError:
            title = "HTTP error"
    detail = exc.detail if isinstance(exc.detail, str) else title
    return _problem_response(
        request,
        status=exc.status_code,
        title=title,
        detail=detail,
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the failure with the request correlation id; the response carries a
    generic message only (no stack traces, no exception text).
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )
    return _problem_response(
        request,
        status=500,
        title=TITLE_BY_KIND[ErrorKind.INTERNAL],
        detail=GENERIC_INTERNAL_MESSAGE,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
