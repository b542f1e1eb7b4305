"""Rate limiting middleware for the ``/api`` surface.

This module wires the rate limiting adapter into the HTTP layer. It runs as
middleware, ahead of routing, so every ``/api`` request spends a token before
its body is parsed or its credentials are checked. Unknown ``/api`` paths and
malformed bodies are counted like any other request.

Rate limiting strategy:
- Token bucket per client identity (first X-Forwarded-For entry, else peer).
- Admission sets ``X-Rate-Limit-Remaining`` on the downstream response.
- Rejection renders a 429 problem detail with
  ``X-Rate-Limit-Retry-After-Seconds``; the request goes no further.

Usage:
    app.middleware("http")(rate_limit_middleware)
"""

from __future__ import annotations

import logging

from fastapi import Request, Response

from projects_api.core.container import get_container
from projects_api.core.errors import RateLimitAppError
from projects_api.core.exception_handlers import app_error_handler
from projects_api.core.middleware import resolve_client_ip

logger = logging.getLogger(__name__)

REMAINING_HEADER = "X-Rate-Limit-Remaining"
RATE_LIMITED_PREFIX = "/api"


def is_rate_limited_path(path: str) -> bool:
    return path == RATE_LIMITED_PREFIX or path.startswith(RATE_LIMITED_PREFIX + "/")


async def rate_limit_middleware(request: Request, call_next) -> Response:
    """Consume one token from the requester's bucket before routing.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response carrying ``X-Rate-Limit-Remaining``,
            or a 429 problem detail when the bucket is empty.
    """

    container = get_container(request)
    if not container.settings.rate_limit.enabled or not is_rate_limited_path(request.url.path):
        return await call_next(request)

    client_ip = resolve_client_ip(request)
    result = container.rate_limiter.try_consume(client_ip)

    if not result.allowed:
        retry_after = result.retry_after_seconds
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "client_ip": client_ip,
                "endpoint": request.url.path,
                "limit": result.limit,
                "retry_after_s": retry_after,
            },
        )
        # Exception handlers sit inside the middleware stack, so render here.
        return await app_error_handler(
            request,
            RateLimitAppError(
                code="rate_limit_exceeded",
                message=f"Rate limit exceeded. Try again in {retry_after} seconds.",
                properties={"retryAfterSeconds": retry_after},
            ),
        )

    logger.debug(
        "rate_limit.allowed",
        extra={"client_ip": client_ip, "remaining": result.remaining, "limit": result.limit},
    )
    response: Response = await call_next(request)
    response.headers[REMAINING_HEADER] = str(result.remaining)
    return response
