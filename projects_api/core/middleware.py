"""HTTP middleware for request correlation.

Every request/response pair carries a correlation id:
- Accepts the incoming X-Request-ID header (name configurable) or generates a UUID
- Stores request_id and the client identity in contextvars for log correlation
- Echoes the request_id and total duration in the response headers
- Clears the context after completion to prevent leaks between requests

Usage:
    app.middleware("http")(request_context_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from projects_api.core.logging import clear_request_context, set_client_ip, set_request_id


def resolve_client_ip(request: Request) -> str:
    """Return the client identity used for rate limiting and logs.

    The first entry of ``X-Forwarded-For`` wins; otherwise the socket peer.

    Examples:
        ``X-Forwarded-For: 1.2.3.4, 10.0.0.1`` -> ``"1.2.3.4"``
    """

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


async def request_context_middleware(request: Request, call_next) -> Response:
    """Populate the per-request logging context and correlation headers.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with ``X-Request-ID`` and
            ``X-Request-Duration-ms`` headers added.
    """

    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    set_client_ip(resolve_client_ip(request))
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_context()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
