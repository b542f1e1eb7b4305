"""Bearer token authentication and role-based authorization.

Design principles:
- Authentication resolves ``Authorization: Bearer <token>`` to a fresh user
  record on every request and attaches a ``Principal`` to the request context.
- Authorization is a coarse role gate declared next to each route:

      @router.put("/{id}", dependencies=[Depends(require_roles(Role.ADMIN))])

- Missing or unusable credentials -> 401, insufficient role -> 403.
"""

from __future__ import annotations

import logging
from typing import Annotated, Awaitable, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from projects_api.core.container import get_container
from projects_api.core.errors import AuthenticationAppError, ForbiddenAppError
from projects_api.core.logging import Principal, set_principal
from projects_api.models.enums import Role

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> Principal:
    """FastAPI dependency authenticating the bearer token.

    Raises:
        AuthenticationAppError: If the header is missing or malformed, the
            token is invalid or expired, or its user no longer exists.
    """

    if credentials is None or not credentials.credentials:
        logger.warning("auth.missing_token", extra={"endpoint": request.url.path})
        raise AuthenticationAppError(
            code="authentication_required",
            message="Authentication is required to access this resource",
            title="Unauthorized",
        )

    user = await get_container(request).auth_service.resolve_user(credentials.credentials)

    principal = Principal(username=user.username, role=user.role.value)
    request.state.principal = principal
    set_principal(principal)
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def require_roles(*roles: Role) -> Callable[..., Awaitable[Principal]]:
    """Build a dependency admitting only principals holding one of ``roles``.

    Args:
        roles: Accepted roles.

    Returns:
        Dependency returning the authenticated ``Principal``.
    """

    allowed = {role.value for role in roles}

    async def _require(request: Request, principal: CurrentPrincipal) -> Principal:
        if principal.role not in allowed:
            logger.warning(
                "access.denied",
                extra={"endpoint": request.url.path, "role": principal.role, "required": sorted(allowed)},
            )
            raise ForbiddenAppError(
                code="forbidden",
                message="You don't have permission to access this resource",
                title="Forbidden",
            )
        return principal

    return _require


require_user_or_admin = require_roles(Role.USER, Role.ADMIN)
require_admin = require_roles(Role.ADMIN)
