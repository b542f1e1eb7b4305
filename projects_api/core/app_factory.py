"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build an isolated app, with its own container, per case.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from projects_api.api.routes import api_router, health_router
from projects_api.core.config import Settings, split_csv
from projects_api.core.container import Container, build_container
from projects_api.core.exception_handlers import setup_exception_handlers
from projects_api.core.logging import configure_logging
from projects_api.core.middleware import request_context_middleware
from projects_api.core.openapi import apply_openapi_customizations
from projects_api.core.rate_limit import rate_limit_middleware

logger = logging.getLogger(__name__)


def _add_cors(app: FastAPI, settings: Settings) -> None:
    cors = settings.cors
    origins = split_csv(cors.allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=split_csv(cors.allowed_methods),
        allow_headers=split_csv(cors.allowed_headers),
        expose_headers=split_csv(cors.exposed_headers),
        # Browsers reject credentialed responses for a wildcard origin.
        allow_credentials=cors.allow_credentials and "*" not in origins,
        max_age=cors.max_age,
    )


def create_app(settings: Settings | None = None, *, container: Container | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings to build from; defaults to the process-wide instance.
        container: Pre-built components (repositories, limiter, caches). Built
            from ``settings`` when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    if settings is None:
        from projects_api.core.config import settings as default_settings

        settings = default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Projects API",
        description=(
            "Manage projects and their tasks. Users register publicly, log in "
            "with username and password to obtain a bearer token, and call the "
            "protected endpoints under /api/v1. Every /api route is rate "
            "limited per client; errors are returned as problem details."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.state.settings = settings
    app.state.container = container or build_container(settings)

    # Middleware (last added runs first): request context, CORS, rate limit
    app.middleware("http")(rate_limit_middleware)
    _add_cors(app, settings)
    app.middleware("http")(request_context_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(api_router)
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={
            "app_env": settings.app_env,
            "rate_limit_enabled": settings.rate_limit.enabled,
            "rate_limit_requests": settings.rate_limit.requests,
            "rate_limit_duration_s": settings.rate_limit.duration,
        },
    )
    return app
