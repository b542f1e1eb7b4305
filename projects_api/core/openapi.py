"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- Bearer token security scheme (``Authorization: Bearer <token>``)
- Per-path overrides for the public endpoints

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# (path, method) pairs reachable without a token
PUBLIC_OPERATIONS = {
    ("/api/v1/users", "post"),
    ("/api/v1/auth/login", "post"),
    ("/health", "get"),
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security.

    - Injects components.securitySchemes for bearer auth
    - Marks all operations as requiring a bearer token by default, then
      exempts registration, login and health by setting ``security: []``
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        # Components / security scheme
        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes["BearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Token returned by POST /api/v1/auth/login.",
        }
        # Drop the per-route scheme FastAPI derives from HTTPBearer
        security_schemes.pop("HTTPBearer", None)

        # Global security requirement (applies to all operations)
        schema["security"] = [{"BearerAuth": []}]

        # Tags metadata
        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {"name": "Users", "description": "Public user registration."},
            {"name": "Auth", "description": "Login and bearer token issuance."},
            {"name": "Projects", "description": "Project management; writes require ROLE_ADMIN."},
            {"name": "Tasks", "description": "Tasks belonging to projects."},
            {"name": "Health", "description": "Liveness checks."},
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            for method, method_obj in methods.items():
                if not isinstance(method_obj, dict):
                    continue
                if (path, method) in PUBLIC_OPERATIONS:
                    method_obj["security"] = []
                else:
                    method_obj["security"] = [{"BearerAuth": []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
