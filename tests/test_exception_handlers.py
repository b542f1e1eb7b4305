"""Tests for global exception handlers.

Validates that every failure is rendered as a problem detail with the
proper HTTP status code, title and headers, and with no information leakage.
"""

import asyncio
import json
from unittest.mock import Mock

import pytest
from fastapi import FastAPI, Query
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient

from projects_api.core.errors import (
    AppError,
    AuthenticationAppError,
    BusinessRuleAppError,
    ConflictAppError,
    ErrorKind,
    ForbiddenAppError,
    InternalAppError,
    NotFoundAppError,
    RateLimitAppError,
    ValidationAppError,
)
from projects_api.core.exception_handlers import (
    STATUS_BY_KIND,
    TITLE_BY_KIND,
    general_exception_handler,
    setup_exception_handlers,
    translate_validation_error,
)
from projects_api.schemas.project import ProjectRequest
from projects_api.schemas.task import TaskRequest


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)

    @app.post("/projects")
    async def create(request: ProjectRequest) -> dict:
        return {"name": request.name}

    @app.post("/tasks")
    async def create_task(request: TaskRequest) -> dict:
        return {"title": request.title}

    @app.get("/items")
    async def items(page: int = Query(0)) -> dict:
        return {"page": page}

    @app.get("/items/{item_id}")
    async def item(item_id: int) -> dict:
        return {"id": item_id}

    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


def _raise_on(app: FastAPI, path: str, exc: Exception) -> None:
    @app.get(path)
    async def _endpoint():
        raise exc


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        ("exc", "status", "title"),
        [
            (NotFoundAppError(code="nf", message="Project not found by id: 9"), 404, "Resource not found"),
            (ConflictAppError(code="c", message="Username already exists"), 409, "Conflict"),
            (ForbiddenAppError(code="f", message="No"), 403, "Forbidden"),
            (BusinessRuleAppError(code="b", message="Nope"), 400, "Business rule violation"),
        ],
    )
    def test_kind_maps_to_status_and_title(self, client, app_with_handlers, exc, status, title):
        _raise_on(app_with_handlers, "/boom", exc)

        response = client.get("/boom")

        assert response.status_code == status
        data = response.json()
        assert data["title"] == title
        assert data["status"] == status
        assert data["detail"] == exc.message
        assert data["instance"] == "/boom"
        assert "timestamp" in data
        assert "properties" not in data

    def test_every_kind_has_status_and_title(self):
        assert set(STATUS_BY_KIND) == set(ErrorKind)
        assert set(TITLE_BY_KIND) == set(ErrorKind)

    def test_explicit_title_overrides_default(self, client, app_with_handlers):
        _raise_on(
            app_with_handlers,
            "/login",
            AuthenticationAppError(code="bad", message="Invalid username or password", title="Authentication failed"),
        )

        response = client.get("/login")

        assert response.status_code == 401
        assert response.json()["title"] == "Authentication failed"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_validation_error_includes_field_messages(self, client, app_with_handlers):
        _raise_on(app_with_handlers, "/dates", ValidationAppError.for_fields({"endDate": "End date must be after start date"}))

        response = client.get("/dates")

        assert response.status_code == 400
        data = response.json()
        assert data["title"] == "Validation error"
        assert data["properties"]["validationErrors"] == {"endDate": "End date must be after start date"}

    def test_rate_limit_sets_retry_headers(self, client, app_with_handlers):
        _raise_on(
            app_with_handlers,
            "/limited",
            RateLimitAppError(
                code="rate_limit_exceeded",
                message="Rate limit exceeded. Try again in 42 seconds.",
                properties={"retryAfterSeconds": 42},
            ),
        )

        response = client.get("/limited")

        assert response.status_code == 429
        assert response.headers["X-Rate-Limit-Retry-After-Seconds"] == "42"
        assert response.headers["Retry-After"] == "42"
        assert response.json()["properties"]["retryAfterSeconds"] == 42

    def test_internal_error_hides_message(self, client, app_with_handlers):
        _raise_on(app_with_handlers, "/internal", InternalAppError(code="db", message="connection refused to 10.0.0.5"))

        response = client.get("/internal")

        assert response.status_code == 500
        data = response.json()
        assert data["title"] == "Internal server error"
        assert "10.0.0.5" not in response.text


class TestRequestValidationTranslation:
    def test_body_field_errors_become_validation_errors(self, client):
        response = client.post("/projects", json={"name": "", "startDate": None})

        assert response.status_code == 400
        data = response.json()
        assert data["title"] == "Validation error"
        assert data["properties"]["validationErrors"]["name"] == "Name cannot be empty"

    def test_camel_case_field_names_are_reported(self, client):
        response = client.post("/projects", json={"name": "Apollo", "endDate": "2000-01-01T10:00"})

        assert response.status_code == 400
        assert response.json()["properties"]["validationErrors"] == {"endDate": "End date must be in the future"}

    def test_missing_defaulted_field_is_reported_by_wire_name(self, client):
        response = client.post("/tasks", json={"title": "x"})

        assert response.status_code == 400
        errors = response.json()["properties"]["validationErrors"]
        assert errors == {"projectId": "Project ID cannot be null"}

    def test_snake_case_locations_are_translated_to_camel_case(self):
        exc = RequestValidationError(
            [
                {
                    "type": "value_error",
                    "loc": ("body", "project_id"),
                    "msg": "Value error, Project ID cannot be null",
                    "input": None,
                },
                {"type": "value_error", "loc": ("body", "dueDate"), "msg": "Value error, Due date must be in the future"},
            ]
        )

        error = translate_validation_error(exc)

        assert error.properties["validationErrors"] == {
            "projectId": "Project ID cannot be null",
            "dueDate": "Due date must be in the future",
        }

    def test_invalid_json_is_malformed(self, client):
        response = client.post("/projects", content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["title"] == "Malformed JSON request"

    def test_missing_body_is_malformed(self, client):
        response = client.post("/projects")

        assert response.status_code == 400
        assert response.json()["title"] == "Malformed JSON request"

    def test_unparsable_date_reports_expected_format(self, client):
        response = client.post("/projects", json={"name": "Apollo", "startDate": "16/10/2025"})

        assert response.status_code == 400
        data = response.json()
        assert data["title"] == "Malformed JSON request"
        assert data["properties"]["expectedFormat"].startswith("yyyy-MM-ddTHH:mm")
        assert "example" in data["properties"]

    def test_bad_query_parameter(self, client):
        response = client.get("/items", params={"page": "abc"})

        assert response.status_code == 400
        data = response.json()
        assert data["title"] == "Invalid parameter"
        assert data["detail"] == "Parameter 'page' has invalid value 'abc'. Expected type: int"

    def test_bad_path_parameter(self, client):
        response = client.get("/items/abc")

        assert response.status_code == 400
        assert response.json()["properties"]["parameter"] == "item_id"


class TestFrameworkErrors:
    def test_unknown_route_is_problem_detail(self, client):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        data = response.json()
        assert data["title"] == "Resource not found"
        assert data["instance"] == "/does-not-exist"

    def test_wrong_method_is_problem_detail(self, client):
        response = client.delete("/items")

        assert response.status_code == 405
        assert response.json()["title"] == "Method Not Allowed"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_unexpected_exception_over_http(self, client, app_with_handlers):
        _raise_on(app_with_handlers, "/crash", RuntimeError("database connection failed"))

        response = client.get("/crash")

        assert response.status_code == 500
        data = response.json()
        assert data["detail"] == "An unexpected error occurred"
        assert "database connection" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = Mock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        data = json.loads(response_text)
        assert response.status_code == 500
        assert data["title"] == "Internal server error"
        assert "Traceback" not in response_text
        assert "File \"" not in response_text
        assert "ValueError" not in response_text
        assert "Test error with details" not in response_text


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
