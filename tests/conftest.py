"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before anything imports the settings module,
because ``projects_api.core.config`` builds the global settings on import.
"""

from __future__ import annotations

import os
from typing import Callable, Iterator

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("TOKEN_SECRET", "test-secret-that-is-long-enough-for-hs256-signing")
os.environ.setdefault("APP_PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "1000")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from projects_api.core.app_factory import create_app
from projects_api.core.config import Settings
from projects_api.models.entities import User
from projects_api.models.enums import Role

VALID_PASSWORD = "Aa1@valid"


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Fresh app (and therefore fresh repositories, caches and limiter) per test."""
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, username: str, email: str, password: str = VALID_PASSWORD, role: str | None = None):
    payload = {"username": username, "email": email, "password": password}
    if role is not None:
        payload["role"] = role
    return client.post("/api/v1/users", json=payload)


def login(client: TestClient, username: str, password: str = VALID_PASSWORD) -> str:
    response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture
def user_headers(client: TestClient) -> dict[str, str]:
    """Authorization header for a freshly registered ROLE_USER account."""
    assert register(client, "regular", "regular@example.com").status_code == 201
    return {"Authorization": f"Bearer {login(client, 'regular')}"}


@pytest.fixture
def admin_headers(client: TestClient) -> dict[str, str]:
    """Authorization header for a ROLE_ADMIN account."""
    assert register(client, "admin", "admin@example.com", role="ROLE_ADMIN").status_code == 201
    return {"Authorization": f"Bearer {login(client, 'admin')}"}


@pytest.fixture
def make_user() -> Callable[..., User]:
    def _make(username: str = "rafael", role: Role = Role.USER, password_hash: str = "hash") -> User:
        return User(username=username, email=f"{username}@example.com", password_hash=password_hash, role=role)

    return _make
