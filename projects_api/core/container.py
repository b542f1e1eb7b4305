"""Composition root.

Builds the process-wide singletons (limiter, caches, repositories, identity
primitives, services) from settings. The application factory stores one
``Container`` on ``app.state``; tests get a clean slate by building a new app.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from projects_api.adapters.rate_limit.base import AbstractRateLimiter
from projects_api.adapters.rate_limit.in_memory import InMemoryTokenBucketRateLimiter
from projects_api.adapters.repositories.base import ProjectRepository, TaskRepository, UserRepository
from projects_api.adapters.repositories.in_memory import (
    InMemoryProjectRepository,
    InMemoryTaskRepository,
    InMemoryUserRepository,
)
from projects_api.core.config import Settings
from projects_api.core.security import PasswordHasher, TokenCodec
from projects_api.services.auth_service import AuthService
from projects_api.services.project_service import ProjectCache, ProjectPageCache, ProjectService
from projects_api.services.task_service import TaskService
from projects_api.services.user_service import UserService
from projects_api.utils.simple_cache import SimpleTTLCache


@dataclass
class Container:
    settings: Settings
    rate_limiter: AbstractRateLimiter
    project_cache: ProjectCache
    listing_cache: ProjectPageCache
    users: UserRepository
    projects: ProjectRepository
    tasks: TaskRepository
    hasher: PasswordHasher
    tokens: TokenCodec
    auth_service: AuthService
    user_service: UserService
    project_service: ProjectService
    task_service: TaskService


def build_container(
    settings: Settings,
    *,
    users: UserRepository | None = None,
    projects: ProjectRepository | None = None,
    tasks: TaskRepository | None = None,
) -> Container:
    """Wire every component from ``settings``.

    Repositories default to the in-memory implementations; pass others to
    plug in an external store.
    """

    users = users or InMemoryUserRepository()
    projects = projects or InMemoryProjectRepository()
    tasks = tasks or InMemoryTaskRepository()

    rate_limiter = InMemoryTokenBucketRateLimiter(
        capacity=settings.rate_limit.requests,
        refill_interval_seconds=settings.rate_limit.duration,
        max_keys=settings.rate_limit.max_keys,
    )
    project_cache: ProjectCache = SimpleTTLCache(
        "project",
        ttl_seconds=settings.cache.expire_after_access,
        max_entries=settings.cache.maximum_size,
    )
    listing_cache: ProjectPageCache = SimpleTTLCache(
        "projects",
        ttl_seconds=settings.cache.expire_after_access,
        max_entries=settings.cache.maximum_size,
    )

    hasher = PasswordHasher(rounds=settings.app.password_hash_rounds)
    tokens = TokenCodec(
        secret=settings.token.secret,
        ttl_seconds=settings.token.ttl,
        algorithm=settings.token.algorithm,
        issuer=settings.token.issuer,
    )

    return Container(
        settings=settings,
        rate_limiter=rate_limiter,
        project_cache=project_cache,
        listing_cache=listing_cache,
        users=users,
        projects=projects,
        tasks=tasks,
        hasher=hasher,
        tokens=tokens,
        auth_service=AuthService(users, hasher, tokens),
        user_service=UserService(users, hasher),
        project_service=ProjectService(projects, tasks, project_cache, listing_cache),
        task_service=TaskService(tasks, projects),
    )


def get_container(request: Request) -> Container:
    """FastAPI dependency returning the application's container."""

    return request.app.state.container


def get_auth_service(request: Request) -> AuthService:
    return get_container(request).auth_service


def get_user_service(request: Request) -> UserService:
    return get_container(request).user_service


def get_project_service(request: Request) -> ProjectService:
    return get_container(request).project_service


def get_task_service(request: Request) -> TaskService:
    return get_container(request).task_service
