"""Repository interfaces.

Services depend on these abstractions only; the relational store lives
behind them. Every method is a coroutine because a real backend performs I/O.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, Iterable, TypeVar

from projects_api.models.entities import Project, Task, User
from projects_api.models.enums import SortDirection, TaskPriority, TaskStatus

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page request with a single sort attribute."""

    page: int = 0
    size: int = 10
    sort_by: str = "id"
    direction: SortDirection = SortDirection.ASC

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(frozen=True)
class Page(Generic[T]):
    """One slice of a sorted result set."""

    content: list[T] = field(default_factory=list)
    number: int = 0
    size: int = 10
    total_elements: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size) if self.size else 0

    @property
    def is_first(self) -> bool:
        return self.number == 0

    @property
    def is_last(self) -> bool:
        return self.number + 1 >= self.total_pages


class DuplicateKeyError(Exception):
    """Raised by a save that would break a unique column (``username`` or ``email``)."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"duplicate {field_name}")
        self.field_name = field_name


class UserRepository(ABC):
    @abstractmethod
    async def save(self, user: User) -> User:
        """Insert or update ``user``, enforcing unique username and email.

        Raises:
            DuplicateKeyError: If another user holds the username (checked
                first) or the email.
        """

    @abstractmethod
    async def find_by_id(self, user_id: int) -> User | None: ...

    @abstractmethod
    async def find_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    async def exists_by_username(self, username: str) -> bool: ...

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool: ...


class ProjectRepository(ABC):
    @abstractmethod
    async def save(self, project: Project) -> Project: ...

    @abstractmethod
    async def find_by_id(self, project_id: int) -> Project | None: ...

    @abstractmethod
    async def exists_by_id(self, project_id: int) -> bool: ...

    @abstractmethod
    async def find_all(self, page_request: PageRequest) -> Page[Project]: ...

    @abstractmethod
    async def delete_by_id(self, project_id: int) -> None: ...

    @abstractmethod
    async def delete_all_by_ids(self, project_ids: Iterable[int]) -> int:
        """Delete the given ids that exist; returns how many were removed."""


class TaskRepository(ABC):
    @abstractmethod
    async def save(self, task: Task) -> Task: ...

    @abstractmethod
    async def find_by_id(self, task_id: int) -> Task | None: ...

    @abstractmethod
    async def exists_by_id(self, task_id: int) -> bool: ...

    @abstractmethod
    async def exists_by_project_id(self, project_id: int) -> bool: ...

    @abstractmethod
    async def find_by_filters(
        self,
        status: TaskStatus | None,
        priority: TaskPriority | None,
        project_id: int | None,
        page_request: PageRequest,
    ) -> Page[Task]:
        """Page through tasks; a None filter places no constraint."""

    @abstractmethod
    async def delete_by_id(self, task_id: int) -> None: ...
