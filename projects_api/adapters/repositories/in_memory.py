"""In-memory repositories.

Used by the composition root when no external store is wired, and by tests.
Records are copied on the way in and out so callers never share mutable
state with the store. A lock guards each table; no awaits happen under it.
"""

from __future__ import annotations

import copy
import itertools
import threading
from typing import Any, Callable, Generic, Iterable, TypeVar

from projects_api.adapters.repositories.base import (
    DuplicateKeyError,
    Page,
    PageRequest,
    ProjectRepository,
    TaskRepository,
    UserRepository,
)
from projects_api.models.entities import Project, Task, User
from projects_api.models.enums import SortDirection, TaskPriority, TaskStatus

R = TypeVar("R", User, Project, Task)


def _sort_key(attribute: str) -> Callable[[Any], tuple]:
    def key(record: Any) -> tuple:
        value = getattr(record, attribute)
        if hasattr(value, "value"):
            value = value.value
        # Nulls sort last in ascending order.
        return (value is None, value if value is not None else 0)

    return key


class _Table(Generic[R]):
    def __init__(self) -> None:
        self._rows: dict[int, R] = {}
        self._ids = itertools.count(1)
        self.lock = threading.Lock()

    def save(self, record: R, unique: tuple[str, ...] = ()) -> R:
        stored = copy.deepcopy(record)
        with self.lock:
            for attribute in unique:
                value = getattr(stored, attribute)
                if any(
                    getattr(row, attribute) == value and row_id != stored.id for row_id, row in self._rows.items()
                ):
                    raise DuplicateKeyError(attribute)
            if stored.id is None:
                stored.id = next(self._ids)
            self._rows[stored.id] = stored
        return copy.deepcopy(stored)

    def get(self, record_id: int) -> R | None:
        with self.lock:
            record = self._rows.get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def contains(self, record_id: int) -> bool:
        with self.lock:
            return record_id in self._rows

    def delete(self, record_id: int) -> bool:
        with self.lock:
            return self._rows.pop(record_id, None) is not None

    def select(self, predicate: Callable[[R], bool] | None = None) -> list[R]:
        with self.lock:
            rows = list(self._rows.values())
        return [copy.deepcopy(r) for r in rows if predicate is None or predicate(r)]

    def any(self, predicate: Callable[[R], bool]) -> bool:
        with self.lock:
            return any(predicate(r) for r in self._rows.values())


def _paginate(rows: list[R], page_request: PageRequest) -> Page[R]:
    ordered = sorted(
        rows,
        key=_sort_key(page_request.sort_by),
        reverse=page_request.direction is SortDirection.DESC,
    )
    start = page_request.offset
    return Page(
        content=ordered[start : start + page_request.size],
        number=page_request.page,
        size=page_request.size,
        total_elements=len(ordered),
    )


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._table: _Table[User] = _Table()

    async def save(self, user: User) -> User:
        return self._table.save(user, unique=("username", "email"))

    async def find_by_id(self, user_id: int) -> User | None:
        return self._table.get(user_id)

    async def find_by_username(self, username: str) -> User | None:
        matches = self._table.select(lambda u: u.username == username)
        return matches[0] if matches else None

    async def exists_by_username(self, username: str) -> bool:
        return self._table.any(lambda u: u.username == username)

    async def exists_by_email(self, email: str) -> bool:
        return self._table.any(lambda u: u.email == email)


class InMemoryProjectRepository(ProjectRepository):
    def __init__(self) -> None:
        self._table: _Table[Project] = _Table()

    async def save(self, project: Project) -> Project:
        return self._table.save(project)

    async def find_by_id(self, project_id: int) -> Project | None:
        return self._table.get(project_id)

    async def exists_by_id(self, project_id: int) -> bool:
        return self._table.contains(project_id)

    async def find_all(self, page_request: PageRequest) -> Page[Project]:
        return _paginate(self._table.select(), page_request)

    async def delete_by_id(self, project_id: int) -> None:
        self._table.delete(project_id)

    async def delete_all_by_ids(self, project_ids: Iterable[int]) -> int:
        return sum(1 for project_id in set(project_ids) if self._table.delete(project_id))


class InMemoryTaskRepository(TaskRepository):
    def __init__(self) -> None:
        self._table: _Table[Task] = _Table()

    async def save(self, task: Task) -> Task:
        return self._table.save(task)

    async def find_by_id(self, task_id: int) -> Task | None:
        return self._table.get(task_id)

    async def exists_by_id(self, task_id: int) -> bool:
        return self._table.contains(task_id)

    async def exists_by_project_id(self, project_id: int) -> bool:
        return self._table.any(lambda t: t.project_id == project_id)

    async def find_by_filters(
        self,
        status: TaskStatus | None,
        priority: TaskPriority | None,
        project_id: int | None,
        page_request: PageRequest,
    ) -> Page[Task]:
        def matches(task: Task) -> bool:
            return (
                (status is None or task.status == status)
                and (priority is None or task.priority == priority)
                and (project_id is None or task.project_id == project_id)
            )

        return _paginate(self._table.select(matches), page_request)

    async def delete_by_id(self, task_id: int) -> None:
        self._table.delete(task_id)
