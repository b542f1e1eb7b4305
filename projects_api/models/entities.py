"""Persistent records handled by the repositories.

Identifiers are assigned by the repository on first save. All timestamps are
naive local date-times.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from projects_api.models.enums import Role, TaskPriority, TaskStatus


def local_now() -> datetime:
    """Current local time without zone, truncated to whole seconds."""
    return datetime.now().replace(microsecond=0)


@dataclass
class Audit:
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None

    def touch(self, actor: str | None, now: datetime | None = None) -> None:
        """Stamp audit fields for a write performed by ``actor``."""
        now = now or local_now()
        if self.created_at is None:
            self.created_at = now
            self.created_by = actor
        self.updated_at = now
        self.updated_by = actor


@dataclass
class User(Audit):
    id: int | None = None
    username: str = ""
    email: str = ""
    password_hash: str = ""
    role: Role = Role.USER


@dataclass
class Project(Audit):
    id: int | None = None
    name: str = ""
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


@dataclass
class Task(Audit):
    id: int | None = None
    title: str = ""
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    project_id: int | None = None
