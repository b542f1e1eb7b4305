"""Pydantic schemas for tasks."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from projects_api.models.entities import Task
from projects_api.models.enums import TaskPriority, TaskStatus
from projects_api.schemas.common import CamelModel, LocalDateTime, ensure_future


class TaskRequest(CamelModel):
    """Payload for creating a task inside an existing project."""

    title: str | None = Field(default=None, validate_default=True)
    description: str | None = None
    status: TaskStatus = Field(default=TaskStatus.TODO, description="TODO, DOING or DONE.")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="LOW, MEDIUM or HIGH.")
    due_date: LocalDateTime | None = None
    project_id: int | None = Field(default=None, validate_default=True)

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str | None) -> str:
        if not value:
            raise ValueError("Title cannot be empty")
        return value

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: str | None) -> str | None:
        if value is not None and len(value) > 1000:
            raise ValueError("Description cannot exceed 1000 characters")
        return value

    @field_validator("due_date")
    @classmethod
    def _check_due_date(cls, value: datetime | None) -> datetime | None:
        return ensure_future(value, "Due date must be in the future")

    @field_validator("project_id")
    @classmethod
    def _check_project_id(cls, value: int | None) -> int:
        if value is None:
            raise ValueError("Project ID cannot be null")
        return value


class TaskStatusUpdate(CamelModel):
    status: TaskStatus


class TaskPriorityUpdate(CamelModel):
    priority: TaskPriority


class TaskResponse(CamelModel):
    id: int
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None = None
    project_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None

    @classmethod
    def from_entity(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            due_date=task.due_date,
            project_id=task.project_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
            created_by=task.created_by,
            updated_by=task.updated_by,
        )
