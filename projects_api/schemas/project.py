"""Pydantic schemas for projects."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from projects_api.models.entities import Project
from projects_api.schemas.common import (
    CamelModel,
    LocalDateTime,
    ensure_future,
    ensure_present_or_future,
)

START_DATE_MESSAGE = "Start date must be in the present or future"
END_DATE_MESSAGE = "End date must be in the future"
DESCRIPTION_MESSAGE = "Description cannot exceed 500 characters"


class ProjectRequest(CamelModel):
    """Payload for creating a project."""

    name: str | None = Field(default=None, validate_default=True)
    description: str | None = None
    start_date: LocalDateTime | None = None
    end_date: LocalDateTime | None = None

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str | None) -> str:
        if not value:
            raise ValueError("Name cannot be empty")
        return value

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: str | None) -> str | None:
        if value is not None and len(value) > 500:
            raise ValueError(DESCRIPTION_MESSAGE)
        return value

    @field_validator("start_date")
    @classmethod
    def _check_start_date(cls, value: datetime | None) -> datetime | None:
        return ensure_present_or_future(value, START_DATE_MESSAGE)

    @field_validator("end_date")
    @classmethod
    def _check_end_date(cls, value: datetime | None) -> datetime | None:
        return ensure_future(value, END_DATE_MESSAGE)


class ProjectUpdateRequest(CamelModel):
    """Partial update: a null or omitted field leaves the stored value unchanged."""

    name: str | None = None
    description: str | None = None
    start_date: LocalDateTime | None = None
    end_date: LocalDateTime | None = None

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if not value.strip():
            raise ValueError("Name cannot be empty")
        if len(value) > 100:
            raise ValueError("Name cannot exceed 100 characters")
        return value

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: str | None) -> str | None:
        if value is not None and len(value) > 500:
            raise ValueError(DESCRIPTION_MESSAGE)
        return value

    @field_validator("start_date")
    @classmethod
    def _check_start_date(cls, value: datetime | None) -> datetime | None:
        return ensure_present_or_future(value, START_DATE_MESSAGE)

    @field_validator("end_date")
    @classmethod
    def _check_end_date(cls, value: datetime | None) -> datetime | None:
        return ensure_future(value, END_DATE_MESSAGE)


class ProjectResponse(CamelModel):
    id: int
    name: str
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None

    @classmethod
    def from_entity(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            start_date=project.start_date,
            end_date=project.end_date,
            created_at=project.created_at,
            updated_at=project.updated_at,
            created_by=project.created_by,
            updated_by=project.updated_by,
        )
