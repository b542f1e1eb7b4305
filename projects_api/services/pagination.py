"""Listing filters and their resolution into repository page requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from projects_api.adapters.repositories.base import PageRequest
from projects_api.core.errors import BadParameterAppError
from projects_api.models.enums import SortDirection, TaskPriority, TaskStatus

DEFAULT_PAGE = 0
DEFAULT_SIZE = 10
DEFAULT_SORT_BY = "id"
DEFAULT_DIRECTION = "ASC"


@dataclass(frozen=True)
class ProjectFilter:
    page: int | None = None
    size: int | None = None
    sort_by: str | None = None
    direction: str | None = None


@dataclass(frozen=True)
class TaskFilter:
    page: int | None = None
    size: int | None = None
    sort_by: str | None = None
    direction: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    project_id: int | None = None


def resolve_page_request(
    *,
    page: int | None,
    size: int | None,
    sort_by: str | None,
    direction: str | None,
    sort_fields: Mapping[str, str],
) -> PageRequest:
    """Apply listing defaults and validate every paging parameter.

    Args:
        sort_fields: Wire sort names mapped to record attribute names.

    Raises:
        BadParameterAppError: For a negative page, a non-positive size, an
            unknown sort field or a direction other than ASC/DESC.
    """

    page = DEFAULT_PAGE if page is None else page
    size = DEFAULT_SIZE if size is None else size
    sort_by = sort_by or DEFAULT_SORT_BY
    direction = direction or DEFAULT_DIRECTION

    if page < 0:
        raise BadParameterAppError.for_parameter("page", page, "non-negative integer")
    if size < 1:
        raise BadParameterAppError.for_parameter("size", size, "positive integer")

    attribute = sort_fields.get(sort_by)
    if attribute is None:
        raise BadParameterAppError.for_parameter("sortBy", sort_by, " | ".join(sorted(sort_fields)))

    try:
        resolved_direction = SortDirection(direction.upper())
    except ValueError:
        raise BadParameterAppError.for_parameter("direction", direction, "ASC | DESC") from None

    return PageRequest(page=page, size=size, sort_by=attribute, direction=resolved_direction)
