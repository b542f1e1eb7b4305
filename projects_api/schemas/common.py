"""Shared schema building blocks: camelCase base model, date-time handling,
page envelope and the problem-detail error body."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Callable, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from projects_api.adapters.repositories.base import Page

T = TypeVar("T")
E = TypeVar("E")

DATE_TIME_FORMAT_HINT = "yyyy-MM-ddTHH:mm (e.g., 2025-10-16T14:30)"


def _to_local_naive(value: datetime) -> datetime:
    # Offsets are accepted on input but everything is stored as local time.
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


LocalDateTime = Annotated[datetime, AfterValidator(_to_local_naive)]


def ensure_future(value: datetime | None, message: str) -> datetime | None:
    if value is not None and value <= datetime.now():
        raise ValueError(message)
    return value


def ensure_present_or_future(value: datetime | None, message: str) -> datetime | None:
    if value is not None and value < datetime.now().replace(second=0, microsecond=0):
        raise ValueError(message)
    return value


class CamelModel(BaseModel):
    """Base model exposing camelCase names on the wire.

    Instances are immutable: requests are validated once at the boundary and
    responses may be shared through the cache.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PageResponse(CamelModel, Generic[T]):
    """Paginated listing envelope."""

    content: list[T] = Field(default_factory=list)
    current_page: int = Field(..., description="Zero-based index of this page.")
    total_pages: int
    total_elements: int
    size: int
    first: bool
    last: bool

    @classmethod
    def of(cls, page: Page[E], mapper: Callable[[E], T]) -> "PageResponse[T]":
        return cls(
            content=[mapper(item) for item in page.content],
            current_page=page.number,
            total_pages=page.total_pages,
            total_elements=page.total_elements,
            size=page.size,
            first=page.is_first,
            last=page.is_last,
        )


class ProblemDetail(CamelModel):
    """Structured JSON error body returned for every failed request."""

    title: str
    status: int
    detail: str
    instance: str
    timestamp: datetime = Field(default_factory=datetime.now)
    properties: dict[str, Any] | None = Field(
        default=None,
        description="Extra members such as validationErrors or retryAfterSeconds.",
    )
