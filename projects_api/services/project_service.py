"""Project use cases with a read-through cache.

Two caches sit in front of the repository:
- ``project``: project id -> ProjectResponse
- ``projects``: (page, size, sortBy, direction) -> PageResponse[ProjectResponse]

Write paths invalidate explicitly once the repository call has completed:
- create: every ``projects`` entry
- update / delete one: ``project[id]`` and every ``projects`` entry
- delete many: both caches entirely
"""

from __future__ import annotations

import logging
from typing import Iterable

from projects_api.adapters.repositories.base import PageRequest, ProjectRepository, TaskRepository
from projects_api.core.errors import ConflictAppError, NotFoundAppError, ValidationAppError
from projects_api.models.entities import Project
from projects_api.schemas.common import PageResponse
from projects_api.schemas.project import ProjectRequest, ProjectResponse, ProjectUpdateRequest
from projects_api.services.pagination import ProjectFilter, resolve_page_request
from projects_api.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)

PROJECT_NOT_FOUND_MESSAGE = "Project not found by id: "
PROJECT_HAS_TASKS_MESSAGE = "Project has tasks and cannot be deleted, id: "
END_BEFORE_START_MESSAGE = "End date must be after start date"

PROJECT_SORT_FIELDS = {
    "id": "id",
    "name": "name",
    "description": "description",
    "startDate": "start_date",
    "endDate": "end_date",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

ProjectCache = SimpleTTLCache[int, ProjectResponse]
ProjectPageCache = SimpleTTLCache[tuple, PageResponse[ProjectResponse]]


def _check_date_order(project: Project) -> None:
    if project.start_date and project.end_date and project.end_date <= project.start_date:
        raise ValidationAppError.for_fields({"endDate": END_BEFORE_START_MESSAGE})


def _listing_key(page_request: PageRequest) -> tuple:
    return (page_request.page, page_request.size, page_request.sort_by, page_request.direction.value)


class ProjectService:
    """Creates, lists, updates and deletes projects."""

    def __init__(
        self,
        projects: ProjectRepository,
        tasks: TaskRepository,
        project_cache: ProjectCache,
        listing_cache: ProjectPageCache,
    ) -> None:
        self._projects = projects
        self._tasks = tasks
        self._project_cache = project_cache
        self._listing_cache = listing_cache

    async def create(self, request: ProjectRequest, actor: str | None = None) -> ProjectResponse:
        """Persist a new project.

        Raises:
            ValidationAppError: If both dates are set and end is not after start.
        """
        project = Project(
            name=request.name,
            description=request.description,
            start_date=request.start_date,
            end_date=request.end_date,
        )
        _check_date_order(project)
        project.touch(actor)

        saved = await self._projects.save(project)
        self._listing_cache.invalidate_all()

        logger.info("project.created", extra={"project_id": saved.id})
        return ProjectResponse.from_entity(saved)

    async def find_by_filter(self, project_filter: ProjectFilter) -> PageResponse[ProjectResponse]:
        """Return one page of projects, served from cache when possible.

        Raises:
            BadParameterAppError: If a paging parameter is invalid.
        """
        page_request = resolve_page_request(
            page=project_filter.page,
            size=project_filter.size,
            sort_by=project_filter.sort_by,
            direction=project_filter.direction,
            sort_fields=PROJECT_SORT_FIELDS,
        )

        async def load() -> PageResponse[ProjectResponse]:
            page = await self._projects.find_all(page_request)
            return PageResponse[ProjectResponse].of(page, ProjectResponse.from_entity)

        return await self._listing_cache.get_or_load(_listing_key(page_request), load)

    async def find_by_id(self, project_id: int) -> ProjectResponse:
        """Return one project, served from cache when possible.

        Raises:
            NotFoundAppError: If the project does not exist (nothing is cached).
        """

        async def load() -> ProjectResponse:
            project = await self._projects.find_by_id(project_id)
            if project is None:
                raise NotFoundAppError(code="project_not_found", message=f"{PROJECT_NOT_FOUND_MESSAGE}{project_id}")
            return ProjectResponse.from_entity(project)

        return await self._project_cache.get_or_load(project_id, load)

    async def update_project(
        self,
        project_id: int,
        patch: ProjectUpdateRequest,
        actor: str | None = None,
    ) -> None:
        """Apply the non-null fields of ``patch``.

        Raises:
            NotFoundAppError: If the project does not exist.
            ValidationAppError: If the patched dates end before they start.
        """
        project = await self._projects.find_by_id(project_id)
        if project is None:
            raise NotFoundAppError(code="project_not_found", message=f"{PROJECT_NOT_FOUND_MESSAGE}{project_id}")

        if patch.name is not None:
            project.name = patch.name
        if patch.description is not None:
            project.description = patch.description
        if patch.start_date is not None:
            project.start_date = patch.start_date
        if patch.end_date is not None:
            project.end_date = patch.end_date

        _check_date_order(project)
        project.touch(actor)

        await self._projects.save(project)
        self._project_cache.invalidate(project_id)
        self._listing_cache.invalidate_all()

        logger.info("project.updated", extra={"project_id": project_id})

    async def delete_project_by_id(self, project_id: int) -> None:
        """Delete one project.

        Raises:
            NotFoundAppError: If the project does not exist.
            ConflictAppError: If tasks still reference the project.
        """
        if not await self._projects.exists_by_id(project_id):
            raise NotFoundAppError(code="project_not_found", message=f"{PROJECT_NOT_FOUND_MESSAGE}{project_id}")
        if await self._tasks.exists_by_project_id(project_id):
            raise ConflictAppError(code="project_has_tasks", message=f"{PROJECT_HAS_TASKS_MESSAGE}{project_id}")

        await self._projects.delete_by_id(project_id)
        self._project_cache.invalidate(project_id)
        self._listing_cache.invalidate_all()

        logger.info("project.deleted", extra={"project_id": project_id})

    async def delete_projects_by_ids(self, project_ids: Iterable[int]) -> int:
        """Best-effort batch delete.

        Ids that do not exist or still have tasks are skipped. Both caches are
        cleared regardless of how many projects were removed.

        Returns:
            Number of projects deleted.
        """
        deletable: list[int] = []
        skipped: list[int] = []
        for project_id in dict.fromkeys(project_ids):
            if await self._projects.exists_by_id(project_id) and not await self._tasks.exists_by_project_id(project_id):
                deletable.append(project_id)
            else:
                skipped.append(project_id)

        try:
            deleted = await self._projects.delete_all_by_ids(deletable) if deletable else 0
        finally:
            self._project_cache.invalidate_all()
            self._listing_cache.invalidate_all()

        if skipped:
            logger.warning("project.batch_delete_skipped", extra={"project_ids": skipped})
        logger.info("project.batch_deleted", extra={"deleted": deleted, "requested": len(deletable) + len(skipped)})
        return deleted
