"""Task use cases."""

from __future__ import annotations

import logging

from projects_api.adapters.repositories.base import ProjectRepository, TaskRepository
from projects_api.core.errors import NotFoundAppError
from projects_api.models.entities import Task
from projects_api.schemas.common import PageResponse
from projects_api.schemas.task import TaskPriorityUpdate, TaskRequest, TaskResponse, TaskStatusUpdate
from projects_api.services.pagination import TaskFilter, resolve_page_request

logger = logging.getLogger(__name__)

PROJECT_NOT_FOUND_MESSAGE = "Project not found by id: "
TASK_NOT_FOUND_MESSAGE = "Task not found by id: "

TASK_SORT_FIELDS = {
    "id": "id",
    "title": "title",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "dueDate": "due_date",
    "projectId": "project_id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def _task_not_found(task_id: int) -> NotFoundAppError:
    return NotFoundAppError(code="task_not_found", message=f"{TASK_NOT_FOUND_MESSAGE}{task_id}")


class TaskService:
    """Creates, lists, updates and deletes tasks."""

    def __init__(self, tasks: TaskRepository, projects: ProjectRepository) -> None:
        self._tasks = tasks
        self._projects = projects

    async def create(self, request: TaskRequest, actor: str | None = None) -> TaskResponse:
        """Persist a task under an existing project.

        Raises:
            NotFoundAppError: If the referenced project does not exist.
        """
        if not await self._projects.exists_by_id(request.project_id):
            raise NotFoundAppError(
                code="project_not_found",
                message=f"{PROJECT_NOT_FOUND_MESSAGE}{request.project_id}",
            )

        task = Task(
            title=request.title,
            description=request.description,
            status=request.status,
            priority=request.priority,
            due_date=request.due_date,
            project_id=request.project_id,
        )
        task.touch(actor)
        saved = await self._tasks.save(task)

        logger.info("task.created", extra={"task_id": saved.id, "project_id": saved.project_id})
        return TaskResponse.from_entity(saved)

    async def find_by_id(self, task_id: int) -> TaskResponse:
        task = await self._tasks.find_by_id(task_id)
        if task is None:
            raise _task_not_found(task_id)
        return TaskResponse.from_entity(task)

    async def find_by_filter(self, task_filter: TaskFilter) -> PageResponse[TaskResponse]:
        """Page through tasks; status, priority and projectId are each optional."""
        page_request = resolve_page_request(
            page=task_filter.page,
            size=task_filter.size,
            sort_by=task_filter.sort_by,
            direction=task_filter.direction,
            sort_fields=TASK_SORT_FIELDS,
        )
        page = await self._tasks.find_by_filters(
            task_filter.status,
            task_filter.priority,
            task_filter.project_id,
            page_request,
        )
        return PageResponse[TaskResponse].of(page, TaskResponse.from_entity)

    async def update_status(self, task_id: int, update: TaskStatusUpdate, actor: str | None = None) -> None:
        task = await self._tasks.find_by_id(task_id)
        if task is None:
            raise _task_not_found(task_id)

        task.status = update.status
        task.touch(actor)
        await self._tasks.save(task)
        logger.info("task.status_updated", extra={"task_id": task_id, "status": update.status.value})

    async def update_priority(self, task_id: int, update: TaskPriorityUpdate, actor: str | None = None) -> None:
        task = await self._tasks.find_by_id(task_id)
        if task is None:
            raise _task_not_found(task_id)

        task.priority = update.priority
        task.touch(actor)
        await self._tasks.save(task)
        logger.info("task.priority_updated", extra={"task_id": task_id, "priority": update.priority.value})

    async def delete(self, task_id: int) -> None:
        if not await self._tasks.exists_by_id(task_id):
            raise _task_not_found(task_id)

        await self._tasks.delete_by_id(task_id)
        logger.info("task.deleted", extra={"task_id": task_id})
