from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from projects_api.core.auth import require_user_or_admin
from projects_api.core.container import get_task_service
from projects_api.core.logging import Principal
from projects_api.models.enums import TaskPriority, TaskStatus
from projects_api.schemas.common import PageResponse
from projects_api.schemas.task import TaskPriorityUpdate, TaskRequest, TaskResponse, TaskStatusUpdate
from projects_api.services.pagination import TaskFilter
from projects_api.services.task_service import TaskService

# Every task route admits both roles; the gate only requires authentication.
router = APIRouter(prefix="/tasks", tags=["Tasks"])

TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
AnyRole = Annotated[Principal, Depends(require_user_or_admin)]


@router.post(
    "",
    response_model=TaskResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(request: TaskRequest, principal: AnyRole, service: TaskServiceDep) -> TaskResponse:
    """Create a task under an existing project (404 if the project is unknown)."""

    return await service.create(request, actor=principal.username)


@router.get("/{task_id}", response_model=TaskResponse, response_model_exclude_none=True)
async def get_task(task_id: int, _: AnyRole, service: TaskServiceDep) -> TaskResponse:
    return await service.find_by_id(task_id)


@router.get("", response_model=PageResponse[TaskResponse], response_model_exclude_none=True)
async def list_tasks(
    _: AnyRole,
    service: TaskServiceDep,
    page: Annotated[int | None, Query(description="Zero-based page index")] = None,
    size: Annotated[int | None, Query(description="Page size")] = None,
    sort_by: Annotated[str | None, Query(alias="sortBy", description="Field to sort by")] = None,
    direction: Annotated[str | None, Query(description="ASC or DESC")] = None,
    task_status: Annotated[TaskStatus | None, Query(alias="status")] = None,
    priority: Annotated[TaskPriority | None, Query()] = None,
    project_id: Annotated[int | None, Query(alias="projectId")] = None,
) -> PageResponse[TaskResponse]:
    """List tasks; ``status``, ``priority`` and ``projectId`` are independent optional filters."""

    task_filter = TaskFilter(
        page=page,
        size=size,
        sort_by=sort_by,
        direction=direction,
        status=task_status,
        priority=priority,
        project_id=project_id,
    )
    return await service.find_by_filter(task_filter)


@router.put("/{task_id}/status", status_code=status.HTTP_204_NO_CONTENT)
async def update_task_status(
    task_id: int,
    update: TaskStatusUpdate,
    principal: AnyRole,
    service: TaskServiceDep,
) -> None:
    await service.update_status(task_id, update, actor=principal.username)


@router.put("/{task_id}/priority", status_code=status.HTTP_204_NO_CONTENT)
async def update_task_priority(
    task_id: int,
    update: TaskPriorityUpdate,
    principal: AnyRole,
    service: TaskServiceDep,
) -> None:
    await service.update_priority(task_id, update, actor=principal.username)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, _: AnyRole, service: TaskServiceDep) -> None:
    await service.delete(task_id)
