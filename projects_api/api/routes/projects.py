from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, status

from projects_api.core.auth import require_admin, require_user_or_admin
from projects_api.core.container import get_project_service
from projects_api.core.logging import Principal
from projects_api.schemas.common import PageResponse
from projects_api.schemas.project import ProjectRequest, ProjectResponse, ProjectUpdateRequest
from projects_api.services.pagination import ProjectFilter
from projects_api.services.project_service import ProjectService

router = APIRouter(prefix="/projects", tags=["Projects"])

ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
AnyRole = Annotated[Principal, Depends(require_user_or_admin)]
AdminOnly = Annotated[Principal, Depends(require_admin)]


@router.post(
    "",
    response_model=ProjectResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_project(
    request: ProjectRequest,
    principal: AnyRole,
    service: ProjectServiceDep,
) -> ProjectResponse:
    return await service.create(request, actor=principal.username)


@router.get("", response_model=PageResponse[ProjectResponse], response_model_exclude_none=True)
async def list_projects(
    _: AnyRole,
    service: ProjectServiceDep,
    page: Annotated[int | None, Query(description="Zero-based page index")] = None,
    size: Annotated[int | None, Query(description="Page size")] = None,
    sort_by: Annotated[str | None, Query(alias="sortBy", description="Field to sort by")] = None,
    direction: Annotated[str | None, Query(description="ASC or DESC")] = None,
) -> PageResponse[ProjectResponse]:
    """List projects one page at a time.

    Defaults: ``page=0``, ``size=10``, ``sortBy=id``, ``direction=ASC``.
    Results are served from the listing cache until a project write.
    """

    project_filter = ProjectFilter(page=page, size=size, sort_by=sort_by, direction=direction)
    return await service.find_by_filter(project_filter)


@router.get("/{project_id}", response_model=ProjectResponse, response_model_exclude_none=True)
async def get_project(project_id: int, _: AnyRole, service: ProjectServiceDep) -> ProjectResponse:
    return await service.find_by_id(project_id)


@router.put("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_project(
    project_id: int,
    patch: ProjectUpdateRequest,
    principal: AdminOnly,
    service: ProjectServiceDep,
) -> None:
    """Partially update a project; only non-null fields are applied."""

    await service.update_project(project_id, patch, actor=principal.username)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: int, _: AdminOnly, service: ProjectServiceDep) -> None:
    await service.delete_project_by_id(project_id)


@router.post("/delete-by-ids", status_code=status.HTTP_204_NO_CONTENT)
async def delete_projects(
    project_ids: Annotated[list[int], Body(description="Ids of the projects to delete")],
    _: AdminOnly,
    service: ProjectServiceDep,
) -> None:
    """Best-effort batch delete; unknown ids and projects with tasks are skipped."""

    await service.delete_projects_by_ids(project_ids)
