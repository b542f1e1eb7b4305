from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from projects_api.core.container import get_user_service
from projects_api.schemas.user import UserRequest, UserResponse
from projects_api.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    response_model=UserResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    request: UserRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Register a new user.

    Public endpoint. The username is normalized (trimmed, inner whitespace
    collapsed) before the uniqueness check; role defaults to ``ROLE_USER``.
    """

    return await service.create(request)
