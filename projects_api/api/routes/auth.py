from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from projects_api.core.container import get_auth_service
from projects_api.schemas.auth import LoginRequest, TokenResponse
from projects_api.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    login_request: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """Exchange username and password for a bearer token."""

    return await service.authenticate(login_request)
