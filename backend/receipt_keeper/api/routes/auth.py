"""API routes for registration and login."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from receipt_keeper.api.dependencies import get_auth_service
from receipt_keeper.models.schemas import APIResponse, LoginRequest, LoginResponse, UserCreate, UserRead
from receipt_keeper.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, auth: AuthService = Depends(get_auth_service)) -> APIResponse:
    user = await auth.register(user_in)
    return APIResponse(success=True, message="User registered successfully", data=UserRead.model_validate(user))


@router.post("/login", response_model=APIResponse)
async def login(credentials: LoginRequest, auth: AuthService = Depends(get_auth_service)) -> APIResponse:
    """Exchange email and password for a bearer token."""
    token, user = await auth.login(credentials)
    return APIResponse(
        success=True,
        message="Login successful",
        data=LoginResponse(token=token, user=UserRead.model_validate(user)),
    )
