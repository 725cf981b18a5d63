"""API routes for the current user's profile.

Both endpoints require a bearer token; the password hash is never part
of the response.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from receipt_keeper.api.dependencies import get_auth_service, get_current_user
from receipt_keeper.models.schemas import APIResponse, UserRead, UserUpdate
from receipt_keeper.models.tables import User
from receipt_keeper.services.auth_service import AuthService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=APIResponse)
async def read_current_user(user: User = Depends(get_current_user)) -> APIResponse:
    """Return the authenticated user's profile."""
    return APIResponse(success=True, data=UserRead.model_validate(user))


@router.put("/me", response_model=APIResponse)
async def update_current_user(
    user_in: UserUpdate,
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> APIResponse:
    updated = await auth.update_profile(user.id, user_in)
    return APIResponse(success=True, message="Profile updated", data=UserRead.model_validate(updated))
