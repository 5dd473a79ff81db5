"""User router — profile access for session holders."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from otp_auth.api.dependencies import get_current_user, get_user_service
from otp_auth.api.schemas import (
    MessageResponse,
    ProfileResponse,
    UpdatePasswordRequest,
    UpdateProfileRequest,
    UpdateProfileResponse,
    UserOut,
)
from otp_auth.models.user import User
from otp_auth.services.user_service import UserService

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile", response_model=ProfileResponse, response_model_exclude_none=True)
async def get_profile(user: User = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse(user=UserOut.from_user(user, created=True, updated=True))


@router.put("/update-password", response_model=MessageResponse)
async def update_password(
    body: UpdatePasswordRequest,
    user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Replace the password after re-checking the current one."""
    await users.update_password(user, body.current_password, body.new_password)
    return MessageResponse(message="Password updated successfully")


@router.put(
    "/update-profile", response_model=UpdateProfileResponse, response_model_exclude_none=True
)
async def update_profile(
    body: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UpdateProfileResponse:
    """Update name and mobile number; the password is not touched here."""
    user = await users.update_profile(
        user,
        first_name=body.first_name,
        last_name=body.last_name,
        mobile_number=body.mobile_number,
    )
    return UpdateProfileResponse(
        message="Profile updated successfully",
        user=UserOut.from_user(user, updated=True),
    )
