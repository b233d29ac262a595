"""
Profile routes - view and edit the signed-in user's profile.
"""

from fastapi import APIRouter, Depends, status
from loguru import logger

from storefront.core.errors import ApiError
from storefront.middleware.auth import get_profile_user
from storefront.models.schemas import ProfileResponse, ProfileUpdate, UserProfile
from storefront.services.user import EmailAlreadyRegistered, UserService, get_user_service

router = APIRouter(prefix="/api/users", tags=["profile"])


@router.get("/profile", response_model=ProfileResponse)
def get_profile(current_user: dict = Depends(get_profile_user)) -> ProfileResponse:
    """Return the authenticated user's profile."""
    return ProfileResponse(user=UserProfile.from_user(current_user))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    changes: ProfileUpdate,
    current_user: dict = Depends(get_profile_user),
    user_service: UserService = Depends(get_user_service),
) -> ProfileResponse:
    """
    Update the authenticated user's profile.

    **Headers:**
    - `Authorization`: Bearer {access_token}

    **Request Body:** any of `fullName`, `email`, `phone`, `address`, `dob`,
    `gender`, `bio`, `profileImage`. Omitted fields are left unchanged and
    `role` is ignored.
    """
    try:
        user = user_service.update_profile(current_user["id"], changes.model_dump(exclude_none=True))
    except EmailAlreadyRegistered:
        raise ApiError(status.HTTP_409_CONFLICT, "Email is already used by another account.", key="message")

    if not user:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found.", key="message")

    logger.info(f"Profile saved for {user['email']}")
    return ProfileResponse(message="Profile updated successfully.", user=UserProfile.from_user(user))
