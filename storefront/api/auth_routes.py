"""
Authentication routes - register, login and current user.
"""

from fastapi import APIRouter, HTTPException, status, Depends
from loguru import logger
from storefront.models.schemas import UserRegister, UserLogin, TokenResponse, UserProfile
from storefront.services.auth import AuthService, get_auth_service
from storefront.services.user import UserService, get_user_service
from storefront.middleware.auth import get_current_user


router = APIRouter(prefix="/api/auth", tags=["authentication"])


def _token_response(user: dict, auth_service: AuthService) -> TokenResponse:
    access_token = auth_service.create_access_token({"sub": str(user["id"]), "role": user.get("role")})
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=auth_service.expires_in,
        user=UserProfile.from_user(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    user_service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Register a new user.

    **Request Body:**
    - `email`: User's email address (required, unique)
    - `password`: Password (required, minimum 8 characters)
    - `fullName`: Optional full name
    - `role`: `user` (default) or `seller`
    """
    logger.info(f"REGISTER endpoint called - Email: {user_data.email}, Role: {user_data.role}")

    user = user_service.create_user(
        email=user_data.email,
        password=user_data.password,
        full_name=user_data.full_name,
        role=user_data.role,
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    return _token_response(user, auth_service)


@router.post("/login", response_model=TokenResponse)
def login(
    credentials: UserLogin,
    user_service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Login with email and password."""
    user = user_service.authenticate_user(credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"User logged in: {user['email']}")
    return _token_response(user, auth_service)


@router.get("/me", response_model=UserProfile)
def get_me(current_user: dict = Depends(get_current_user)) -> UserProfile:
    """Get the authenticated user's profile."""
    return UserProfile.from_user(current_user)
