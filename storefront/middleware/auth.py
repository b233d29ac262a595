"""
Authentication middleware - JWT verification and user extraction.

Failures are raised as ``ApiError`` under the body key the calling page
reads: ``detail`` for the account routes, ``message`` for the profile
page and ``error`` for the seller dashboard.
"""

from typing import Callable, Optional

from fastapi import Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from loguru import logger
from storefront.core.errors import ApiError
from storefront.services.auth import AuthService, get_auth_service
from storefront.services.user import UserService, get_user_service


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def current_user_dependency(error_key: str = "detail") -> Callable[..., dict]:
    """
    Build a dependency that returns the authenticated user.

    Raises 401 if the token is missing or invalid, 403 if the account is inactive.

    Usage in routes:
        @router.get("/protected")
        def protected_route(current_user: dict = Depends(get_current_user)):
            user_id = current_user["id"]
            ...
    """

    def dependency(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        auth_service: AuthService = Depends(get_auth_service),
        user_service: UserService = Depends(get_user_service),
    ) -> dict:
        if credentials is None:
            raise ApiError(status.HTTP_401_UNAUTHORIZED, "Not authenticated", error_key, _BEARER_CHALLENGE)

        user_id = auth_service.decode_token_user_id(credentials.credentials)
        if not user_id:
            logger.warning("Invalid or expired token")
            raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid or expired token", error_key, _BEARER_CHALLENGE)

        user = user_service.get_user_by_id(user_id)
        if not user:
            logger.warning(f"User not found for token: {user_id}")
            raise ApiError(status.HTTP_401_UNAUTHORIZED, "User not found", error_key, _BEARER_CHALLENGE)

        if not user.get("is_active"):
            logger.warning(f"Inactive user attempted access: {user_id}")
            raise ApiError(status.HTTP_403_FORBIDDEN, "User account is inactive", error_key)

        user.pop("password_hash", None)
        return user

    return dependency


get_current_user = current_user_dependency()
get_profile_user = current_user_dependency("message")
_get_dashboard_user = current_user_dependency("error")


def get_current_seller(current_user: dict = Depends(_get_dashboard_user)) -> dict:
    """Like get_current_user, but only for accounts with the seller role."""
    if current_user.get("role") != "seller":
        logger.warning(f"Non-seller {current_user['id']} attempted a seller operation")
        raise ApiError(status.HTTP_403_FORBIDDEN, "Seller account required", key="error")
    return current_user
