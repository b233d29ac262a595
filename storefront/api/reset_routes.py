"""
Password reset routes - request, verify and confirm a one-time code.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from loguru import logger

from storefront.core.errors import ApiError
from storefront.models.otp_schemas import (
    ResetConfirmRequest,
    ResetRequest,
    ResetResponse,
    ResetVerifyRequest,
)
from storefront.services.otp import OTPService, OtpStatus, get_otp_service
from storefront.services.throttle import RequestThrottle, get_request_throttle
from storefront.services.user import UserService, get_user_service, normalize_email
from storefront.utils.mailer import Mailer, get_mailer
from storefront.utils.password_policy import check_new_password

router = APIRouter(prefix="/api/auth/reset-password", tags=["password reset"])

INVALID_OTP_MESSAGE = "Invalid or expired OTP."

_FAILURE_MESSAGES = {
    OtpStatus.LOCKED: "Too many incorrect attempts. Please request a new OTP.",
    OtpStatus.NOT_VERIFIED: "Please verify the OTP before setting a new password.",
}


def _reject(otp_status: OtpStatus) -> ApiError:
    message = _FAILURE_MESSAGES.get(otp_status, INVALID_OTP_MESSAGE)
    return ApiError(status.HTTP_400_BAD_REQUEST, message)


@router.post("/request", response_model=ResetResponse)
def request_reset(
    request: ResetRequest,
    background_tasks: BackgroundTasks,
    otp_service: OTPService = Depends(get_otp_service),
    user_service: UserService = Depends(get_user_service),
    throttle: RequestThrottle = Depends(get_request_throttle),
    mailer: Mailer = Depends(get_mailer),
) -> ResetResponse:
    """
    Send a password reset OTP.

    Replaces any code previously sent to the same address. Requests are
    rate limited per email address.
    """
    email = normalize_email(request.email)

    user = user_service.get_user_by_email(email)
    if not user or not user.get("is_active"):
        raise ApiError(status.HTTP_404_NOT_FOUND, "No account found with this email.")

    if not throttle.allow(email):
        wait = throttle.retry_after(email)
        raise ApiError(
            status.HTTP_429_TOO_MANY_REQUESTS,
            f"Too many OTP requests. Please try again in {wait} seconds.",
        )

    otp = otp_service.issue(email)
    background_tasks.add_task(mailer.send_reset_otp, email, otp)

    logger.info(f"Password reset requested for {email}")
    return ResetResponse(msg="OTP sent to your email.")


@router.post("/verify", response_model=ResetResponse)
def verify_reset(
    request: ResetVerifyRequest,
    otp_service: OTPService = Depends(get_otp_service),
) -> ResetResponse:
    """Check an OTP without consuming it."""
    result = otp_service.verify(request.email, request.otp)
    if result is not OtpStatus.VALID:
        raise _reject(result)
    return ResetResponse(msg="OTP verified.")


@router.post("/confirm", response_model=ResetResponse)
def confirm_reset(
    request: ResetConfirmRequest,
    otp_service: OTPService = Depends(get_otp_service),
) -> ResetResponse:
    """
    Set a new password.

    The verified OTP is submitted again and re-validated here; a
    successful reset consumes it.
    """
    problem = check_new_password(request.new_password)
    if problem:
        raise ApiError(status.HTTP_400_BAD_REQUEST, problem)

    result = otp_service.confirm(request.email, request.otp, request.new_password)
    if result is not OtpStatus.VALID:
        raise _reject(result)
    return ResetResponse(msg="Password reset successful.")
