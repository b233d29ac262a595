"""
Health check and utility routes.
"""

from fastapi import APIRouter
from datetime import datetime
from storefront.core.config import settings
from storefront.services.database import get_database
from storefront.models.schemas import HealthResponse

router = APIRouter(tags=["health"])

API_VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse, summary="Health check endpoint")
def health_check() -> HealthResponse:
    """
    Check the health status of the backend service and its dependencies.

    **Response:**
    - `status`: "healthy" or "degraded"
    - `database_connected`: Database connection status
    - `email_backend`: Configured email backend
    """
    db_connected = get_database().test_connection()
    return HealthResponse(
        status="healthy" if db_connected else "degraded",
        version=API_VERSION,
        database_connected=db_connected,
        email_backend=settings.EMAIL_BACKEND,
        timestamp=datetime.now()
    )


@router.get("/config", summary="Get API configuration")
async def get_config():
    """Get current API configuration (safe values only)."""
    return {
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
        "store_name": settings.STORE_NAME,
        "server": {
            "host": settings.SERVER_HOST,
            "port": settings.SERVER_PORT
        },
        "password_reset": {
            "otp_length": settings.OTP_LENGTH,
            "otp_ttl_seconds": settings.OTP_TTL_SECONDS,
            "max_verify_attempts": settings.OTP_MAX_VERIFY_ATTEMPTS,
            "request_bucket_capacity": settings.OTP_REQUEST_BUCKET_CAPACITY,
            "request_refill_seconds": settings.OTP_REQUEST_REFILL_SECONDS
        },
        "uploads": {
            "max_bytes": settings.MAX_UPLOAD_BYTES
        }
    }
