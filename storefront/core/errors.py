"""
API error type and exception handlers.

Each route family reports failures under the key its front end reads:
``msg`` for the password-reset pages, ``message`` for the profile pages
and ``error`` for the seller dashboard.
"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class ApiError(Exception):
    """A business error surfaced verbatim to the caller."""

    def __init__(self, status_code: int, message: str, key: str = "msg", headers: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.key = key
        self.headers = headers

    def to_body(self) -> dict:
        return {"success": False, self.key: self.message}


def _validation_summary(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the storefront error handlers to the app."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        summary = _validation_summary(exc)
        logger.info(f"{request.method} {request.url.path} -> 422: {summary}")
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "msg": summary,
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "msg": "Internal server error"},
        )
