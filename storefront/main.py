"""
Main FastAPI application.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from loguru import logger
from pathlib import Path

from storefront.core.config import settings
from storefront.core.errors import register_exception_handlers
from storefront.core.logging import setup_logging
from storefront.services.database import get_database
from storefront.api.health import router as health_router, API_VERSION
from storefront.api.auth_routes import router as auth_router
from storefront.api.reset_routes import router as reset_router
from storefront.api.profile_routes import router as profile_router
from storefront.api.product_routes import router as product_router

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown.
    """
    logger.info("=" * 50)
    logger.info(f"Starting {settings.STORE_NAME} Storefront API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Email backend: {settings.EMAIL_BACKEND}")
    logger.info("=" * 50)

    get_database().init_schema()

    yield

    logger.info(f"Shutting down {settings.STORE_NAME} Storefront API")


app = FastAPI(
    title="Storefront Accounts API",
    description="Password reset, profile and seller product endpoints for the storefront",
    version=API_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router)
app.include_router(reset_router)
app.include_router(profile_router)
app.include_router(product_router)
app.include_router(health_router)

uploads_path = Path(settings.UPLOAD_DIR)
uploads_path.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(uploads_path)), name="uploads")


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to the {settings.STORE_NAME} Storefront API",
        "docs": "/api/docs",
        "version": API_VERSION
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
