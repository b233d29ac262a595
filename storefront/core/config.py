"""
Configuration settings for the Storefront API.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file in project root
PROJECT_ROOT = Path(__file__).parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Server
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    STORE_NAME: str = "UrbanTales"

    # Database: DATABASE_URL wins, then the DB_* parts (PostgreSQL), then a local SQLite file
    DATABASE_URL: str = ""
    DB_HOST: str = ""
    DB_PORT: int = 5432
    DB_NAME: str = "storefront"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_SSLMODE: str = "prefer"

    # Authentication / JWT
    JWT_SECRET_KEY: str = "your-secret-key-change-in-production"  # Should be in .env
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 12

    # Password reset codes
    OTP_LENGTH: int = 6
    OTP_TTL_SECONDS: int = 120
    OTP_MAX_VERIFY_ATTEMPTS: int = 5
    OTP_REQUEST_BUCKET_CAPACITY: int = 3
    OTP_REQUEST_REFILL_SECONDS: float = 60.0

    # Email: "smtp", "sendgrid" or "console"
    EMAIL_BACKEND: str = "console"
    MAIL_FROM: str = "no-reply@urbantales.shop"
    MAIL_FROM_NAME: str = "UrbanTales Seller"
    SENDGRID_API_KEY: str = ""
    SENDGRID_API_URL: str = "https://api.sendgrid.com/v3/mail/send"
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/backend.log"

    # Client base URL (the browser build reads VITE_BACKEND_API_URL)
    BACKEND_API_URL: str = "http://localhost:8000"

    @property
    def database_url(self) -> str:
        """Build database connection URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_HOST:
            from urllib.parse import quote
            password = quote(self.DB_PASSWORD, safe='')
            return f"postgresql://{self.DB_USER}:{password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        return f"sqlite:///{PROJECT_ROOT / 'storefront.db'}"


# Create settings instance
settings = Settings()

# Ensure logs directory exists
os.makedirs(os.path.dirname(settings.LOG_FILE) or ".", exist_ok=True)
