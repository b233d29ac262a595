"""
Database connection and schema service.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from contextlib import contextmanager
from typing import Optional
from loguru import logger
from storefront.core.config import settings


# Portable DDL (PostgreSQL and SQLite). Timestamps on OTP records are epoch
# seconds, everything else stores ISO-8601 strings.
SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id VARCHAR(36) PRIMARY KEY,
        email VARCHAR(255) NOT NULL UNIQUE,
        password_hash VARCHAR(255) NOT NULL,
        full_name VARCHAR(255),
        phone VARCHAR(32),
        address TEXT,
        dob VARCHAR(32),
        gender VARCHAR(32),
        role VARCHAR(32) NOT NULL DEFAULT 'user',
        bio TEXT,
        profile_image TEXT,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at VARCHAR(40) NOT NULL,
        updated_at VARCHAR(40) NOT NULL,
        last_login VARCHAR(40)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS password_reset_otps (
        email VARCHAR(255) PRIMARY KEY,
        otp_hash VARCHAR(64) NOT NULL,
        issued_at DOUBLE PRECISION NOT NULL,
        expires_at DOUBLE PRECISION NOT NULL,
        verified_at DOUBLE PRECISION,
        attempts INTEGER NOT NULL DEFAULT 0,
        consumed BOOLEAN NOT NULL DEFAULT FALSE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS products (
        id VARCHAR(36) PRIMARY KEY,
        seller_id VARCHAR(36) NOT NULL,
        name VARCHAR(255) NOT NULL,
        category VARCHAR(64) NOT NULL,
        description TEXT,
        stock INTEGER NOT NULL,
        price DOUBLE PRECISION NOT NULL,
        image TEXT,
        images TEXT NOT NULL,
        videos TEXT NOT NULL,
        delivery VARCHAR(255),
        media_order TEXT NOT NULL,
        created_at VARCHAR(40) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_products_seller_id ON products (seller_id)",
)

TABLES = ("products", "password_reset_otps", "users")


class DatabaseService:
    """Handles database connections and schema setup."""

    def __init__(self, url: Optional[str] = None):
        """Initialize database connection."""
        self.url = url or settings.database_url
        self.engine = None
        self.SessionLocal = None
        self._init_connection()

    def _init_connection(self):
        """Initialize the database engine."""
        try:
            if self.url.startswith("sqlite"):
                # Sync routes run on threadpool workers, not the creating thread
                self.engine = create_engine(
                    self.url,
                    connect_args={"check_same_thread": False},
                    echo=False,
                )
            else:
                self.engine = create_engine(
                    self.url,
                    connect_args={
                        "sslmode": settings.DB_SSLMODE,
                        "connect_timeout": 10
                    },
                    echo=False,
                    pool_pre_ping=True,
                    pool_size=5,
                    max_overflow=10
                )
            self.SessionLocal = sessionmaker(bind=self.engine)
            logger.info(f"Database connection initialized: {self.engine.url.render_as_string(hide_password=True)}")
        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

    @contextmanager
    def get_session(self):
        """Context manager for database sessions."""
        session = self.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    def init_schema(self):
        """Create the storefront tables if they do not exist."""
        with self.get_session() as session:
            for statement in SCHEMA_STATEMENTS:
                session.execute(text(statement))
            session.commit()
        logger.info("Database schema ready")

    def truncate_all(self):
        """Delete every row from the storefront tables."""
        with self.get_session() as session:
            for table in TABLES:
                session.execute(text(f"DELETE FROM {table}"))
            session.commit()

    def test_connection(self) -> bool:
        """Test if the database connection is working."""
        try:
            with self.get_session() as session:
                result = session.execute(text("SELECT 1"))
                return result.fetchone() is not None
        except Exception as e:
            logger.error(f"Database connection test failed: {e}")
            return False


# Global database instance
_db_instance: Optional[DatabaseService] = None


def get_database() -> DatabaseService:
    """Get or create the global database service instance."""
    global _db_instance
    if _db_instance is None:
        _db_instance = DatabaseService()
    return _db_instance
