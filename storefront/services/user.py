"""
User service - account and profile database operations.
"""

import uuid
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from sqlalchemy import text
from loguru import logger
from storefront.services.database import DatabaseService, get_database
from storefront.services.auth import AuthService, get_auth_service

PROFILE_COLUMNS = ("full_name", "email", "phone", "address", "dob", "gender", "bio", "profile_image")
ROLES = ("user", "seller")

_SELECT_USER = """
    SELECT id, email, password_hash, full_name, phone, address, dob, gender,
           role, bio, profile_image, is_active, created_at, updated_at, last_login
    FROM users
"""


class EmailAlreadyRegistered(Exception):
    """Raised when an email belongs to another account."""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_user(row) -> Dict[str, Any]:
    user = dict(row._mapping)
    user["is_active"] = bool(user.get("is_active"))
    return user


class UserService:
    """Handles user-related database operations."""

    def __init__(self, db: Optional[DatabaseService] = None, auth: Optional[AuthService] = None):
        self.db = db or get_database()
        self.auth = auth or get_auth_service()

    def create_user(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        role: str = "user",
    ) -> Optional[Dict[str, Any]]:
        """
        Create a new user.

        Returns:
            User data if created, None when the email is already registered
        """
        email = normalize_email(email)
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")

        with self.db.get_session() as session:
            existing = session.execute(
                text("SELECT id FROM users WHERE email = :email"),
                {"email": email}
            ).fetchone()
            if existing:
                logger.warning(f"User already exists with email: {email}")
                return None

            now = _now_iso()
            user_id = str(uuid.uuid4())
            session.execute(
                text("""
                INSERT INTO users (id, email, password_hash, full_name, role, is_active, created_at, updated_at)
                VALUES (:id, :email, :password_hash, :full_name, :role, :is_active, :created_at, :updated_at)
                """),
                {
                    "id": user_id,
                    "email": email,
                    "password_hash": self.auth.hash_password(password),
                    "full_name": full_name or "",
                    "role": role,
                    "is_active": True,
                    "created_at": now,
                    "updated_at": now,
                }
            )
            session.commit()

        logger.info(f"User created: {email} ({role})")
        return self.get_user_by_id(user_id)

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Get user by email address."""
        with self.db.get_session() as session:
            row = session.execute(
                text(_SELECT_USER + " WHERE email = :email"),
                {"email": normalize_email(email)}
            ).fetchone()
            return _row_to_user(row) if row else None

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get user by ID."""
        with self.db.get_session() as session:
            row = session.execute(
                text(_SELECT_USER + " WHERE id = :user_id"),
                {"user_id": user_id}
            ).fetchone()
            return _row_to_user(row) if row else None

    def authenticate_user(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Authenticate a user with email and password.

        Returns:
            User data (without password_hash) if authenticated, None otherwise
        """
        user = self.get_user_by_email(email)

        if not user:
            logger.warning(f"Authentication failed: User not found - {email}")
            return None

        if not user.get("is_active"):
            logger.warning(f"Authentication failed: User inactive - {email}")
            return None

        if not self.auth.verify_password(password, user["password_hash"]):
            logger.warning(f"Authentication failed: Invalid password - {email}")
            return None

        self.update_last_login(user["id"])
        user.pop("password_hash", None)
        logger.info(f"User authenticated successfully: {email}")
        return user

    def update_last_login(self, user_id: str):
        """Update user's last login timestamp."""
        with self.db.get_session() as session:
            session.execute(
                text("UPDATE users SET last_login = :last_login WHERE id = :user_id"),
                {"user_id": user_id, "last_login": _now_iso()}
            )
            session.commit()

    def update_profile(self, user_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Apply profile changes and return the updated user.

        Only the editable profile columns are written; anything else in
        ``changes`` is ignored.

        Raises:
            EmailAlreadyRegistered: the new email belongs to another account
        """
        updates = {key: value for key, value in changes.items() if key in PROFILE_COLUMNS}
        if "email" in updates:
            updates["email"] = normalize_email(updates["email"])

        if not updates:
            return self.get_user_by_id(user_id)

        with self.db.get_session() as session:
            if "email" in updates:
                clash = session.execute(
                    text("SELECT id FROM users WHERE email = :email AND id != :user_id"),
                    {"email": updates["email"], "user_id": user_id}
                ).fetchone()
                if clash:
                    raise EmailAlreadyRegistered(updates["email"])

            assignments = ", ".join(f"{column} = :{column}" for column in updates)
            session.execute(
                text(f"UPDATE users SET {assignments}, updated_at = :updated_at WHERE id = :user_id"),
                {**updates, "updated_at": _now_iso(), "user_id": user_id}
            )
            session.commit()

        logger.info(f"Profile updated for user {user_id}: {sorted(updates)}")
        return self.get_user_by_id(user_id)


# Singleton instance
_user_service = None


def get_user_service() -> UserService:
    """Get or create user service instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
