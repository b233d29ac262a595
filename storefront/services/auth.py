"""
Authentication service - JWT token generation and password hashing.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from loguru import logger
from storefront.core.config import settings
import hashlib
import base64
import bcrypt


class AuthService:
    """Handles authentication operations."""

    def __init__(self):
        """Initialize authentication service."""
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.access_token_expire = timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
        self.rounds = settings.BCRYPT_ROUNDS

    def _normalize_password(self, password: str) -> bytes:
        """
        Normalize password to work with bcrypt's 72-byte limit.
        Uses SHA256 pre-hashing for long passwords.
        """
        password_bytes = password.encode('utf-8')
        if len(password_bytes) > 72:
            sha_hash = hashlib.sha256(password_bytes).digest()
            return base64.b64encode(sha_hash)
        return password_bytes

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        hashed = bcrypt.hashpw(self._normalize_password(password), bcrypt.gensalt(rounds=self.rounds))
        return hashed.decode('utf-8')

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its bcrypt hash."""
        try:
            return bcrypt.checkpw(self._normalize_password(plain_password), hashed_password.encode('utf-8'))
        except ValueError as e:
            logger.error(f"Password verification error: {e}")
            return False

    def create_access_token(self, data: Dict[str, Any]) -> str:
        """
        Create a JWT access token.

        Args:
            data: Payload to encode (should include 'sub' for user_id)

        Returns:
            Encoded JWT token
        """
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        to_encode.update({
            "iat": now,
            "exp": now + self.access_token_expire,
            "type": "access"
        })
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
        """
        Verify and decode a JWT token.

        Expiry is enforced by ``jwt.decode``.

        Returns:
            Decoded payload if valid, None otherwise
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"JWT verification error: {e}")
            return None

        if payload.get("type") != token_type:
            logger.warning(f"Invalid token type. Expected {token_type}, got {payload.get('type')}")
            return None
        return payload

    def decode_token_user_id(self, token: str) -> Optional[str]:
        """Extract user_id from a valid access token."""
        payload = self.verify_token(token, token_type="access")
        if payload:
            return payload.get("sub")
        return None

    @property
    def expires_in(self) -> int:
        return int(self.access_token_expire.total_seconds())


# Singleton instance
_auth_service = None


def get_auth_service() -> AuthService:
    """Get or create authentication service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
        logger.info("Authentication service initialized")
    return _auth_service
