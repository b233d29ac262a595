import hmac
import secrets
import string
import time
from enum import Enum
from hashlib import sha256
from typing import Callable, Optional

from sqlalchemy import text
from loguru import logger

from storefront.core.config import settings
from storefront.services.auth import AuthService, get_auth_service
from storefront.services.database import DatabaseService, get_database
from storefront.services.user import normalize_email


class OtpStatus(str, Enum):
    VALID = "valid"
    MISSING = "missing"
    INVALID = "invalid"
    EXPIRED = "expired"
    CONSUMED = "consumed"
    LOCKED = "locked"
    NOT_VERIFIED = "not_verified"


class OTPService:
    """
    Issues, verifies and consumes password-reset codes.

    One record per email: issuing upserts over any previous code. Verify
    marks the record verified without consuming it; confirm requires that
    mark, consumes the record and changes the password in one transaction.
    """

    def __init__(
        self,
        db: Optional[DatabaseService] = None,
        auth: Optional[AuthService] = None,
        clock: Callable[[], float] = time.time,
        ttl_seconds: Optional[int] = None,
        max_attempts: Optional[int] = None,
        length: Optional[int] = None,
    ):
        self.db = db or get_database()
        self.auth = auth or get_auth_service()
        self.clock = clock
        self.ttl_seconds = ttl_seconds or settings.OTP_TTL_SECONDS
        self.max_attempts = max_attempts or settings.OTP_MAX_VERIFY_ATTEMPTS
        self.length = length or settings.OTP_LENGTH

    def generate_otp(self) -> str:
        return ''.join(secrets.choice(string.digits) for _ in range(self.length))

    def hash_otp(self, email: str, otp: str) -> str:
        normalized = f"{normalize_email(email)}:{otp.strip()}".encode("utf-8")
        return hmac.new(settings.JWT_SECRET_KEY.encode("utf-8"), normalized, sha256).hexdigest()

    def issue(self, email: str) -> str:
        """Store a fresh code for ``email``, replacing any earlier one, and return it."""
        email = normalize_email(email)
        otp = self.generate_otp()
        now = self.clock()
        with self.db.get_session() as session:
            session.execute(
                text("""
                INSERT INTO password_reset_otps (email, otp_hash, issued_at, expires_at, verified_at, attempts, consumed)
                VALUES (:email, :otp_hash, :issued_at, :expires_at, NULL, 0, :consumed)
                ON CONFLICT (email) DO UPDATE SET
                    otp_hash = EXCLUDED.otp_hash,
                    issued_at = EXCLUDED.issued_at,
                    expires_at = EXCLUDED.expires_at,
                    verified_at = NULL,
                    attempts = 0,
                    consumed = EXCLUDED.consumed
                """),
                {
                    "email": email,
                    "otp_hash": self.hash_otp(email, otp),
                    "issued_at": now,
                    "expires_at": now + self.ttl_seconds,
                    "consumed": False,
                }
            )
            session.commit()
        logger.info(f"Reset OTP issued for {email}, valid for {self.ttl_seconds}s")
        return otp

    def verify(self, email: str, otp: str) -> OtpStatus:
        """Check a code and mark the record verified when it matches."""
        email = normalize_email(email)
        with self.db.get_session() as session:
            record = self._load(session, email)
            status = self._check(record, email, otp)
            if status is OtpStatus.INVALID:
                status = self._register_failure(session, email, record)
            elif status is OtpStatus.VALID and record["verified_at"] is None:
                session.execute(
                    text("UPDATE password_reset_otps SET verified_at = :now WHERE email = :email"),
                    {"now": self.clock(), "email": email}
                )
            session.commit()
        logger.info(f"Reset OTP verify for {email}: {status.value}")
        return status

    def confirm(self, email: str, otp: str, new_password: str) -> OtpStatus:
        """Re-validate a verified code, then consume it and set the new password."""
        email = normalize_email(email)
        with self.db.get_session() as session:
            record = self._load(session, email)
            status = self._check(record, email, otp)
            if status is OtpStatus.INVALID:
                status = self._register_failure(session, email, record)
                session.commit()
            elif status is OtpStatus.VALID and record["verified_at"] is None:
                status = OtpStatus.NOT_VERIFIED
            elif status is OtpStatus.VALID:
                status = self._consume_and_update(session, email, new_password)

        logger.info(f"Password reset confirm for {email}: {status.value}")
        return status

    def _load(self, session, email: str) -> Optional[dict]:
        row = session.execute(
            text("""
            SELECT email, otp_hash, issued_at, expires_at, verified_at, attempts, consumed
            FROM password_reset_otps WHERE email = :email
            """),
            {"email": email}
        ).fetchone()
        return dict(row._mapping) if row else None

    def _check(self, record: Optional[dict], email: str, otp: str) -> OtpStatus:
        if record is None:
            return OtpStatus.MISSING
        if record["consumed"]:
            return OtpStatus.CONSUMED
        if record["expires_at"] <= self.clock():
            return OtpStatus.EXPIRED
        if not hmac.compare_digest(record["otp_hash"], self.hash_otp(email, otp or "")):
            return OtpStatus.INVALID
        return OtpStatus.VALID

    def _register_failure(self, session, email: str, record: dict) -> OtpStatus:
        attempts = record["attempts"] + 1
        locked = attempts >= self.max_attempts
        session.execute(
            text("UPDATE password_reset_otps SET attempts = :attempts, consumed = :consumed WHERE email = :email"),
            {"attempts": attempts, "consumed": locked, "email": email}
        )
        if locked:
            logger.warning(f"Reset OTP for {email} invalidated after {attempts} wrong attempts")
            return OtpStatus.LOCKED
        return OtpStatus.INVALID

    def _consume_and_update(self, session, email: str, new_password: str) -> OtpStatus:
        consumed = session.execute(
            text("UPDATE password_reset_otps SET consumed = :consumed WHERE email = :email AND consumed = :not_consumed"),
            {"consumed": True, "not_consumed": False, "email": email}
        )
        if consumed.rowcount != 1:
            session.rollback()
            return OtpStatus.CONSUMED

        updated = session.execute(
            text("UPDATE users SET password_hash = :password_hash WHERE email = :email"),
            {"password_hash": self.auth.hash_password(new_password), "email": email}
        )
        if updated.rowcount != 1:
            session.rollback()
            logger.warning(f"Password reset for {email} found no user to update")
            return OtpStatus.MISSING

        session.commit()
        return OtpStatus.VALID


_otp_service = None


def get_otp_service() -> OTPService:
    """Get or create the OTP service."""
    global _otp_service
    if _otp_service is None:
        _otp_service = OTPService()
    return _otp_service
