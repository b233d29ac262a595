"""
Client side of the password reset protocol.

    Idle -> OtpRequested -> OtpVerified -> PasswordConfirmed

Any failed step reports ``Error`` until the next successful step; the
flow keeps its progress, so retrying picks up where it stopped. The
reset session (email and verified code) travels between pages in the
URL query string, see ``from_location``.
"""

import math
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
from urllib.parse import parse_qs, urlencode, urlsplit

from loguru import logger

from storefront.client.http import ApiClient, Outcome, StepResult
from storefront.utils.password_policy import check_new_password

RESEND_COOLDOWN_SECONDS = 60
OTP_DIGITS = 6
VERIFY_REDIRECT_DELAY = 1.2
LOGIN_REDIRECT_DELAY = 1.5

OTP_PAGE = "/reset-password/otp"
CONFIRM_PAGE = "/reset-password/confirm"
LOGIN_PAGE = "/login"


class ResetState(str, Enum):
    IDLE = "idle"
    OTP_REQUESTED = "otp_requested"
    OTP_VERIFIED = "otp_verified"
    PASSWORD_CONFIRMED = "password_confirmed"
    ERROR = "error"


@dataclass(frozen=True)
class Redirect:
    location: str
    delay: float


class ResendCooldown:
    """Whole-second countdown before another code may be requested."""

    def __init__(self, seconds: int = RESEND_COOLDOWN_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.seconds = seconds
        self.clock = clock
        self._ends_at: Optional[float] = None

    def start(self):
        self._ends_at = self.clock() + self.seconds

    def cancel(self):
        self._ends_at = None

    @property
    def remaining(self) -> int:
        if self._ends_at is None:
            return 0
        return max(0, math.ceil(self._ends_at - self.clock()))

    @property
    def active(self) -> bool:
        return self.remaining > 0


def digits_only(raw: Optional[str]) -> str:
    return re.sub(r"\D", "", raw or "")


class ResetPasswordFlow(ApiClient):
    """Drives request, verify and confirm against the reset endpoints."""

    REQUEST_PATH = "/api/auth/reset-password/request"
    VERIFY_PATH = "/api/auth/reset-password/verify"
    CONFIRM_PATH = "/api/auth/reset-password/confirm"

    error_keys = ("msg",)

    def __init__(
        self,
        email: Optional[str] = None,
        otp: str = "",
        phase: ResetState = ResetState.IDLE,
        cooldown: Optional[ResendCooldown] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.email = email
        self.otp = otp
        self.cooldown = cooldown or ResendCooldown()
        self.message = ""
        self.error: Optional[str] = None
        self.busy = False
        self.redirect: Optional[Redirect] = None
        self._phase = phase

    @classmethod
    def from_location(cls, location: str, **kwargs) -> "ResetPasswordFlow":
        """
        Resume a flow from a page URL.

        ``?email=`` lands on the OTP page (a code was just sent, so the
        resend countdown starts); ``?email=&otp=`` lands on the confirm page.
        """
        query = parse_qs(urlsplit(location).query)
        email = query.get("email", [None])[0]
        otp = digits_only(query.get("otp", [""])[0])

        if email and otp:
            return cls(email=email, otp=otp, phase=ResetState.OTP_VERIFIED, **kwargs)
        if email:
            flow = cls(email=email, phase=ResetState.OTP_REQUESTED, **kwargs)
            flow.cooldown.start()
            return flow
        return cls(**kwargs)

    @property
    def phase(self) -> ResetState:
        return self._phase

    @property
    def state(self) -> ResetState:
        return ResetState.ERROR if self.error else self._phase

    @property
    def can_resend(self) -> bool:
        return self._phase is ResetState.OTP_REQUESTED and not self.cooldown.active and not self.busy

    def otp_location(self) -> str:
        return f"{OTP_PAGE}?{urlencode({'email': self.email})}"

    def confirm_location(self) -> str:
        return f"{CONFIRM_PAGE}?{urlencode({'email': self.email, 'otp': self.otp})}"

    def request(self, email: Optional[str] = None) -> StepResult:
        """Ask the server to email a code, starting the resend countdown on success."""
        if email is not None:
            self.email = email.strip()
        if not self.email or "@" not in self.email:
            return self._finish(StepResult.blocked("Please enter a valid email address."))
        if self._phase in (ResetState.OTP_VERIFIED, ResetState.PASSWORD_CONFIRMED):
            return self._finish(StepResult.blocked("A code has already been verified for this reset."))
        if self.cooldown.active:
            return self._finish(StepResult.blocked(f"Resend OTP in {self.cooldown.remaining}s"))

        result = self._post(
            self.REQUEST_PATH,
            {"email": self.email},
            fallback="Failed to send OTP.",
            success_message="OTP sent! Please check your inbox and, if necessary, your Spam/Junk folder.",
        )
        if result.ok:
            self.cooldown.start()
            self.redirect = Redirect(self.otp_location(), 0)
        return self._finish(result, ResetState.OTP_REQUESTED)

    def resend(self) -> StepResult:
        """Request a new code; disabled until the countdown reaches zero."""
        if self._phase is not ResetState.OTP_REQUESTED:
            return self._finish(StepResult.blocked("Request an OTP first."))
        if self.cooldown.active:
            return self._finish(StepResult.blocked(f"Resend OTP in {self.cooldown.remaining}s"))

        result = self._post(
            self.REQUEST_PATH,
            {"email": self.email},
            fallback="Failed to resend OTP.",
            success_message="OTP resent! Please check your inbox and, if necessary, your Spam/Junk folder.",
        )
        if result.ok:
            self.cooldown.start()
        return self._finish(result)

    def verify(self, otp: str) -> StepResult:
        """Check the emailed code; on success the confirm page URL carries it forward."""
        if self._phase is not ResetState.OTP_REQUESTED:
            return self._finish(StepResult.blocked("Request an OTP first."))

        code = digits_only(otp)[:OTP_DIGITS]
        self.otp = code
        if len(code) != OTP_DIGITS:
            return self._finish(StepResult.blocked(f"Enter the {OTP_DIGITS}-digit OTP."))

        result = self._post(
            self.VERIFY_PATH,
            {"email": self.email, "otp": code},
            fallback="Invalid or expired OTP.",
            success_message="OTP verified! Redirecting...",
        )
        if result.ok:
            self.redirect = Redirect(self.confirm_location(), VERIFY_REDIRECT_DELAY)
        return self._finish(result, ResetState.OTP_VERIFIED)

    def confirm(self, new_password: str, confirm_password: str) -> StepResult:
        """Set the new password; checked locally before anything is sent."""
        if self._phase is not ResetState.OTP_VERIFIED:
            return self._finish(StepResult.blocked("Verify your OTP first."))

        problem = check_new_password(new_password, confirm_password)
        if problem:
            return self._finish(StepResult.blocked(problem))

        result = self._post(
            self.CONFIRM_PATH,
            {"email": self.email, "otp": self.otp, "newPassword": new_password},
            fallback="Reset failed.",
            success_message="Password reset successful! Redirecting to login...",
        )
        if result.ok:
            self.cooldown.cancel()
            self.redirect = Redirect(LOGIN_PAGE, LOGIN_REDIRECT_DELAY)
        return self._finish(result, ResetState.PASSWORD_CONFIRMED)

    def close(self):
        self.cooldown.cancel()
        super().close()

    def _post(self, path: str, body: dict, fallback: str, success_message: str) -> StepResult:
        self.busy = True
        self.message = ""
        try:
            return self._call("POST", path, fallback=fallback, success_message=success_message, json=body)
        finally:
            self.busy = False

    def _finish(self, result: StepResult, next_phase: Optional[ResetState] = None) -> StepResult:
        self.message = result.message
        if result.ok:
            self.error = None
            if next_phase is not None:
                self._phase = next_phase
        else:
            self.error = result.message
            if result.outcome is not Outcome.BLOCKED:
                logger.info(f"Reset step failed for {self.email}: {result.outcome.value} - {result.message}")
        return result
