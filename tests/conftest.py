"""
Shared fixtures.

The environment is pointed at a throwaway SQLite database and upload
directory before anything from ``storefront`` is imported, since settings
are read once at import time.
"""

import os
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="storefront-tests-"))
os.environ.update({
    "DATABASE_URL": f"sqlite:///{_TMP / 'test.db'}",
    "UPLOAD_DIR": str(_TMP / "uploads"),
    "LOG_FILE": str(_TMP / "logs" / "test.log"),
    "LOG_LEVEL": "DEBUG",
    "EMAIL_BACKEND": "console",
    "BCRYPT_ROUNDS": "4",
    "JWT_SECRET_KEY": "test-secret-key",
    "BACKEND_API_URL": "http://testserver",
})

import pytest
from fastapi.testclient import TestClient

from storefront.main import app
from storefront.services.database import get_database
from storefront.services.otp import OTPService, get_otp_service
from storefront.services.throttle import RequestThrottle, get_request_throttle
from storefront.utils.mailer import Mailer, get_mailer

STRONG_PASSWORD = "Sunrise@2024"


class FakeClock:
    """Manually advanced time source for code that takes a ``clock``."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingMailer(Mailer):
    """Console mailer that remembers every reset code it was asked to send."""

    def __init__(self):
        super().__init__("console")
        self.sent = []

    def send_reset_otp(self, to_email: str, otp: str) -> bool:
        self.sent.append((to_email, otp))
        return super().send_reset_otp(to_email, otp)

    def last_otp(self, email: str) -> str:
        return next(otp for to, otp in reversed(self.sent) if to == email)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db():
    database = get_database()
    database.init_schema()
    yield database
    database.truncate_all()


@pytest.fixture
def otp_service(db, clock):
    return OTPService(db=db, clock=clock)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def throttle(clock):
    return RequestThrottle(capacity=3, refill_seconds=60, clock=clock)


@pytest.fixture
def client(db, otp_service, mailer, throttle):
    app.dependency_overrides[get_otp_service] = lambda: otp_service
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_request_throttle] = lambda: throttle
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email="shopper@example.com", password=STRONG_PASSWORD, role="user", full_name="Asha Verma"):
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "fullName": full_name, "role": role},
    )
    assert response.status_code == 201, response.text
    return response.json()


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(client):
    return register(client)


@pytest.fixture
def seller(client):
    return register(client, email="seller@example.com", role="seller", full_name="Ravi Shop")
