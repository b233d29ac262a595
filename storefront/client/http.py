"""
Shared HTTP plumbing for the storefront clients.

Every call ends in one of four outcomes: the server accepted it, the
server rejected it with a message, no response arrived, or it was
blocked locally before any request was made.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence

import httpx
from loguru import logger

from storefront.client.session import ClientSession
from storefront.core.config import settings

SERVER_ERROR_MESSAGE = "Server error. Try again later."


class Outcome(str, Enum):
    SUCCESS = "success"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"
    BLOCKED = "blocked"


@dataclass
class StepResult:
    outcome: Outcome
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @classmethod
    def blocked(cls, message: str) -> "StepResult":
        return cls(Outcome.BLOCKED, message)


def error_message(data: Dict[str, Any], keys: Sequence[str], fallback: str) -> str:
    """Pick the first string message the server sent under one of ``keys``."""
    for key in (*keys, "detail"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return fallback


class ApiClient:
    """Base client owning (or borrowing) an ``httpx.Client``."""

    error_keys: Sequence[str] = ("msg", "message", "error")

    def __init__(
        self,
        base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        session: Optional[ClientSession] = None,
        timeout: float = 30.0,
    ):
        self._owns_http = http is None
        self.http = http or httpx.Client(base_url=base_url or settings.BACKEND_API_URL, timeout=timeout)
        self.session = session or ClientSession()

    def close(self):
        if self._owns_http:
            self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _auth_headers(self) -> Dict[str, str]:
        token = self.session.read_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _call(
        self,
        method: str,
        path: str,
        fallback: str,
        success_message: str = "",
        authenticated: bool = False,
        **kwargs,
    ) -> StepResult:
        headers = kwargs.pop("headers", {})
        if authenticated:
            headers.update(self._auth_headers())

        try:
            response = self.http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed without a response: {e}")
            return StepResult(Outcome.TRANSPORT_ERROR, SERVER_ERROR_MESSAGE)

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {"items": data}

        if response.is_success:
            return StepResult(Outcome.SUCCESS, success_message, data, response.status_code)

        message = error_message(data, self.error_keys, fallback)
        return StepResult(Outcome.REJECTED, message, data, response.status_code)
