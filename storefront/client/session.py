"""
Client-side session: the cached user profile and bearer token.

Replaces the browser's global ``localStorage``. A session is created once
and handed to each client explicitly. Pass ``path`` to persist it as JSON
between runs.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from loguru import logger


class ClientSession:
    """Holds the signed-in user and token with explicit read/write/clear."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._user: Optional[Dict[str, Any]] = None
        self._token: Optional[str] = None
        if self.path and self.path.exists():
            self._load()

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def read_user(self) -> Optional[Dict[str, Any]]:
        return dict(self._user) if self._user is not None else None

    def write_user(self, user: Dict[str, Any]):
        self._user = dict(user)
        self._save()

    def read_token(self) -> Optional[str]:
        return self._token

    def write_token(self, token: str):
        self._token = token
        self._save()

    def clear(self):
        self._user = None
        self._token = None
        if self.path and self.path.exists():
            self.path.unlink()

    def _load(self):
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return
        self._user = data.get("user")
        self._token = data.get("token")

    def _save(self):
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"user": self._user, "token": self._token}),
            encoding="utf-8",
        )
