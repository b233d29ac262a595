"""
Upload storage - saves multipart uploads to the local uploads directory.
"""

import re
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

from loguru import logger

from storefront.core.config import settings

ALLOWED_CONTENT_PREFIXES = ("image/", "video/")
CHUNK_SIZE = 1024 * 1024

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class UploadRejected(Exception):
    """Raised when an upload is not a storable media file."""


def safe_filename(filename: Optional[str]) -> str:
    name = Path(filename or "upload").name
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._")
    return cleaned or "upload"


class UploadStore:
    """Writes uploads under UPLOAD_DIR with a unique prefix."""

    def __init__(self, directory: Optional[str] = None, max_bytes: Optional[int] = None):
        self.directory = Path(directory or settings.UPLOAD_DIR)
        self.max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES

    def save(self, source: BinaryIO, filename: Optional[str], content_type: Optional[str]) -> str:
        """Store the file and return its name inside the uploads directory."""
        if not (content_type or "").startswith(ALLOWED_CONTENT_PREFIXES):
            raise UploadRejected("Only image and video uploads are allowed.")

        self.directory.mkdir(parents=True, exist_ok=True)
        stored_name = f"{uuid.uuid4().hex[:12]}_{safe_filename(filename)}"
        target = self.directory / stored_name

        try:
            size = self._copy(source, target)
        except Exception:
            target.unlink(missing_ok=True)
            raise

        logger.info(f"Stored upload {stored_name} ({size} bytes, {content_type})")
        return stored_name

    def _copy(self, source: BinaryIO, target: Path) -> int:
        """Write ``source`` to ``target`` in chunks, stopping once it passes ``max_bytes``."""
        size = 0
        with target.open("wb") as buffer:
            while True:
                chunk = source.read(CHUNK_SIZE)
                if not chunk:
                    return size
                size += len(chunk)
                if size > self.max_bytes:
                    raise UploadRejected(f"File is too large (limit {self.max_bytes // (1024 * 1024)} MB).")
                buffer.write(chunk)


_upload_store = None


def get_upload_store() -> UploadStore:
    global _upload_store
    if _upload_store is None:
        _upload_store = UploadStore()
    return _upload_store
