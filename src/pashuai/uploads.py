# Uploaded image storage.
# Created: 2026-10-08
#
# Images attached to analysis turns are written under <data_dir>/uploads/
# and served back from /uploads/<name>. Names get a random suffix so two
# uploads of "leaf.jpg" never collide.

from __future__ import annotations

import logging
import re
import secrets
from pathlib import Path
from typing import Protocol

from pashuai.config import get_config_dir
from pashuai.errors import StorageError

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads"

_MIME_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
    "image/heic": ".heic",
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class ImageStore(Protocol):
    def save(self, filename: str, data: bytes, content_type: str) -> str:
        """Persist an image and return the URL it is served from."""
        ...


class LocalImageStore:
    """Writes uploads to a local directory."""

    def __init__(self, base_path: Path | None = None):
        self.base_path = base_path or get_config_dir() / "uploads"
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _safe_name(self, filename: str, content_type: str) -> str:
        stem = Path(filename or "image").stem
        stem = _UNSAFE_CHARS.sub("-", stem).strip("-.")[:60] or "image"
        suffix = Path(filename or "").suffix.lower()
        if not suffix or _UNSAFE_CHARS.search(suffix):
            suffix = _MIME_EXTENSIONS.get(content_type, ".bin")
        return f"{stem}-{secrets.token_hex(6)}{suffix}"

    def save(self, filename: str, data: bytes, content_type: str) -> str:
        name = self._safe_name(filename, content_type)
        path = self.base_path / name
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Could not store image: {e}") from e
        logger.debug("Stored upload %s (%d bytes)", name, len(data))
        return f"{UPLOADS_URL_PREFIX}/{name}"
