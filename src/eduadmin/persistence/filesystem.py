"""File-based storage for generated map snapshot images."""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path

from ..config import settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class FileStorage:
    """Thin wrapper around the data root for storing uploaded files."""

    def __init__(self, root: Path | None = None, base_url: str | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.upload_root = self.root / "uploads"
        self.upload_root.mkdir(parents=True, exist_ok=True)
        self.base_url = (base_url if base_url is not None else settings.storage_base_url).rstrip("/")

    def write_bytes(self, path: Path, payload: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as handle:
            handle.write(payload)

    def save_file(self, payload: bytes, filename: str, subdirectory: str = "") -> str:
        """Store ``payload`` and return its public URL."""

        if not payload:
            raise ValueError("Refusing to store an empty file.")
        safe_name = _UNSAFE_CHARS.sub("_", Path(filename).name) or f"{uuid.uuid4().hex}.bin"
        relative = Path(subdirectory.strip().strip("/")) / safe_name if subdirectory.strip() else Path(safe_name)
        target = self.upload_root / relative
        self.write_bytes(target, payload)
        logger.info("File stored at %s", target)
        return f"{self.base_url}/{relative.as_posix()}"

    def resolve_url(self, url: str) -> Path | None:
        """Map a URL returned by ``save_file`` back to its path on disk."""

        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            return None
        return self.upload_root / url[len(prefix):].lstrip("/")
