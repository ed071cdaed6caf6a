"""
Local file storage for uploaded resumes and rendered previews.
All PDF/PNG file I/O of the service goes through this module.
"""

from __future__ import annotations

import logging
import os
import re
import threading
import uuid
from dataclasses import dataclass
from pathlib import Path

from resume_edge.core.config import settings
from resume_edge.core.errors import UploadError

logger = logging.getLogger(__name__)

_SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")

_default_store: "FileStore | None" = None
_default_lock = threading.Lock()


def safe_filename(filename: str | None, default: str = "resume.pdf") -> str:
    name = (filename or "").replace("\\", "/").split("/")[-1].strip()
    name = _SAFE_NAME_RE.sub("_", name).strip("._")
    if not name:
        return default
    return name[:200]


@dataclass(frozen=True)
class StoredFile:
    path: str
    size: int
    content_type: str


class FileStore:
    def __init__(self, root: str):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def ensure_ready(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        if not os.access(self._root, os.W_OK):
            raise PermissionError(f"Upload directory '{self._root}' is not writable.")

    def _resolve(self, path: str) -> Path:
        root = self._root.resolve()
        target = (root / path).resolve()
        if target == root or root not in target.parents:
            raise ValueError(f"Invalid storage path: '{path}'")
        return target

    def save(self, data: bytes, *, filename: str, content_type: str = "application/pdf") -> StoredFile:
        relative = f"{uuid.uuid4().hex}/{safe_filename(filename)}"
        try:
            target = self._resolve(relative)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise UploadError(f"Failed to upload file: {exc}") from exc
        logger.info("file_stored path=%s bytes=%s", relative, len(data))
        return StoredFile(path=relative, size=len(data), content_type=content_type)

    def read(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise FileNotFoundError(f"Stored file not found: '{path}'")
        return target.read_bytes()

    def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except ValueError:
            return False

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.is_file():
            return False
        target.unlink()
        parent = target.parent
        root = self._root.resolve()
        if parent != root and not any(parent.iterdir()):
            parent.rmdir()
        logger.info("file_deleted path=%s", path)
        return True


def get_file_store() -> FileStore:
    global _default_store
    with _default_lock:
        if _default_store is None:
            _default_store = FileStore(settings.upload_dir)
        return _default_store
