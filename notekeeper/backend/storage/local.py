"""
Local File Storage.

Stores attachment bytes on disk under a single upload root. Paths
handed back to callers are relative to that root so the database
never records absolute locations. Blocking filesystem calls run in
the shared I/O thread pool.
"""

import re
import uuid
from collections.abc import Iterable
from pathlib import Path

from notekeeper.backend.core.concurrency import run_blocking
from notekeeper.backend.core.exceptions import NotFoundError
from notekeeper.backend.core.logging import get_logger

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
MAX_FILENAME_LENGTH = 100


def sanitize_filename(filename: str | None) -> str:
    """
    Reduce an uploaded filename to a safe basename.

    Directory components are dropped, unsafe characters collapse to "_",
    and leading dots are removed so the result can never be hidden or
    escape its directory.
    """
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_CHARS.sub("_", name).lstrip("._")
    if len(name) > MAX_FILENAME_LENGTH:
        stem, dot, ext = name.rpartition(".")
        if dot and len(ext) < 16:
            name = stem[: MAX_FILENAME_LENGTH - len(ext) - 1] + "." + ext
        else:
            name = name[:MAX_FILENAME_LENGTH]
    return name or "file"


class LocalFileStorage:
    """Attachment store rooted at one directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    @classmethod
    def from_config(cls) -> "LocalFileStorage":
        from notekeeper.backend.core.config import find_project_root, get_app_config

        upload_dir = Path(get_app_config().storage.upload_dir)
        if not upload_dir.is_absolute():
            upload_dir = find_project_root() / upload_dir
        return cls(upload_dir)

    def resolve(self, relative_path: str) -> Path:
        """
        Turn a stored relative path into an absolute one inside the root.

        Raises:
            NotFoundError: If the path points outside the root
        """
        path = (self.root / relative_path).resolve()
        if not path.is_relative_to(self.root):
            logger.warning("Storage path escapes root", extra={"path": relative_path})
            raise NotFoundError("Attachment not found")
        return path

    def _write(self, relative_path: str, content: bytes) -> None:
        path = self.resolve(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    def _remove(self, relative_paths: list[str]) -> int:
        removed = 0
        for relative_path in relative_paths:
            path = self.resolve(relative_path)
            if path.exists():
                path.unlink()
                removed += 1
            parent = path.parent
            if parent != self.root and parent.exists() and not any(parent.iterdir()):
                parent.rmdir()
        return removed

    async def save(self, note_id: str, filename: str, content: bytes) -> str:
        """
        Write content for a note and return its path relative to the root.

        The stored name is `<note_id>/<uuid>_<filename>`; filename must
        already be sanitized.
        """
        relative_path = f"{note_id}/{uuid.uuid4().hex}_{filename}"
        await run_blocking(self._write, relative_path, content)
        logger.debug(
            "Attachment written",
            extra={"path": relative_path, "size_bytes": len(content)},
        )
        return relative_path

    async def delete_many(self, relative_paths: Iterable[str]) -> int:
        """Remove files (missing ones are skipped) and prune empty note directories."""
        paths = list(relative_paths)
        if not paths:
            return 0
        removed = await run_blocking(self._remove, paths)
        logger.debug("Attachments removed", extra={"requested": len(paths), "removed": removed})
        return removed
