"""Local stage files that hold a write's bytes until the uploader picks them up."""

from __future__ import annotations

import atexit
import contextlib
import os
import tempfile
import threading
from pathlib import Path
from typing import BinaryIO

from loguru import logger

from .exceptions import StageIOError

STAGE_PREFIX = "s5cmd-s3a-"
STAGE_SUFFIX = ".tmp"

_pending_lock = threading.Lock()
_pending: set[Path] = set()
_atexit_registered = False


def _delete_pending() -> None:
    with _pending_lock:
        paths = list(_pending)
        _pending.clear()
    for path in paths:
        with contextlib.suppress(OSError):
            path.unlink(missing_ok=True)


def delete_on_exit(path: Path) -> None:
    """Remove ``path`` when the interpreter exits unless it is gone already."""
    global _atexit_registered
    with _pending_lock:
        _pending.add(path)
        if not _atexit_registered:
            atexit.register(_delete_pending)
            _atexit_registered = True


def cancel_delete_on_exit(path: Path) -> None:
    with _pending_lock:
        _pending.discard(path)


def pending_deletions() -> frozenset[Path]:
    with _pending_lock:
        return frozenset(_pending)


def resolve_stage_dir(configured: str | os.PathLike[str] | None) -> Path:
    """Return the directory stage files go to.

    The configured directory is created on demand; if that fails the platform
    temp directory is used instead.
    """
    if configured:
        candidate = Path(configured)
        try:
            candidate.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Failed to create temp directory {}: {}", candidate, exc)
        else:
            if candidate.is_dir():
                return candidate
            logger.warning("Temp directory {} is not a directory", candidate)
    return Path(tempfile.gettempdir())


class TempStage:
    def __init__(self, directory: Path) -> None:
        try:
            fd, name = tempfile.mkstemp(prefix=STAGE_PREFIX, suffix=STAGE_SUFFIX, dir=directory)
        except OSError as exc:
            raise StageIOError(f"Failed to create stage file in {directory}: {exc}", {"dir": str(directory)}) from exc
        self.path = Path(name)
        delete_on_exit(self.path)
        try:
            self.handle: BinaryIO = os.fdopen(fd, "wb")
        except OSError as exc:
            os.close(fd)
            self.cleanup()
            raise StageIOError(f"Failed to open stage file {self.path}: {exc}", {"path": str(self.path)}) from exc

    @classmethod
    def create(cls, configured_dir: str | os.PathLike[str] | None) -> "TempStage":
        return cls(resolve_stage_dir(configured_dir))

    def size(self) -> int:
        return self.path.stat().st_size

    def close_handle(self) -> None:
        if self.handle.closed:
            return
        try:
            self.handle.close()
        except OSError as exc:
            raise StageIOError(f"Failed to close stage file {self.path}: {exc}", {"path": str(self.path)}) from exc

    def cleanup(self) -> bool:
        """Delete the stage file. Never raises; returns whether it is gone."""
        if not self.handle_closed():
            try:
                self.handle.close()
            except OSError as exc:
                logger.warning("Failed to close stage file {}: {}", self.path, exc)
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to delete temporary file {}: {}", self.path, exc)
            delete_on_exit(self.path)
            return False
        cancel_delete_on_exit(self.path)
        return True

    def handle_closed(self) -> bool:
        handle = getattr(self, "handle", None)
        return handle is None or handle.closed


__all__ = [
    "STAGE_PREFIX",
    "STAGE_SUFFIX",
    "TempStage",
    "resolve_stage_dir",
    "delete_on_exit",
    "cancel_delete_on_exit",
    "pending_deletions",
]
