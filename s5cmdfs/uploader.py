"""Invocation of the external uploader (``s5cmd cp``) for a staged file."""

from __future__ import annotations

import contextlib
import os
import shutil
import signal
import subprocess
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Any, cast

from loguru import logger

from .settings import UploaderSettings
from .uri import ObjectURI

DEFAULT_OUTPUT_LIMIT = 64 * 1024
TERMINATE_GRACE_SECONDS = 5.0
POLL_INTERVAL_SECONDS = 0.1
_READ_CHUNK = 8192


@dataclass(frozen=True)
class UploadPolicy:
    uploader_path: str
    temp_dir: str | None
    multipart_threshold: int
    multipart_concurrency: int
    extra_args: tuple[str, ...] = ()
    output_limit: int = DEFAULT_OUTPUT_LIMIT


class UploadStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class UploadOutcome:
    status: UploadStatus
    command: tuple[str, ...]
    exit_code: int | None = None
    output: str = ""
    first_line: str = ""
    truncated: bool = False

    @property
    def success(self) -> bool:
        return self.status is UploadStatus.SUCCESS


def split_extra_args(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(token.strip() for token in value.split() if token.strip())


def _normalize_executable(path: str) -> str:
    # bare names go through PATH, anything with a directory part is used as given
    if os.sep in path or (os.altsep and os.altsep in path) or Path(path).exists():
        return path
    resolved = shutil.which(path)
    return resolved or path


def resolve_upload_policy(settings: UploaderSettings) -> UploadPolicy:
    return UploadPolicy(
        uploader_path=_normalize_executable(settings.path),
        temp_dir=settings.temp_dir,
        multipart_threshold=settings.multipart_threshold,
        multipart_concurrency=settings.multipart_concurrency,
        extra_args=split_extra_args(settings.additional_args),
    )


def build_upload_command(
    policy: UploadPolicy,
    stage_path: Path,
    uri: ObjectURI | str,
    stage_size: int,
) -> list[str]:
    command = [policy.uploader_path, "cp"]
    if stage_size > policy.multipart_threshold:
        command += ["--concurrency", str(policy.multipart_concurrency)]
    command += [str(stage_path), str(uri)]
    command += list(policy.extra_args)
    return command


class OutputCapture:
    """Keeps the first line and a bounded tail of the uploader's output."""

    def __init__(self, limit: int = DEFAULT_OUTPUT_LIMIT) -> None:
        self.limit = max(limit, 1)
        self.total_bytes = 0
        self.first_line = ""
        self.truncated = False
        self._chunks: deque[bytes] = deque()
        self._size = 0
        self._first_pending = b""
        self._first_done = False
        self._lock = threading.Lock()

    def feed(self, chunk: bytes) -> None:
        if not chunk:
            return
        with self._lock:
            self.total_bytes += len(chunk)
            self._track_first_line(chunk)
            if len(chunk) > self.limit:
                chunk = chunk[-self.limit:]
                self.truncated = True
                self._chunks.clear()
                self._size = 0
            self._chunks.append(chunk)
            self._size += len(chunk)
            while self._size > self.limit:
                dropped = self._chunks.popleft()
                self._size -= len(dropped)
                self.truncated = True

    def _track_first_line(self, chunk: bytes) -> None:
        if self._first_done:
            return
        head, newline, _ = chunk.partition(b"\n")
        if len(self._first_pending) < self.limit:
            self._first_pending += head[: self.limit - len(self._first_pending)]
        if newline:
            self.finish()

    def finish(self) -> None:
        if not self._first_done:
            self._first_done = True
            self.first_line = self._first_pending.decode("utf-8", errors="replace").strip()

    @property
    def retained_bytes(self) -> int:
        return self._size

    def text(self) -> str:
        with self._lock:
            return b"".join(self._chunks).decode("utf-8", errors="replace")


def _drain(stream: IO[bytes], capture: OutputCapture) -> None:
    with stream:
        for chunk in iter(lambda: stream.readline(_READ_CHUNK), b""):
            capture.feed(chunk)
    capture.finish()


def _send_signal(process: subprocess.Popen[Any], sig: int) -> None:
    # the uploader leads its own session on POSIX, so signal the whole group
    with contextlib.suppress(ProcessLookupError):
        if hasattr(os, "killpg"):
            os.killpg(process.pid, sig)
        elif sig == getattr(signal, "SIGKILL", None):
            process.kill()
        else:
            process.terminate()


def _terminate(process: subprocess.Popen[Any], grace: float = TERMINATE_GRACE_SECONDS) -> None:
    if process.poll() is not None:
        return
    logger.warning("Terminating uploader process {}", process.pid)
    _send_signal(process, signal.SIGTERM)
    try:
        process.wait(timeout=grace)
    except subprocess.TimeoutExpired:
        _send_signal(process, getattr(signal, "SIGKILL", signal.SIGTERM))
        process.wait()


def _wait_for_exit(
    process: subprocess.Popen[Any],
    cancel_event: threading.Event | None,
    poll_interval: float,
) -> int | None:
    """Return the exit code, or None when ``cancel_event`` fired first."""
    if cancel_event is None:
        return process.wait()
    while not cancel_event.is_set():
        try:
            return process.wait(timeout=poll_interval)
        except subprocess.TimeoutExpired:
            continue
    return None


def _join_reader(reader: threading.Thread) -> None:
    reader.join(TERMINATE_GRACE_SECONDS)
    if reader.is_alive():
        # a grandchild still holds the pipe; the daemon thread finishes with it
        logger.warning("Uploader output stream still open after exit")


def invoke_uploader(
    policy: UploadPolicy,
    stage_path: Path,
    uri: ObjectURI | str,
    *,
    cancel_event: threading.Event | None = None,
    poll_interval: float = POLL_INTERVAL_SECONDS,
) -> UploadOutcome:
    """Upload ``stage_path`` to ``uri`` and report how the uploader exited.

    Output (stderr merged into stdout) is drained on a helper thread so a
    chatty uploader never blocks on a full pipe; only a bounded tail of it
    is retained. Setting ``cancel_event`` terminates the uploader and yields
    an INTERRUPTED outcome. A ``KeyboardInterrupt`` while waiting terminates
    the uploader and is re-raised.
    """
    log = logger.bind(uri=str(uri), stage=str(stage_path))
    stage_size = stage_path.stat().st_size
    command = build_upload_command(policy, stage_path, uri, stage_size)

    if stage_size > policy.multipart_threshold:
        log.info(
            "File size {} bytes exceeds multipart threshold of {} bytes, using multipart upload",
            stage_size,
            policy.multipart_threshold,
        )
    log.info("Uploading {} to {} using {}", stage_path, uri, policy.uploader_path)

    try:
        process = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            start_new_session=hasattr(os, "killpg"),
        )
    except OSError as exc:
        message = f"Executable not found: {exc}" if isinstance(exc, FileNotFoundError) else str(exc)
        log.error("Failed to start uploader {}: {}", policy.uploader_path, exc)
        return UploadOutcome(
            status=UploadStatus.FAILURE,
            command=tuple(command),
            exit_code=None,
            output=message,
            first_line=message,
        )

    capture = OutputCapture(policy.output_limit)
    reader = threading.Thread(
        target=_drain,
        args=(cast(IO[bytes], process.stdout), capture),
        name=f"uploader-output-{process.pid}",
        daemon=True,
    )
    reader.start()

    try:
        exit_code = _wait_for_exit(process, cancel_event, poll_interval)
    except KeyboardInterrupt:
        _terminate(process)
        _join_reader(reader)
        raise

    if exit_code is None:
        _terminate(process)
        _join_reader(reader)
        log.warning("Upload of {} to {} interrupted", stage_path, uri)
        return UploadOutcome(
            status=UploadStatus.INTERRUPTED,
            command=tuple(command),
            exit_code=process.returncode,
            output=capture.text(),
            first_line=capture.first_line,
            truncated=capture.truncated,
        )

    _join_reader(reader)
    output = capture.text()
    if exit_code != 0:
        log.bind(exit_code=exit_code).error("Uploader output (exit code {}): {}", exit_code, output)
        return UploadOutcome(
            status=UploadStatus.FAILURE,
            command=tuple(command),
            exit_code=exit_code,
            output=output,
            first_line=capture.first_line,
            truncated=capture.truncated,
        )

    log.info("Successfully uploaded {} to {}", stage_path, uri)
    return UploadOutcome(
        status=UploadStatus.SUCCESS,
        command=tuple(command),
        exit_code=0,
        output=output,
        first_line=capture.first_line,
        truncated=capture.truncated,
    )


__all__ = [
    "DEFAULT_OUTPUT_LIMIT",
    "UploadPolicy",
    "UploadStatus",
    "UploadOutcome",
    "OutputCapture",
    "split_extra_args",
    "resolve_upload_policy",
    "build_upload_command",
    "invoke_uploader",
]
