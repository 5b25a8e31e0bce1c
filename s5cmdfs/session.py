"""Streaming write handle that uploads its staged bytes on close."""

from __future__ import annotations

import io
import threading
from enum import Enum
from pathlib import Path

from loguru import logger

from .exceptions import SinkClosedError, UploadFailedError, UploadInterruptedError
from .sink import ByteSink, Writable
from .stage import TempStage
from .uploader import UploadOutcome, UploadPolicy, UploadStatus, invoke_uploader
from .uri import ObjectURI


class SessionState(str, Enum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class WriteSession(io.BufferedIOBase):
    """Binary writer for one destination object.

    Bytes are written through to a local stage file. ``close()`` hands the
    stage file to the uploader, removes it whatever the result and raises
    if the upload did not succeed. Later ``close()`` calls do nothing.

    A session is owned by a single producer thread and must not be shared.
    """

    def __init__(
        self,
        uri: str | ObjectURI,
        policy: UploadPolicy,
        *,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.uri = ObjectURI.parse(uri)
        self.policy = policy
        self.cancel_event = cancel_event
        self.state = SessionState.OPEN
        self._outcome: UploadOutcome | None = None
        self._stage = TempStage.create(policy.temp_dir)
        self._sink = ByteSink(self._stage.handle)
        self._log = logger.bind(uri=str(self.uri), stage=str(self._stage.path))
        self._log.info("Created temp file {} for S3 path {}", self._stage.path, self.uri)

    @property
    def closed(self) -> bool:
        return self.state is not SessionState.OPEN

    @property
    def outcome(self) -> UploadOutcome | None:
        return self._outcome

    @property
    def stage_path(self) -> Path:
        return self._stage.path

    @property
    def bytes_written(self) -> int:
        return self._sink.bytes_written

    def readable(self) -> bool:
        return False

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def tell(self) -> int:
        return self._sink.bytes_written

    def _check_open(self) -> None:
        if self.state is not SessionState.OPEN:
            raise SinkClosedError(
                f"Write session for {self.uri} is {self.state.value}",
                {"uri": str(self.uri), "state": self.state.value},
            )

    def write(self, data: Writable) -> int:  # type: ignore[override]
        self._check_open()
        return self._sink.write(data)

    def flush(self) -> None:
        self._check_open()
        self._sink.flush()

    def close(self) -> None:
        if self.state is not SessionState.OPEN:
            return
        self.state = SessionState.CLOSING
        try:
            self._stage.close_handle()
            self._outcome = invoke_uploader(
                self.policy,
                self._stage.path,
                self.uri,
                cancel_event=self.cancel_event,
            )
        finally:
            self._stage.cleanup()
            self.state = SessionState.CLOSED
        self._raise_for_outcome(self._outcome)

    def _raise_for_outcome(self, outcome: UploadOutcome) -> None:
        if outcome.status is UploadStatus.SUCCESS:
            return
        details = {"uri": str(self.uri), "exit_code": str(outcome.exit_code)}
        if outcome.status is UploadStatus.INTERRUPTED:
            raise UploadInterruptedError(f"Upload to {self.uri} interrupted", details)
        raise UploadFailedError(
            f"Upload to {self.uri} failed with exit code {outcome.exit_code}: {outcome.first_line}",
            exit_code=outcome.exit_code,
            output=outcome.output,
            details=details,
        )

    def discard(self) -> None:
        """Drop the staged bytes without uploading. No-op once closed."""
        if getattr(self, "state", None) is not SessionState.OPEN:
            return
        self.state = SessionState.CLOSED
        stage = getattr(self, "_stage", None)
        if stage is not None:
            self._log.warning("Discarding write session for {} without upload", self.uri)
            stage.cleanup()

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        # a failed producer must not publish a truncated object
        if exc_type is not None:
            self.discard()
        else:
            self.close()

    def __del__(self) -> None:
        # an abandoned session never uploads
        self.discard()

    def __repr__(self) -> str:
        return f"<WriteSession uri={self.uri} state={self.state.value}>"


__all__ = ["SessionState", "WriteSession"]
