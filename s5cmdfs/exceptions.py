"""Custom exception hierarchy for s5cmdfs."""

from __future__ import annotations


class S5cmdFsError(Exception):
    """Base exception for all s5cmdfs-specific errors."""
    
    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(S5cmdFsError):
    """Raised when configuration is invalid or missing."""
    pass


class InvalidURIError(S5cmdFsError, ValueError):
    """Raised when an object-store URI cannot be parsed."""
    pass


class StorageError(S5cmdFsError):
    """Raised when storage operations fail."""
    pass


class ObjectExistsError(StorageError):
    """Raised when the destination exists and overwrite is disabled."""
    pass


class StageIOError(StorageError):
    """Raised when the local stage file cannot be created, written or closed."""
    pass


class SinkClosedError(StorageError, ValueError):
    """Raised when writing to a session that is no longer open."""
    pass


class UploadError(StorageError):
    """Base class for uploader failures."""
    pass


class UploadFailedError(UploadError):
    """Raised when the uploader exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None,
        output: str = "",
        details: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.exit_code = exit_code
        self.output = output


class UploadInterruptedError(UploadError):
    """Raised when an upload is cancelled while the uploader is running."""
    pass


__all__ = [
    "S5cmdFsError",
    "ConfigurationError",
    "InvalidURIError",
    "StorageError",
    "ObjectExistsError",
    "StageIOError",
    "SinkClosedError",
    "UploadError",
    "UploadFailedError",
    "UploadInterruptedError",
]
