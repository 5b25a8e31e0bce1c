"""Object-store writes staged on local disk and uploaded with s5cmd."""

from .exceptions import (
    ObjectExistsError,
    S5cmdFsError,
    SinkClosedError,
    StageIOError,
    UploadFailedError,
    UploadInterruptedError,
)
from .filesystem import S5cmdFileSystem
from .session import SessionState, WriteSession
from .settings import Settings, StorageSettings, UploaderSettings
from .uploader import UploadOutcome, UploadPolicy, UploadStatus
from .uri import ObjectURI

__all__ = [
    "S5cmdFileSystem",
    "WriteSession",
    "SessionState",
    "Settings",
    "UploaderSettings",
    "StorageSettings",
    "UploadPolicy",
    "UploadOutcome",
    "UploadStatus",
    "ObjectURI",
    "S5cmdFsError",
    "ObjectExistsError",
    "StageIOError",
    "SinkClosedError",
    "UploadFailedError",
    "UploadInterruptedError",
]
