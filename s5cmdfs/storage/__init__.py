"""Object-store clients the filesystem adapter delegates to (S3 or local fallback)."""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any, Protocol

from ..exceptions import ConfigurationError
from ..settings import StorageSettings
from ..uri import ObjectURI


class ObjectStorage(Protocol):
    def exists(self, uri: str | ObjectURI) -> bool:
        ...

    def read_bytes(self, uri: str | ObjectURI) -> bytes:
        ...

    def open(self, uri: str | ObjectURI, mode: str = "rb") -> IO[bytes]:
        ...

    def list(self, uri: str | ObjectURI) -> list[str]:  # returns uris
        ...

    def delete(self, uri: str | ObjectURI) -> None:
        ...

    def info(self, uri: str | ObjectURI) -> dict[str, Any]:
        ...


def build_storage(settings: StorageSettings) -> ObjectStorage:
    if settings.backend == "local":
        from .local import LocalStorage

        if not settings.local_root:
            raise ConfigurationError("storage.local_root is required for the local backend")
        return LocalStorage(Path(settings.local_root))

    from .s3 import S3Storage

    return S3Storage(region=settings.region, endpoint_url=settings.endpoint_url)


__all__ = ["ObjectStorage", "build_storage"]
