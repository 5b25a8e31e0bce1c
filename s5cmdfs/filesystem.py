"""Filesystem adapter whose writes go through the external uploader."""

from __future__ import annotations

import shutil
import threading
from pathlib import Path
from typing import IO, Any

from .exceptions import ObjectExistsError
from .session import WriteSession
from .settings import Settings
from .storage import ObjectStorage
from .uploader import resolve_upload_policy
from .uri import ObjectURI

_COPY_CHUNK = 1024 * 1024


class S5cmdFileSystem:
    """Replaces the write path of an object-store client.

    ``open_for_write`` returns a :class:`WriteSession`; every other attribute
    is looked up on the wrapped ``delegate`` unchanged.
    """

    def __init__(self, delegate: ObjectStorage, settings: Settings | None = None) -> None:
        self.delegate = delegate
        self.settings = settings or Settings()

    def open_for_write(
        self,
        uri: str | ObjectURI,
        overwrite: bool = True,
        *,
        cancel_event: threading.Event | None = None,
        **hints: Any,
    ) -> WriteSession:
        # buffer_size, replication, block_size, permission, progress: accepted, unused
        parsed = ObjectURI.parse(uri)
        if not overwrite and self.delegate.exists(parsed):
            raise ObjectExistsError(f"File already exists: {parsed}", {"uri": str(parsed)})
        policy = resolve_upload_policy(self.settings.uploader)
        return WriteSession(parsed, policy, cancel_event=cancel_event)

    def open(self, uri: str | ObjectURI, mode: str = "rb", **kwargs: Any) -> IO[bytes]:
        if "w" in mode or "x" in mode:
            return self.open_for_write(uri, overwrite="x" not in mode, **kwargs)
        return self.delegate.open(uri, mode)

    def put_bytes(self, uri: str | ObjectURI, data: bytes, overwrite: bool = True) -> str:
        with self.open_for_write(uri, overwrite=overwrite) as out:
            out.write(data)
        return str(out.uri)

    def put_file(self, uri: str | ObjectURI, src_path: Path, overwrite: bool = True) -> str:
        with src_path.open("rb") as src, self.open_for_write(uri, overwrite=overwrite) as out:
            shutil.copyfileobj(src, out, _COPY_CHUNK)
        return str(out.uri)

    def __getattr__(self, name: str) -> Any:
        # only reached for attributes this class does not define
        if name == "delegate":
            raise AttributeError(name)
        return getattr(self.delegate, name)


__all__ = ["S5cmdFileSystem"]
