from __future__ import annotations

from pathlib import Path
from typing import IO, Any

from ..exceptions import StorageError
from ..uri import ObjectURI


class LocalStorage:
    """Object store laid out as ``<root>/<bucket>/<key>`` on local disk."""

    def __init__(self, root: Path, scheme: str = "s3") -> None:
        self.root = root
        self.scheme = scheme
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, uri: str | ObjectURI) -> Path:
        parsed = ObjectURI.parse(uri)
        return self.root / parsed.bucket / parsed.key

    def exists(self, uri: str | ObjectURI) -> bool:
        return self.path_for(uri).is_file()

    def read_bytes(self, uri: str | ObjectURI) -> bytes:
        path = self.path_for(uri)
        if not path.is_file():
            raise StorageError(f"Object not found: {uri}", {"uri": str(uri)})
        return path.read_bytes()

    def open(self, uri: str | ObjectURI, mode: str = "rb") -> IO[bytes]:
        if "r" not in mode:
            raise StorageError(f"LocalStorage only opens objects for reading, got mode {mode!r}")
        path = self.path_for(uri)
        if not path.is_file():
            raise StorageError(f"Object not found: {uri}", {"uri": str(uri)})
        return path.open("rb")

    def list(self, uri: str | ObjectURI) -> list[str]:
        parsed = ObjectURI.parse(uri)
        bucket_root = self.root / parsed.bucket
        if not bucket_root.is_dir():
            return []
        found: list[str] = []
        for path in sorted(bucket_root.rglob("*")):
            if not path.is_file():
                continue
            key = path.relative_to(bucket_root).as_posix()
            if key.startswith(parsed.key):
                found.append(str(ObjectURI(parsed.scheme, parsed.bucket, key)))
        return found

    def delete(self, uri: str | ObjectURI) -> None:
        self.path_for(uri).unlink(missing_ok=True)

    def info(self, uri: str | ObjectURI) -> dict[str, Any]:
        path = self.path_for(uri)
        if not path.is_file():
            raise StorageError(f"Object not found: {uri}", {"uri": str(uri)})
        stat = path.stat()
        return {"uri": str(ObjectURI.parse(uri)), "size": stat.st_size, "mtime": stat.st_mtime}


__all__ = ["LocalStorage"]
