from __future__ import annotations

from typing import BinaryIO, Union

from .exceptions import StageIOError

Writable = Union[bytes, bytearray, memoryview, int]


class ByteSink:
    """Append-only writer over the stage file handle.

    Not thread-safe: a sink belongs to the single producer of its session.
    """

    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle
        self.bytes_written = 0

    def write(self, data: Writable) -> int:
        if isinstance(data, int):
            if not 0 <= data <= 0xFF:
                raise ValueError(f"byte must be in range(0, 256), got {data}")
            data = bytes((data,))
        view = memoryview(data).cast("B")
        try:
            written = self._handle.write(view)
        except OSError as exc:
            raise StageIOError(f"Failed to write to stage file: {exc}") from exc
        self.bytes_written += written
        return written

    def flush(self) -> None:
        try:
            self._handle.flush()
        except OSError as exc:
            raise StageIOError(f"Failed to flush stage file: {exc}") from exc


__all__ = ["ByteSink", "Writable"]
