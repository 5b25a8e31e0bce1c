"""Object-store URI parsing."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from .exceptions import InvalidURIError


@dataclass(frozen=True)
class ObjectURI:
    scheme: str
    bucket: str
    key: str = ""

    @classmethod
    def parse(cls, value: "str | ObjectURI") -> "ObjectURI":
        if isinstance(value, ObjectURI):
            return value
        text = str(value).strip()
        parts = urlsplit(text)
        if not parts.scheme or "://" not in text:
            raise InvalidURIError(f"Object URI must include a scheme: {text!r}", {"uri": text})
        if not parts.netloc:
            raise InvalidURIError(f"Object URI must include a bucket: {text!r}", {"uri": text})
        # query / fragment characters are legal in object keys
        key = text.split("://", 1)[1][len(parts.netloc):]
        if key.startswith("/"):
            key = key[1:]
        return cls(scheme=parts.scheme, bucket=parts.netloc, key=key)

    @property
    def name(self) -> str:
        return self.key.rsplit("/", 1)[-1] if self.key else ""

    def __str__(self) -> str:
        return f"{self.scheme}://{self.bucket}/{self.key}"


__all__ = ["ObjectURI"]
