from __future__ import annotations

from typing import IO, Any, Optional

import boto3
from botocore.exceptions import ClientError

from ..exceptions import StorageError
from ..uri import ObjectURI


class S3Storage:
    def __init__(
        self,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        if client is None:
            session = boto3.session.Session(region_name=region) if region else boto3.session.Session()
            client = session.client("s3", endpoint_url=endpoint_url)
        self.client = client

    def exists(self, uri: str | ObjectURI) -> bool:
        parsed = ObjectURI.parse(uri)
        try:
            self.client.head_object(Bucket=parsed.bucket, Key=parsed.key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in {"404", "NoSuchKey", "NotFound"}:
                return False
            raise StorageError(f"Failed to check {parsed}: {exc}", {"uri": str(parsed)}) from exc
        return True

    def open(self, uri: str | ObjectURI, mode: str = "rb") -> IO[bytes]:
        if "r" not in mode:
            raise StorageError(f"S3Storage only opens objects for reading, got mode {mode!r}")
        parsed = ObjectURI.parse(uri)
        try:
            response = self.client.get_object(Bucket=parsed.bucket, Key=parsed.key)
        except ClientError as exc:
            raise StorageError(f"Failed to read {parsed}: {exc}", {"uri": str(parsed)}) from exc
        return response["Body"]

    def read_bytes(self, uri: str | ObjectURI) -> bytes:
        body = self.open(uri)
        try:
            return body.read()
        finally:
            body.close()

    def list(self, uri: str | ObjectURI) -> list[str]:
        parsed = ObjectURI.parse(uri)
        paginator = self.client.get_paginator("list_objects_v2")
        found: list[str] = []
        try:
            for page in paginator.paginate(Bucket=parsed.bucket, Prefix=parsed.key):
                for item in page.get("Contents", []):
                    found.append(str(ObjectURI(parsed.scheme, parsed.bucket, item["Key"])))
        except ClientError as exc:
            raise StorageError(f"Failed to list {parsed}: {exc}", {"uri": str(parsed)}) from exc
        return found

    def delete(self, uri: str | ObjectURI) -> None:
        parsed = ObjectURI.parse(uri)
        try:
            self.client.delete_object(Bucket=parsed.bucket, Key=parsed.key)
        except ClientError as exc:
            raise StorageError(f"Failed to delete {parsed}: {exc}", {"uri": str(parsed)}) from exc

    def info(self, uri: str | ObjectURI) -> dict[str, Any]:
        parsed = ObjectURI.parse(uri)
        try:
            head = self.client.head_object(Bucket=parsed.bucket, Key=parsed.key)
        except ClientError as exc:
            raise StorageError(f"Failed to stat {parsed}: {exc}", {"uri": str(parsed)}) from exc
        return {
            "uri": str(parsed),
            "size": head.get("ContentLength"),
            "etag": head.get("ETag"),
            "last_modified": head.get("LastModified"),
        }


__all__ = ["S3Storage"]
