"""
Bucket abstraction for S3-compatible object storage and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

CHUNK_SIZE = 256 * 1024

_MISSING_KEY_CODES = {"404", "NoSuchKey", "NotFound"}


class BucketClient(Protocol):
    """Defines the operations the API needs from a media bucket."""

    def size(self, name: str) -> Optional[int]:
        ...

    def open_stream(
        self, name: str, start: int = 0, end: Optional[int] = None
    ) -> Iterator[bytes]:
        ...

    def upload_file(self, src_path: str, name: str) -> None:
        ...

    def close(self) -> None:
        ...


@dataclass
class InMemoryBucketClient:
    """Test double for bucket interactions."""

    stored_objects: dict = field(default_factory=dict)
    chunk_size: int = CHUNK_SIZE

    def put(self, name: str, data: bytes) -> None:
        self.stored_objects[name] = bytes(data)

    def size(self, name: str) -> Optional[int]:
        stored = self.stored_objects.get(name)
        return None if stored is None else len(stored)

    def open_stream(
        self, name: str, start: int = 0, end: Optional[int] = None
    ) -> Iterator[bytes]:
        stored = self.stored_objects.get(name)
        if stored is None:
            raise FileNotFoundError(name)
        return self._iter_chunks(stored[start:end])

    def _iter_chunks(self, data: bytes) -> Iterator[bytes]:
        for offset in range(0, len(data), self.chunk_size):
            yield data[offset : offset + self.chunk_size]

    def upload_file(self, src_path: str, name: str) -> None:
        with open(src_path, "rb") as f:
            self.stored_objects[name] = f.read()

    def close(self) -> None:
        return None


@dataclass
class S3BucketClient:
    """
    Bucket backed by any S3-compatible object store.
    """

    bucket: str
    region: str = ""
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    chunk_size: int = CHUNK_SIZE

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def size(self, name: str) -> Optional[int]:
        try:
            response = self._client.head_object(Bucket=self.bucket, Key=name)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                return None
            raise
        return int(response["ContentLength"])

    def open_stream(
        self, name: str, start: int = 0, end: Optional[int] = None
    ) -> Iterator[bytes]:
        params = {"Bucket": self.bucket, "Key": name}
        # S3 ranges are inclusive of the last byte.
        if start or end is not None:
            last = "" if end is None else str(end - 1)
            params["Range"] = f"bytes={start}-{last}"
        try:
            response = self._client.get_object(**params)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                raise FileNotFoundError(name) from exc
            raise
        return response["Body"].iter_chunks(chunk_size=self.chunk_size)

    def upload_file(self, src_path: str, name: str) -> None:
        self._client.upload_file(src_path, self.bucket, name)

    def close(self) -> None:
        self._client.close()
