"""Object storage abstraction for encrypted payloads.

This module provides:
- Abstract interface for list/get/put against a bucket
- LocalFSObjectStore for development and testing
- S3ObjectStore for production (AWS, MinIO, ...)
"""

from __future__ import annotations

import json
import logging
import shutil
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

METADATA_SUFFIX = ".s3cse-meta.json"


class StorageError(Exception):
    """Raised when the storage backend rejects an operation."""


class ObjectNotFoundError(StorageError):
    """Raised when an object is not found in storage."""


@dataclass
class StoredObject:
    """An open object body stream with its user metadata.

    Use as a context manager so the body stream is always closed.
    """

    body: IO[bytes]
    metadata: dict[str, str] = field(default_factory=dict)

    def close(self) -> None:
        """Close the body stream."""
        self.body.close()

    def __enter__(self) -> StoredObject:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ObjectStore(ABC):
    """Abstract interface for object storage."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Return a human-readable description of where objects are stored."""

    @abstractmethod
    def list_keys(self, bucket: str, prefix: str) -> Iterator[str]:
        """Yield every object key starting with prefix.

        Implementations exhaust all result pages.

        Args:
            bucket: Bucket name.
            prefix: Key prefix.

        Yields:
            Object keys.
        """

    @abstractmethod
    def get(self, bucket: str, key: str) -> StoredObject:
        """Retrieve an object.

        Args:
            bucket: Bucket name.
            key: Object key.

        Returns:
            The open body stream and metadata; the caller closes it.

        Raises:
            ObjectNotFoundError: If the object doesn't exist.
        """

    @abstractmethod
    def put(self, bucket: str, key: str, body: IO[bytes], metadata: dict[str, str]) -> None:
        """Store an object, replacing any existing object at key.

        Args:
            bucket: Bucket name.
            key: Object key.
            body: Readable binary stream, consumed to its end.
            metadata: User metadata stored alongside the body.
        """


class LocalFSObjectStore(ObjectStore):
    """Local filesystem storage for development and testing.

    Each bucket is a subdirectory of the base path; an object's body lives
    at its key path and its metadata in a JSON sidecar next to it.
    """

    def __init__(self, base_path: Path | str) -> None:
        """Initialize local storage.

        Args:
            base_path: Base directory for bucket directories.
        """
        self._base_path = Path(base_path).resolve()
        self._base_path.mkdir(parents=True, exist_ok=True)

    @property
    def location(self) -> str:
        """Return the local storage path."""
        return f"Local filesystem: {self._base_path}"

    def _object_path(self, bucket: str, key: str) -> Path:
        """Get the file path for an object key."""
        return self._base_path.joinpath(bucket, *key.split("/"))

    def _metadata_path(self, bucket: str, key: str) -> Path:
        path = self._object_path(bucket, key)
        return path.with_name(path.name + METADATA_SUFFIX)

    def list_keys(self, bucket: str, prefix: str) -> Iterator[str]:
        """Yield keys under prefix in sorted order."""
        bucket_path = self._base_path / bucket
        if not bucket_path.is_dir():
            raise StorageError(f"Bucket not found: {bucket}")

        keys = sorted(
            path.relative_to(bucket_path).as_posix()
            for path in bucket_path.rglob("*")
            if path.is_file() and not path.name.endswith(METADATA_SUFFIX)
        )
        for key in keys:
            if key.startswith(prefix):
                yield key

    def get(self, bucket: str, key: str) -> StoredObject:
        """Retrieve an object."""
        path = self._object_path(bucket, key)
        if not path.is_file():
            raise ObjectNotFoundError(f"Object not found: {bucket}/{key}")

        metadata_path = self._metadata_path(bucket, key)
        metadata: dict[str, str] = {}
        if metadata_path.exists():
            metadata = dict(json.loads(metadata_path.read_text()))
        return StoredObject(body=open(path, "rb"), metadata=metadata)

    def put(self, bucket: str, key: str, body: IO[bytes], metadata: dict[str, str]) -> None:
        """Store an object."""
        bucket_path = self._base_path / bucket
        if not bucket_path.is_dir():
            raise StorageError(f"Bucket not found: {bucket}")

        path = self._object_path(bucket, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            shutil.copyfileobj(body, f)
        self._metadata_path(bucket, key).write_text(json.dumps(metadata, indent=2))

    def create_bucket(self, bucket: str) -> None:
        """Create a bucket directory (idempotent)."""
        (self._base_path / bucket).mkdir(parents=True, exist_ok=True)


class S3ObjectStore(ObjectStore):
    """S3-compatible storage backed by boto3."""

    def __init__(self, client: Any, endpoint_url: str | None = None) -> None:
        """Initialize S3 storage.

        Args:
            client: A boto3 S3 client.
            endpoint_url: Custom endpoint URL, for display only.
        """
        self._client = client
        self._endpoint_url = endpoint_url

    @classmethod
    def from_session(
        cls,
        session: Any,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> S3ObjectStore:
        """Create storage from a boto3 session.

        Args:
            session: boto3.Session carrying credentials.
            region: AWS region.
            endpoint_url: Custom endpoint URL (for MinIO, LocalStack, etc.).
        """
        client = session.client("s3", region_name=region, endpoint_url=endpoint_url)
        return cls(client, endpoint_url=endpoint_url)

    @property
    def location(self) -> str:
        """Return the S3 endpoint."""
        if self._endpoint_url:
            return f"S3: {self._endpoint_url}"
        return "S3: AWS"

    def list_keys(self, bucket: str, prefix: str) -> Iterator[str]:
        """Yield keys under prefix across all list_objects_v2 pages."""
        from botocore.exceptions import BotoCoreError, ClientError

        paginator = self._client.get_paginator("list_objects_v2")
        try:
            for page_number, page in enumerate(
                paginator.paginate(Bucket=bucket, Prefix=prefix), start=1
            ):
                contents = page.get("Contents", [])
                logger.debug(f"Listing page {page_number} of s3://{bucket}/{prefix}: {len(contents)} keys")
                for obj in contents:
                    yield obj["Key"]
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to list s3://{bucket}/{prefix}: {e}") from e

    def get(self, bucket: str, key: str) -> StoredObject:
        """Retrieve an object."""
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("NoSuchKey", "404"):
                raise ObjectNotFoundError(f"Object not found: {bucket}/{key}") from e
            raise StorageError(f"Failed to get s3://{bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to get s3://{bucket}/{key}: {e}") from e

        return StoredObject(body=response["Body"], metadata=dict(response.get("Metadata", {})))

    def put(self, bucket: str, key: str, body: IO[bytes], metadata: dict[str, str]) -> None:
        """Store an object, using multipart upload for large bodies."""
        from boto3.exceptions import Boto3Error
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._client.upload_fileobj(body, bucket, key, ExtraArgs={"Metadata": metadata})
        except (Boto3Error, BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to put s3://{bucket}/{key}: {e}") from e


def create_store(config: dict[str, str | None], session: Any | None = None) -> ObjectStore:
    """Factory function to create storage from configuration.

    Args:
        config: Storage configuration dict with keys:
            - type: "s3" or "local"
            - For local: local_path
            - For S3: region, endpoint_url, profile
        session: Existing boto3 session to reuse for S3 (one is created from
            the profile otherwise).

    Returns:
        Configured ObjectStore instance.

    Raises:
        ValueError: If storage type is unknown.
    """
    storage_type = config.get("type", "s3")

    if storage_type == "local":
        local_path = config.get("local_path") or "./buckets"
        return LocalFSObjectStore(local_path)

    if storage_type == "s3":
        if session is None:
            import boto3

            session = boto3.Session(profile_name=config.get("profile"))
        return S3ObjectStore.from_session(
            session,
            region=config.get("region"),
            endpoint_url=config.get("endpoint_url"),
        )

    raise ValueError(f"Unknown storage type: {storage_type}")
