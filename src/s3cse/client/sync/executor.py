"""Sequential execution of transfer items.

This module provides:
- TransferExecutor: moves mapped items through the encryption client,
  one at a time, stopping at the first failure
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from s3cse.client.encryption import EncryptionClient
from s3cse.client.sync.types import (
    DownloadError,
    TransferCancelledError,
    TransferItem,
    UploadError,
)
from s3cse.core.types import TransferDirection

logger = logging.getLogger(__name__)

# Suffix of the temporary file a download is written to
PARTIAL_SUFFIX = ".s3cse.tmp"


class TransferExecutor:
    """Runs download or upload items sequentially.

    Each item acquires and releases its own file handle and response stream.
    The first failing item aborts the run: later items are not attempted and
    items already transferred are left in place.
    """

    def __init__(
        self,
        client: EncryptionClient,
        bucket: str,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            client: Encryption client used for every object access.
            bucket: Bucket name.
            cancel_event: Run-wide cancellation signal, checked before each item.
        """
        self._client = client
        self._bucket = bucket
        self._cancel_event = cancel_event

    def _check_cancelled(self, item: TransferItem, direction: TransferDirection) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise TransferCancelledError(item, direction)

    def download_items(self, items: Iterable[TransferItem]) -> int:
        """Download objects to their local destinations.

        Existing files at a destination are overwritten.

        Args:
            items: Items with source = object key, destination = local path.

        Returns:
            Total plaintext bytes written.

        Raises:
            TransferCancelledError: If the run was cancelled.
            DownloadError: On the first failing item.
        """
        total = 0
        for item in items:
            self._check_cancelled(item, TransferDirection.DOWNLOAD)
            total += self._download_one(item)
        return total

    def _download_one(self, item: TransferItem) -> int:
        key = str(item.source)
        destination = Path(item.destination)
        logger.info(f"Downloading: {self._bucket}/{key} → {destination}")

        # Plaintext lands in a temp file and only replaces the destination
        # once the authentication tag has been verified
        tmp_path = destination.with_name(destination.name + PARTIAL_SUFFIX)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            try:
                with open(tmp_path, "wb") as f:
                    written = self._client.download_fileobj(self._bucket, key, f)
                tmp_path.replace(destination)
            except BaseException:
                if tmp_path.exists():
                    with contextlib.suppress(OSError):
                        tmp_path.unlink()
                raise
            return written
        except Exception as e:
            raise DownloadError(item, TransferDirection.DOWNLOAD, e) from e

    def upload_items(self, items: Iterable[TransferItem]) -> int:
        """Upload local files to their object keys.

        Existing objects at a key are overwritten.

        Args:
            items: Items with source = local path, destination = object key.

        Returns:
            Total plaintext bytes uploaded.

        Raises:
            TransferCancelledError: If the run was cancelled.
            UploadError: On the first failing item.
        """
        total = 0
        for item in items:
            self._check_cancelled(item, TransferDirection.UPLOAD)
            total += self._upload_one(item)
        return total

    def _upload_one(self, item: TransferItem) -> int:
        source = Path(item.source)
        key = str(item.destination)
        logger.info(f"Uploading: {source} → {self._bucket}/{key}")

        try:
            with open(source, "rb") as f:
                return self._client.put_object(self._bucket, key, f)
        except Exception as e:
            raise UploadError(item, TransferDirection.UPLOAD, e) from e
