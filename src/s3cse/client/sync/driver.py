"""Orchestration of one transfer run.

Architecture:
    SyncDriver → Enumerator → PathKeyMapper → TransferExecutor

The whole member set is enumerated and mapped before the first transfer,
so mapping errors never leave a partial run behind.
"""

from __future__ import annotations

import logging
import threading

from s3cse.client.encryption import EncryptionClient
from s3cse.client.storage import ObjectStore
from s3cse.client.sync.enumerator import list_members, walk_local_files
from s3cse.client.sync.executor import TransferExecutor
from s3cse.client.sync.mapper import map_download, map_upload
from s3cse.client.sync.types import RunState, SyncResult, TransferItem
from s3cse.core.config import RunConfig

logger = logging.getLogger(__name__)


class SyncDriver:
    """Runs a single download or upload described by a RunConfig.

    Attributes:
        state: Current RunState of the run.
        error: The error that moved the run to FAILED, if any.
    """

    def __init__(
        self,
        config: RunConfig,
        client: EncryptionClient,
        store: ObjectStore | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            config: Validated run configuration.
            client: Encryption client for object transfers.
            store: Store used for listing (defaults to the client's store).
            cancel_event: Run-wide cancellation signal.
        """
        self._config = config
        self._client = client
        self._store = store if store is not None else client.store
        self._executor = TransferExecutor(client, config.bucket, cancel_event=cancel_event)
        self.state = RunState.IDLE
        self.error: BaseException | None = None

    def run(self) -> SyncResult:
        """Enumerate, map and transfer every item.

        Returns:
            SyncResult listing the transferred items.

        Raises:
            ConfigError: If the configuration is invalid (before any I/O).
            EnumerationError: If listing or walking fails.
            MappingError: If members cannot be mapped unambiguously.
            TransferError: On the first failing item.

        Any exception, KeyboardInterrupt included, leaves the run FAILED
        with the exception in error.
        """
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Run already started (state: {self.state.name})")

        try:
            self._config.validate()
            return self._run()
        except BaseException as e:
            self.state = RunState.FAILED
            self.error = e
            logger.debug(f"Run failed: {e!r}")
            raise

    def _run(self) -> SyncResult:
        config = self._config
        result = SyncResult(direction=config.direction)

        self.state = RunState.ENUMERATING
        items = self._map_download() if config.is_download else self._map_upload()
        self.state = RunState.MAPPING_COMPLETE
        logger.info(
            f"{config.direction.value}: {len(items)} item(s) for "
            f"{config.bucket}/{config.object_key} ({self._store.location})"
        )

        self.state = RunState.TRANSFERRING
        if config.is_download:
            result.bytes_transferred = self._executor.download_items(items)
        else:
            result.bytes_transferred = self._executor.upload_items(items)
        result.items = items

        self.state = RunState.DONE
        return result

    def _map_download(self) -> list[TransferItem]:
        config = self._config
        members = list_members(self._store, config.bucket, config.object_key)
        return map_download(config.object_key, config.local_path, members)

    def _map_upload(self) -> list[TransferItem]:
        config = self._config
        files = walk_local_files(config.local_path)
        return map_upload(config.object_key, config.local_path, files)
