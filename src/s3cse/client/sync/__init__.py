"""Transfer runs between a local filesystem and an object store.

Architecture:
    SyncDriver → Enumerator → PathKeyMapper → TransferExecutor

Components:
- **SyncDriver**: validates the run config, orchestrates one run, tracks its state
- **Enumerator**: lists a prefix (all pages) or walks a local tree
- **PathKeyMapper**: maps members to destination paths/keys (pure)
- **TransferExecutor**: moves items one at a time through the EncryptionClient
"""

from s3cse.client.sync.driver import SyncDriver
from s3cse.client.sync.enumerator import list_members, walk_local_files
from s3cse.client.sync.executor import TransferExecutor
from s3cse.client.sync.mapper import (
    KEY_SEPARATOR,
    is_prefix,
    map_download,
    map_upload,
    object_key_to_local_path,
)
from s3cse.client.sync.types import (
    ConfigError,
    DownloadError,
    EnumerationError,
    MappingError,
    RunState,
    SyncError,
    SyncResult,
    TransferCancelledError,
    TransferError,
    TransferItem,
    UploadError,
)

__all__ = [
    # Driver
    "SyncDriver",
    # Enumerator
    "list_members",
    "walk_local_files",
    # Mapper
    "KEY_SEPARATOR",
    "is_prefix",
    "map_download",
    "map_upload",
    "object_key_to_local_path",
    # Executor
    "TransferExecutor",
    # Types and errors
    "ConfigError",
    "DownloadError",
    "EnumerationError",
    "MappingError",
    "RunState",
    "SyncError",
    "SyncResult",
    "TransferCancelledError",
    "TransferError",
    "TransferItem",
    "UploadError",
]
