"""Shared types and dataclasses for transfer runs.

This module provides:
- TransferItem: a resolved (source, destination) pair
- RunState: lifecycle of a run
- SyncResult: outcome of a successful run
- SyncError and subclasses: the run error taxonomy
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, auto
from pathlib import Path

from s3cse.core.config import ConfigError
from s3cse.core.types import SyncError, TransferDirection


@dataclass(frozen=True)
class TransferItem:
    """One object/file pair ready for data movement.

    For downloads, source is the object key and destination the local path;
    for uploads, source is the local path and destination the object key.
    """

    source: str | Path
    destination: str | Path

    def __str__(self) -> str:
        return f"{self.source} -> {self.destination}"


class RunState(IntEnum):
    """State of a transfer run.

    IDLE -> ENUMERATING -> MAPPING_COMPLETE -> TRANSFERRING -> DONE,
    or FAILED from any state. DONE and FAILED are terminal.
    """

    IDLE = auto()
    ENUMERATING = auto()
    MAPPING_COMPLETE = auto()
    TRANSFERRING = auto()
    DONE = auto()
    FAILED = auto()


@dataclass
class SyncResult:
    """Result of a completed run."""

    direction: TransferDirection
    items: list[TransferItem] = field(default_factory=list)
    bytes_transferred: int = 0

    @property
    def count(self) -> int:
        """Number of items transferred."""
        return len(self.items)


class EnumerationError(SyncError):
    """Listing the bucket or walking the local tree failed."""


class MappingError(SyncError):
    """Enumerated members cannot be mapped to unambiguous destinations."""


class TransferError(SyncError):
    """A transfer item failed.

    Attributes:
        item: The item being transferred.
        direction: Download or upload.
        cause: The underlying error, also chained as __cause__.
    """

    def __init__(
        self,
        item: TransferItem,
        direction: TransferDirection,
        cause: BaseException | None = None,
    ) -> None:
        self.item = item
        self.direction = direction
        self.cause = cause
        message = f"{direction.value} failed for {item}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DownloadError(TransferError):
    """Failed to download an object."""


class UploadError(TransferError):
    """Failed to upload a file."""


class TransferCancelledError(TransferError):
    """The run was cancelled before this item started."""


__all__ = [
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
