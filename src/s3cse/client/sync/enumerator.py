"""Enumeration of transfer members.

This module provides:
- list_members: object keys under a prefix (or the single requested key)
- walk_local_files: regular files under a local base path
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from s3cse.client.storage import ObjectStore, StorageError
from s3cse.client.sync.mapper import is_prefix
from s3cse.client.sync.types import EnumerationError

logger = logging.getLogger(__name__)


def list_members(store: ObjectStore, bucket: str, object_key: str) -> Iterator[str]:
    """Yield the object keys a download request covers.

    A prefix is listed across all result pages; a single key is yielded
    as-is without any listing call.

    Args:
        store: Object store to list.
        bucket: Bucket name.
        object_key: Requested key or prefix.

    Yields:
        Member object keys, in listing order.

    Raises:
        EnumerationError: If listing fails.
    """
    if not is_prefix(object_key):
        yield object_key
        return

    logger.debug(f"Listing {bucket}/{object_key}")
    count = 0
    try:
        for key in store.list_keys(bucket, object_key):
            count += 1
            yield key
    except StorageError as e:
        raise EnumerationError(f"Failed to list {bucket}/{object_key}: {e}") from e
    logger.debug(f"Found {count} objects under {bucket}/{object_key}")


def _raise_walk_error(error: OSError) -> None:
    raise error


def walk_local_files(local_base: Path) -> Iterator[Path]:
    """Yield every regular file under a local base path.

    Directories are traversed in sorted order and never yielded themselves.
    A base path that is a file yields just that file. Symbolic links to
    directories are not followed.

    Args:
        local_base: Directory or file to walk.

    Yields:
        Paths of regular files.

    Raises:
        EnumerationError: If the base path is missing or any entry cannot
            be read; the walk stops at the first error.
    """
    if not local_base.exists():
        raise EnumerationError(f"Local path not found: {local_base}")

    if not local_base.is_dir():
        yield local_base
        return

    try:
        for dirpath, dirnames, filenames in os.walk(local_base, onerror=_raise_walk_error):
            directory = Path(dirpath)
            for name in list(dirnames):
                if (directory / name).is_symlink():
                    logger.debug(f"Skipping symlinked directory {directory / name}")
                    dirnames.remove(name)
            dirnames.sort()
            for name in sorted(filenames):
                path = directory / name
                if path.is_file():
                    yield path
                else:
                    logger.debug(f"Skipping non-regular file {path}")
    except OSError as e:
        raise EnumerationError(f"Failed to walk {local_base}: {e}") from e
