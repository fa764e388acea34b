"""Mapping between object keys and local paths.

Pure functions: given the enumerated members of a transfer, compute the
destination of every item. No I/O happens here.

Object keys always use "/" as separator, whatever the host convention.
A key ending with "/" is a prefix (a virtual folder) and stands for
zero or more member objects; any other key is exactly one object.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from s3cse.client.sync.types import MappingError, TransferItem

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "/"


def is_prefix(object_key: str) -> bool:
    """Check whether an object key denotes a prefix rather than one object."""
    return object_key.endswith(KEY_SEPARATOR)


def object_key_to_local_path(local_base: Path, relative_key: str) -> Path:
    """Join a relative object key onto a local base directory.

    The key is split on "/" so the host separator is used on disk.

    Args:
        local_base: Local base directory.
        relative_key: Key relative to the transfer prefix.

    Returns:
        Local path under local_base.

    Raises:
        MappingError: If the key would resolve outside local_base.
    """
    key_path = PurePosixPath(relative_key)
    if key_path.is_absolute() or ".." in key_path.parts:
        raise MappingError(f"Object key {relative_key!r} escapes the local base path {local_base}")
    return local_base.joinpath(*key_path.parts)


def map_download(
    object_key: str,
    local_base: Path,
    member_keys: Iterable[str],
) -> list[TransferItem]:
    """Compute local destinations for downloaded objects.

    For a prefix (or several members), each member keeps its structure
    below the prefix: ``reports/2024/jan.csv`` under ``reports/`` lands at
    ``<base>/2024/jan.csv``. A single non-prefix object lands directly
    under the base using only its final key segment.

    Args:
        object_key: Requested object key or prefix.
        local_base: Local base directory.
        member_keys: Keys found for the request (the key itself for a
            single object).

    Returns:
        One TransferItem per member, source = key, destination = path.
        Zero members give an empty list.

    Raises:
        MappingError: If a member key would land outside local_base.
    """
    keys = list(member_keys)

    if not is_prefix(object_key) and len(keys) == 1:
        key = keys[0]
        return [TransferItem(source=key, destination=local_base / posixpath.basename(key))]

    items: list[TransferItem] = []
    for key in keys:
        relative_key = key.removeprefix(object_key)
        if not relative_key or relative_key.endswith(KEY_SEPARATOR):
            # Zero-byte "folder" marker objects carry no file content
            logger.debug(f"Skipping folder marker {key}")
            continue
        items.append(
            TransferItem(source=key, destination=object_key_to_local_path(local_base, relative_key))
        )
    return items


def map_upload(
    object_key: str,
    local_base: Path,
    files: Iterable[Path],
) -> list[TransferItem]:
    """Compute object keys for uploaded files.

    With a prefix, each file keeps its position relative to local_base:
    ``/data/sub/y.txt`` under ``/data`` with prefix ``archive/`` becomes
    ``archive/sub/y.txt``. When local_base is itself the file, the key is
    the prefix plus the file name. Without a prefix, the object key is
    used verbatim and only a single file is accepted.

    Args:
        object_key: Destination object key or prefix.
        local_base: Local base path, directory or single file.
        files: Regular files found under local_base.

    Returns:
        One TransferItem per file, source = path, destination = key.

    Raises:
        MappingError: If several files would map onto one non-prefix key.
    """
    paths = list(files)

    if not is_prefix(object_key):
        if len(paths) > 1:
            raise MappingError(
                f"{len(paths)} files under {local_base} would all be uploaded to the single "
                f"key {object_key!r}; use a key ending with '/' to upload a directory"
            )
        return [TransferItem(source=path, destination=object_key) for path in paths]

    items: list[TransferItem] = []
    for path in paths:
        relative = path.relative_to(local_base)
        if relative == Path("."):
            relative_key = path.name
        else:
            relative_key = relative.as_posix()
        items.append(TransferItem(source=path, destination=posixpath.join(object_key, relative_key)))
    return items
