"""Client-side envelope encryption over an object store.

This module provides:
- EncryptionClient: put/get objects with per-object data keys, streamed
  in chunks so object size is not bounded by memory
- DecryptionError: raised when an object cannot be authenticated

Object metadata follows the S3 Encryption Client v2 layout, so objects
written here can be read by other S3 encryption clients and vice versa
(authenticated modes only).
"""

from __future__ import annotations

import base64
import json
import logging
import tempfile
from typing import IO

from cryptography.exceptions import InvalidTag

from s3cse.client.keyring import Keyring, KeyringError
from s3cse.client.storage import ObjectStore
from s3cse.core.crypto import (
    CONTENT_ALGORITHM,
    IV_SIZE,
    TAG_SIZE,
    decrypt_stream,
    encrypt_stream,
    generate_iv,
)

logger = logging.getLogger(__name__)

# Object metadata keys (stored as x-amz-meta-<name> on S3)
META_KEY_V2 = "x-amz-key-v2"
META_IV = "x-amz-iv"
META_MATDESC = "x-amz-matdesc"
META_WRAP_ALG = "x-amz-wrap-alg"
META_CEK_ALG = "x-amz-cek-alg"
META_TAG_LEN = "x-amz-tag-len"
META_PLAINTEXT_LENGTH = "x-amz-unencrypted-content-length"

# Metadata of the legacy (v1, unauthenticated AES-CBC) format
LEGACY_META_KEY = "x-amz-key"

# Bodies up to this size are buffered in memory, larger ones on disk
SPOOL_MAX_SIZE = 8 * 1024 * 1024


class DecryptionError(Exception):
    """Raised when an object cannot be decrypted or fails authentication."""


class EncryptionError(Exception):
    """Raised when an object cannot be encrypted for upload."""


class EncryptionClient:
    """Stores and retrieves objects with client-side envelope encryption.

    Every object gets a fresh data key from the keyring; the wrapped key,
    IV and material description travel in the object metadata. Only
    AES-GCM content encryption is accepted on read.
    """

    def __init__(self, store: ObjectStore, keyring: Keyring) -> None:
        """Initialize the client.

        Args:
            store: Backend holding encrypted objects.
            keyring: Source of data keys.
        """
        self._store = store
        self._keyring = keyring

    @property
    def store(self) -> ObjectStore:
        """The underlying object store."""
        return self._store

    def put_object(self, bucket: str, key: str, body: IO[bytes]) -> int:
        """Encrypt a stream and store it, replacing any existing object.

        The ciphertext is spooled to a temporary file (in memory up to
        SPOOL_MAX_SIZE) before it is handed to the store.

        Args:
            bucket: Bucket name.
            key: Object key.
            body: Readable binary stream with the plaintext.

        Returns:
            Number of plaintext bytes stored.

        Raises:
            EncryptionError: If no data key could be obtained.
            StorageError: If the backend rejects the object.
        """
        try:
            data_key = self._keyring.generate()
        except KeyringError as e:
            raise EncryptionError(str(e)) from e

        iv = generate_iv()
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE) as ciphertext:
            size = encrypt_stream(body, ciphertext, data_key.plaintext, iv)
            ciphertext.seek(0)
            metadata = {
                META_KEY_V2: base64.b64encode(data_key.wrapped).decode(),
                META_IV: base64.b64encode(iv).decode(),
                META_MATDESC: json.dumps(data_key.encryption_context, separators=(",", ":")),
                META_WRAP_ALG: data_key.wrap_algorithm,
                META_CEK_ALG: CONTENT_ALGORITHM,
                META_TAG_LEN: str(TAG_SIZE * 8),
                META_PLAINTEXT_LENGTH: str(size),
            }
            self._store.put(bucket, key, ciphertext, metadata)

        logger.debug(f"Stored {bucket}/{key}: {size} bytes ({data_key.wrap_algorithm})")
        return size

    def download_fileobj(self, bucket: str, key: str, fileobj: IO[bytes]) -> int:
        """Fetch an object and stream its decrypted body into fileobj.

        Plaintext is written as it is decrypted and the authentication tag
        is checked at the end. When this raises, whatever was written to
        fileobj must be discarded.

        Args:
            bucket: Bucket name.
            key: Object key.
            fileobj: Writable binary stream receiving the plaintext.

        Returns:
            Number of plaintext bytes written.

        Raises:
            DecryptionError: If the object is not encrypted in a supported
                authenticated mode, or fails authentication.
            ObjectNotFoundError: If the object doesn't exist.
            StorageError: If the backend rejects the request.
        """
        with self._store.get(bucket, key) as stored:
            data_key, iv = self._content_key(bucket, key, stored.metadata)
            try:
                return decrypt_stream(stored.body, fileobj, data_key, iv)
            except InvalidTag as e:
                raise DecryptionError(
                    f"{bucket}/{key}: authentication failed (wrong key or tampered data)"
                ) from e

    def get_object(self, bucket: str, key: str) -> IO[bytes]:
        """Fetch, authenticate and decrypt an object.

        The plaintext is only returned after the authentication tag has been
        verified, so callers never see unauthenticated data.

        Args:
            bucket: Bucket name.
            key: Object key.

        Returns:
            Readable binary stream with the plaintext, positioned at the start.

        Raises:
            DecryptionError: If the object is not encrypted in a supported
                authenticated mode, or fails authentication.
            ObjectNotFoundError: If the object doesn't exist.
            StorageError: If the backend rejects the request.
        """
        plaintext = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)
        try:
            self.download_fileobj(bucket, key, plaintext)
        except BaseException:
            plaintext.close()
            raise
        plaintext.seek(0)
        return plaintext

    def _content_key(self, bucket: str, key: str, raw_metadata: dict[str, str]) -> tuple[bytes, bytes]:
        """Validate envelope metadata and unwrap the data key.

        Returns:
            (data key, IV) for the object body.
        """
        metadata = {name.lower(): value for name, value in raw_metadata.items()}

        if LEGACY_META_KEY in metadata and META_KEY_V2 not in metadata:
            raise DecryptionError(
                f"{bucket}/{key} uses the legacy unauthenticated format, which is not supported"
            )
        if META_KEY_V2 not in metadata:
            raise DecryptionError(f"{bucket}/{key} has no envelope encryption metadata")

        cek_alg = metadata.get(META_CEK_ALG)
        if cek_alg != CONTENT_ALGORITHM:
            raise DecryptionError(f"{bucket}/{key}: unsupported content algorithm {cek_alg!r}")

        wrap_alg = metadata.get(META_WRAP_ALG)
        if wrap_alg != self._keyring.wrap_algorithm:
            raise DecryptionError(
                f"{bucket}/{key}: wrap algorithm {wrap_alg!r} does not match "
                f"keyring ({self._keyring.wrap_algorithm!r})"
            )

        try:
            wrapped = base64.b64decode(metadata[META_KEY_V2])
            iv = base64.b64decode(metadata.get(META_IV, ""))
            context = dict(json.loads(metadata.get(META_MATDESC) or "{}"))
        except ValueError as e:
            raise DecryptionError(f"{bucket}/{key}: malformed encryption metadata") from e

        if len(iv) != IV_SIZE:
            raise DecryptionError(f"{bucket}/{key}: invalid IV length {len(iv)}")

        try:
            return self._keyring.unwrap(wrapped, context), iv
        except KeyringError as e:
            raise DecryptionError(f"{bucket}/{key}: {e}") from e
