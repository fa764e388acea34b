"""Data key wrapping for envelope encryption.

This module provides:
- Keyring: interface producing and unwrapping per-object data keys
- KmsKeyring: AWS KMS with encryption context ("kms+context")
- RawAesKeyring: local AES-GCM wrapping key, for development and tests
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cryptography.exceptions import InvalidTag

from s3cse.core.crypto import (
    AES_GCM_WRAP_ALGORITHM,
    CONTENT_ALGORITHM,
    IV_SIZE,
    KMS_CONTEXT_WRAP_ALGORITHM,
    decrypt_payload,
    encrypt_payload,
    generate_data_key,
    generate_iv,
)

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

# Encryption context key binding the wrapped key to the content algorithm
CEK_ALG_CONTEXT_KEY = "aws:x-amz-cek-alg"


class KeyringError(Exception):
    """Raised when a data key cannot be generated or unwrapped."""


@dataclass
class DataKey:
    """A plaintext data key with its wrapped form.

    Attributes:
        plaintext: 32-byte key used to encrypt one object.
        wrapped: Encrypted data key, stored in object metadata.
        wrap_algorithm: Algorithm name recorded as x-amz-wrap-alg.
        encryption_context: Material description recorded as x-amz-matdesc.
    """

    plaintext: bytes
    wrapped: bytes
    wrap_algorithm: str
    encryption_context: dict[str, str]


class Keyring(ABC):
    """Abstract interface for data key generation and unwrapping."""

    @property
    @abstractmethod
    def wrap_algorithm(self) -> str:
        """Wrap algorithm name this keyring produces and accepts."""

    @abstractmethod
    def generate(self) -> DataKey:
        """Generate a new data key for one object."""

    @abstractmethod
    def unwrap(self, wrapped: bytes, encryption_context: dict[str, str]) -> bytes:
        """Recover the plaintext data key.

        Args:
            wrapped: Encrypted data key from object metadata.
            encryption_context: Material description from object metadata.

        Returns:
            32-byte plaintext data key.

        Raises:
            KeyringError: If the key cannot be unwrapped.
        """


class KmsKeyring(Keyring):
    """Wraps data keys with an AWS KMS key.

    The encryption context always binds the content algorithm, so a wrapped
    key cannot be replayed against an object using a different algorithm.
    """

    def __init__(self, kms_client: Any, key_arn: str) -> None:
        """Initialize the keyring.

        Args:
            kms_client: A boto3 KMS client.
            key_arn: ARN (or id/alias) of the KMS key.
        """
        self._client = kms_client
        self._key_arn = key_arn

    @property
    def wrap_algorithm(self) -> str:
        return KMS_CONTEXT_WRAP_ALGORITHM

    def generate(self) -> DataKey:
        """Generate an AES-256 data key under the KMS key."""
        from botocore.exceptions import BotoCoreError, ClientError

        context = {CEK_ALG_CONTEXT_KEY: CONTENT_ALGORITHM}
        try:
            response = self._client.generate_data_key(
                KeyId=self._key_arn,
                KeySpec="AES_256",
                EncryptionContext=context,
            )
        except (BotoCoreError, ClientError) as e:
            raise KeyringError(f"KMS GenerateDataKey failed for {self._key_arn}: {e}") from e

        return DataKey(
            plaintext=response["Plaintext"],
            wrapped=response["CiphertextBlob"],
            wrap_algorithm=KMS_CONTEXT_WRAP_ALGORITHM,
            encryption_context=context,
        )

    def unwrap(self, wrapped: bytes, encryption_context: dict[str, str]) -> bytes:
        """Decrypt the data key with KMS using the stored encryption context."""
        from botocore.exceptions import BotoCoreError, ClientError

        if encryption_context.get(CEK_ALG_CONTEXT_KEY) != CONTENT_ALGORITHM:
            raise KeyringError(
                "Encryption context does not bind the content algorithm "
                f"({CEK_ALG_CONTEXT_KEY}={encryption_context.get(CEK_ALG_CONTEXT_KEY)!r})"
            )

        try:
            response = self._client.decrypt(
                CiphertextBlob=wrapped,
                KeyId=self._key_arn,
                EncryptionContext=encryption_context,
            )
        except (BotoCoreError, ClientError) as e:
            raise KeyringError(f"KMS Decrypt failed for {self._key_arn}: {e}") from e

        plaintext: bytes = response["Plaintext"]
        return plaintext


class RawAesKeyring(Keyring):
    """Wraps data keys locally with a 256-bit AES-GCM wrapping key.

    Wrapped form: iv (12 bytes) || encrypted data key || auth_tag (16 bytes).
    """

    def __init__(self, wrapping_key: bytes) -> None:
        if len(wrapping_key) != 32:
            raise KeyringError("Wrapping key must be 32 bytes")
        self._wrapping_key = wrapping_key

    @property
    def wrap_algorithm(self) -> str:
        return AES_GCM_WRAP_ALGORITHM

    def generate(self) -> DataKey:
        context = {CEK_ALG_CONTEXT_KEY: CONTENT_ALGORITHM}
        plaintext = generate_data_key()
        iv = generate_iv()
        wrapped = iv + encrypt_payload(plaintext, self._wrapping_key, iv, CONTENT_ALGORITHM.encode())
        return DataKey(
            plaintext=plaintext,
            wrapped=wrapped,
            wrap_algorithm=AES_GCM_WRAP_ALGORITHM,
            encryption_context=context,
        )

    def unwrap(self, wrapped: bytes, encryption_context: dict[str, str]) -> bytes:
        iv, encrypted = wrapped[:IV_SIZE], wrapped[IV_SIZE:]
        try:
            return decrypt_payload(encrypted, self._wrapping_key, iv, CONTENT_ALGORITHM.encode())
        except InvalidTag as e:
            raise KeyringError("Invalid wrapping key or corrupted data key") from e
