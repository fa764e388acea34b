"""Core module - Run configuration and payload crypto."""

from s3cse.core.config import ConfigError, RunConfig
from s3cse.core.crypto import (
    CHUNK_SIZE,
    CONTENT_ALGORITHM,
    DATA_KEY_SIZE,
    IV_SIZE,
    TAG_SIZE,
    decrypt_payload,
    decrypt_stream,
    encrypt_payload,
    encrypt_stream,
    generate_data_key,
    generate_iv,
)
from s3cse.core.types import SyncError, TransferDirection

__all__ = [
    # Config
    "ConfigError",
    "RunConfig",
    # Crypto
    "CHUNK_SIZE",
    "CONTENT_ALGORITHM",
    "DATA_KEY_SIZE",
    "IV_SIZE",
    "TAG_SIZE",
    "decrypt_payload",
    "decrypt_stream",
    "encrypt_payload",
    "encrypt_stream",
    "generate_data_key",
    "generate_iv",
    # Types
    "SyncError",
    "TransferDirection",
]
