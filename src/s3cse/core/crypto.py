"""Cryptographic functions for s3cse.

This module provides:
- Random data key and IV generation
- Authenticated payload encryption using AES-256-GCM
- Chunked stream encryption for object bodies of any size
"""

import os
from typing import IO

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

# AES-GCM constants
DATA_KEY_SIZE = 32  # 256 bits
IV_SIZE = 12  # 96 bits (recommended for AES-GCM)
TAG_SIZE = 16  # 128 bits

# Bytes read per stream encryption step
CHUNK_SIZE = 1024 * 1024

# Content and wrapping algorithm names, as written to object metadata
CONTENT_ALGORITHM = "AES/GCM/NoPadding"
AES_GCM_WRAP_ALGORITHM = "AES/GCM"
KMS_CONTEXT_WRAP_ALGORITHM = "kms+context"


def generate_data_key() -> bytes:
    """Generate a random 256-bit data key.

    Returns:
        32 bytes of random data for use as a content encryption key.
    """
    return AESGCM.generate_key(bit_length=DATA_KEY_SIZE * 8)


def generate_iv() -> bytes:
    """Generate a random 96-bit initialization vector.

    Returns:
        12 bytes of random data.
    """
    return os.urandom(IV_SIZE)


def encrypt_payload(data: bytes, key: bytes, iv: bytes, aad: bytes | None = None) -> bytes:
    """Encrypt data using AES-256-GCM.

    Args:
        data: Plaintext data to encrypt.
        key: 32-byte data key.
        iv: 12-byte initialization vector (never reuse with the same key).
        aad: Optional additional authenticated data.

    Returns:
        Encrypted data in format: ciphertext || auth_tag (16 bytes)
    """
    return AESGCM(key).encrypt(iv, data, aad)


def decrypt_payload(encrypted: bytes, key: bytes, iv: bytes, aad: bytes | None = None) -> bytes:
    """Decrypt data encrypted with encrypt_payload.

    Args:
        encrypted: Data in format: ciphertext || auth_tag (16 bytes)
        key: 32-byte data key.
        iv: 12-byte initialization vector used at encryption time.
        aad: Additional authenticated data used at encryption time.

    Returns:
        Decrypted plaintext data.

    Raises:
        cryptography.exceptions.InvalidTag: If authentication fails (wrong key or tampered data).
    """
    return AESGCM(key).decrypt(iv, encrypted, aad)



def encrypt_stream(source: IO[bytes], destination: IO[bytes], key: bytes, iv: bytes) -> int:
    """Encrypt a stream using AES-256-GCM, CHUNK_SIZE bytes at a time.

    Writes ciphertext || auth_tag (16 bytes) to destination, the same layout
    as encrypt_payload, without holding the payload in memory.

    Args:
        source: Readable binary stream with the plaintext.
        destination: Writable binary stream receiving the ciphertext.
        key: 32-byte data key.
        iv: 12-byte initialization vector (never reuse with the same key).

    Returns:
        Number of plaintext bytes read.
    """
    encryptor = Cipher(algorithms.AES(key), modes.GCM(iv)).encryptor()
    total = 0
    while True:
        chunk = source.read(CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        destination.write(encryptor.update(chunk))
    destination.write(encryptor.finalize())
    destination.write(encryptor.tag)
    return total


def decrypt_stream(source: IO[bytes], destination: IO[bytes], key: bytes, iv: bytes) -> int:
    """Decrypt a stream written by encrypt_stream, CHUNK_SIZE bytes at a time.

    Plaintext is written to destination before the tag is checked, so the
    caller must discard what was written when this raises.

    Args:
        source: Readable binary stream with ciphertext || auth_tag.
        destination: Writable binary stream receiving the plaintext.
        key: 32-byte data key.
        iv: 12-byte initialization vector used at encryption time.

    Returns:
        Number of plaintext bytes written.

    Raises:
        cryptography.exceptions.InvalidTag: If authentication fails (wrong key,
            tampered or truncated data).
    """
    decryptor = Cipher(algorithms.AES(key), modes.GCM(iv)).decryptor()
    # The last TAG_SIZE bytes seen so far may be the tag
    pending = b""
    total = 0
    while True:
        chunk = source.read(CHUNK_SIZE)
        if not chunk:
            break
        pending += chunk
        if len(pending) > TAG_SIZE:
            plaintext = decryptor.update(pending[:-TAG_SIZE])
            pending = pending[-TAG_SIZE:]
            destination.write(plaintext)
            total += len(plaintext)

    if len(pending) < TAG_SIZE:
        raise InvalidTag()
    destination.write(decryptor.finalize_with_tag(pending))
    return total
