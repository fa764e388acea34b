"""Tests for crypto module - Data keys and payload encryption."""

import io

import pytest
from cryptography.exceptions import InvalidTag

from s3cse.core import (
    DATA_KEY_SIZE,
    IV_SIZE,
    TAG_SIZE,
    crypto,
    decrypt_payload,
    decrypt_stream,
    encrypt_payload,
    encrypt_stream,
    generate_data_key,
    generate_iv,
)


class TestKeyGeneration:
    """Tests for data key and IV generation."""

    def test_data_key_returns_32_bytes(self) -> None:
        """Data keys should be 256 bits."""
        assert len(generate_data_key()) == DATA_KEY_SIZE == 32

    def test_data_key_unique(self) -> None:
        """Each data key should be unique."""
        keys = [generate_data_key() for _ in range(100)]
        assert len(set(keys)) == 100

    def test_iv_returns_12_bytes(self) -> None:
        """IVs should be 96 bits."""
        assert len(generate_iv()) == IV_SIZE == 12


class TestEncryption:
    """Tests for AES-256-GCM payload encryption/decryption."""

    @pytest.fixture
    def key(self) -> bytes:
        return generate_data_key()

    def test_ciphertext_carries_tag(self, key: bytes) -> None:
        """Ciphertext should be plaintext length plus the 16-byte tag."""
        data = b"hello world"
        encrypted = encrypt_payload(data, key, generate_iv())
        assert len(encrypted) == len(data) + TAG_SIZE

    def test_decrypt_recovers_plaintext(self, key: bytes) -> None:
        """Decryption with the same key and IV should return the plaintext."""
        iv = generate_iv()
        encrypted = encrypt_payload(b"payload", key, iv)
        assert decrypt_payload(encrypted, key, iv) == b"payload"

    def test_empty_payload(self, key: bytes) -> None:
        """Empty files should encrypt to just the tag."""
        iv = generate_iv()
        encrypted = encrypt_payload(b"", key, iv)
        assert len(encrypted) == TAG_SIZE
        assert decrypt_payload(encrypted, key, iv) == b""

    def test_wrong_key_fails(self, key: bytes) -> None:
        """Decryption with a different key should fail authentication."""
        iv = generate_iv()
        encrypted = encrypt_payload(b"secret", key, iv)
        with pytest.raises(InvalidTag):
            decrypt_payload(encrypted, generate_data_key(), iv)

    def test_tampered_ciphertext_fails(self, key: bytes) -> None:
        """A flipped ciphertext bit should fail authentication."""
        iv = generate_iv()
        encrypted = bytearray(encrypt_payload(b"secret data", key, iv))
        encrypted[0] ^= 0x01
        with pytest.raises(InvalidTag):
            decrypt_payload(bytes(encrypted), key, iv)

    def test_aad_must_match(self, key: bytes) -> None:
        """Additional authenticated data should be bound to the ciphertext."""
        iv = generate_iv()
        encrypted = encrypt_payload(b"secret", key, iv, b"context-a")
        with pytest.raises(InvalidTag):
            decrypt_payload(encrypted, key, iv, b"context-b")


class TestStreamEncryption:
    """Tests for chunked stream encryption/decryption."""

    @pytest.fixture
    def key(self) -> bytes:
        return generate_data_key()

    @pytest.fixture(autouse=True)
    def small_chunks(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(crypto, "CHUNK_SIZE", 5)

    def test_same_layout_as_payload(self, key: bytes) -> None:
        """Stream output should equal one-shot output for the same key and IV."""
        iv = generate_iv()
        data = b"spans several small chunks"
        out = io.BytesIO()

        assert encrypt_stream(io.BytesIO(data), out, key, iv) == len(data)
        assert out.getvalue() == encrypt_payload(data, key, iv)

    def test_multi_chunk_round_trip(self, key: bytes) -> None:
        """A stream of many chunks should decrypt back to the plaintext."""
        iv = generate_iv()
        data = bytes(range(256)) * 3
        encrypted = io.BytesIO()
        encrypt_stream(io.BytesIO(data), encrypted, key, iv)
        encrypted.seek(0)
        decrypted = io.BytesIO()

        assert decrypt_stream(encrypted, decrypted, key, iv) == len(data)
        assert decrypted.getvalue() == data

    def test_decrypts_one_shot_ciphertext(self, key: bytes) -> None:
        """Objects written with encrypt_payload stream-decrypt too."""
        iv = generate_iv()
        decrypted = io.BytesIO()

        decrypt_stream(io.BytesIO(encrypt_payload(b"compatible", key, iv)), decrypted, key, iv)

        assert decrypted.getvalue() == b"compatible"

    def test_tampered_tag_fails(self, key: bytes) -> None:
        """A flipped tag bit should fail authentication at the end."""
        iv = generate_iv()
        encrypted = bytearray(encrypt_payload(b"0123456789" * 4, key, iv))
        encrypted[-1] ^= 0x01
        with pytest.raises(InvalidTag):
            decrypt_stream(io.BytesIO(bytes(encrypted)), io.BytesIO(), key, iv)

    def test_truncated_stream_fails(self, key: bytes) -> None:
        """A stream shorter than the tag cannot be authenticated."""
        with pytest.raises(InvalidTag):
            decrypt_stream(io.BytesIO(b"short"), io.BytesIO(), key, generate_iv())

    def test_empty_stream(self, key: bytes) -> None:
        """An empty plaintext should produce just the tag."""
        iv = generate_iv()
        encrypted = io.BytesIO()

        assert encrypt_stream(io.BytesIO(b""), encrypted, key, iv) == 0
        assert len(encrypted.getvalue()) == TAG_SIZE
        encrypted.seek(0)
        assert decrypt_stream(encrypted, io.BytesIO(), key, iv) == 0
