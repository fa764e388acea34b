"""Shared fixtures for s3cse tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from s3cse.client.encryption import EncryptionClient
from s3cse.client.keyring import RawAesKeyring
from s3cse.client.storage import LocalFSObjectStore

BUCKET = "b"


@pytest.fixture
def store(tmp_path: Path) -> LocalFSObjectStore:
    """Create a LocalFSObjectStore with one empty bucket."""
    local_store = LocalFSObjectStore(tmp_path / "buckets")
    local_store.create_bucket(BUCKET)
    return local_store


@pytest.fixture
def keyring() -> RawAesKeyring:
    """Create a RawAesKeyring with a fixed wrapping key."""
    return RawAesKeyring(b"k" * 32)


@pytest.fixture
def client(store: LocalFSObjectStore, keyring: RawAesKeyring) -> EncryptionClient:
    """Create an EncryptionClient over the local store."""
    return EncryptionClient(store, keyring)


@pytest.fixture
def mock_aws_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Set up moto mock for S3 and KMS with dummy credentials."""
    pytest.importorskip("moto")
    from moto import mock_aws

    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    with mock_aws():
        yield
