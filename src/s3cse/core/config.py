"""Run configuration for s3cse.

This module defines the immutable configuration value built once at startup
and passed to every component of a transfer run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from s3cse.core.types import SyncError, TransferDirection


class ConfigError(SyncError):
    """Raised when the run configuration is invalid.

    Always detected before any network or filesystem I/O takes place.
    """


@dataclass(frozen=True)
class RunConfig:
    """Configuration for a single one-directional transfer run.

    Attributes:
        direction: Whether objects are downloaded or files are uploaded.
        bucket: S3 bucket name.
        object_key: Object key, or key prefix when it ends with "/".
        local_path: Local base path (file or directory).
        kms_key_arn: KMS key used to wrap data keys.
        region: AWS region for S3 and KMS clients.
        profile: AWS shared-config profile name.
        endpoint_url: Custom S3 endpoint (MinIO, LocalStack, ...).
    """

    direction: TransferDirection
    bucket: str
    object_key: str
    local_path: Path
    kms_key_arn: str
    region: str | None = None
    profile: str | None = None
    endpoint_url: str | None = None

    @classmethod
    def from_flags(
        cls,
        download: bool,
        upload: bool,
        bucket: str | None,
        object_key: str | None,
        local_path: str | Path | None,
        kms_key_arn: str | None,
        region: str | None = None,
        profile: str | None = None,
        endpoint_url: str | None = None,
    ) -> RunConfig:
        """Build a validated config from command-line style flags.

        Args:
            download: Download mode flag.
            upload: Upload mode flag.
            bucket: S3 bucket name.
            object_key: Object key or prefix.
            local_path: Local base path.
            kms_key_arn: KMS key ARN.
            region: Optional AWS region.
            profile: Optional AWS profile.
            endpoint_url: Optional S3 endpoint URL.

        Returns:
            A validated RunConfig.

        Raises:
            ConfigError: If both or neither mode flags are set, or a required
                value is missing.
        """
        if download == upload:
            raise ConfigError("Specify exactly one of --download or --upload")

        missing = _missing_options(bucket, object_key, local_path, kms_key_arn)
        if missing:
            raise ConfigError(f"Missing required option(s): {', '.join(missing)}")

        return cls(
            direction=TransferDirection.DOWNLOAD if download else TransferDirection.UPLOAD,
            bucket=bucket or "",
            object_key=object_key or "",
            local_path=Path(local_path or ""),
            kms_key_arn=kms_key_arn or "",
            region=region or None,
            profile=profile or None,
            endpoint_url=endpoint_url or None,
        )

    def validate(self) -> None:
        """Check that every required value is present.

        Raises:
            ConfigError: If a required value is missing; every missing
                option is named.
        """
        missing = _missing_options(self.bucket, self.object_key, self.local_path, self.kms_key_arn)
        if missing:
            raise ConfigError(f"Missing required option(s): {', '.join(missing)}")

    @property
    def is_download(self) -> bool:
        """True when this run downloads objects to the local filesystem."""
        return self.direction is TransferDirection.DOWNLOAD


def _missing_options(
    bucket: str | None,
    object_key: str | None,
    local_path: str | Path | None,
    kms_key_arn: str | None,
) -> list[str]:
    """Return the command-line names of required values that are empty."""
    return [
        flag
        for flag, value in (
            ("--bucket", bucket),
            ("--object-key", object_key),
            ("--path", local_path),
            ("--kms-key-arn", kms_key_arn),
        )
        if not value
    ]
