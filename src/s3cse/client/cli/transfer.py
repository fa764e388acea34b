"""Transfer command for the s3cse CLI.

Commands:
- transfer: Download objects or upload files with client-side encryption
"""

from __future__ import annotations

import contextlib
import signal
import sys
import threading
from collections.abc import Iterator

import click

from s3cse.client.cli.config import load_config, resolve_option, setup_logging
from s3cse.core.config import ConfigError, RunConfig


@contextlib.contextmanager
def cancel_on_sigterm(cancel_event: threading.Event) -> Iterator[None]:
    """Set cancel_event when SIGTERM arrives, for the duration of the block.

    Signal handlers can only be installed from the main thread; elsewhere
    the block runs without one.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def signal_handler(signum: int, frame: object) -> None:
        click.echo("\nStopping after the current item...", err=True)
        cancel_event.set()

    previous = signal.signal(signal.SIGTERM, signal_handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


@click.command()
@click.option("--download", is_flag=True, help="Download S3 objects to local with CSE-KMS.")
@click.option("--upload", is_flag=True, help="Upload local files to the S3 bucket with CSE-KMS.")
@click.option("--bucket", help="S3 bucket name.")
@click.option("--object-key", help="S3 object key; a key ending with '/' is a prefix.")
@click.option("--path", "local_path", type=click.Path(), help="Local path.")
@click.option("--kms-key-arn", help="KMS key ARN used to wrap data keys.")
@click.option("--region", help="AWS region.")
@click.option("--profile", help="AWS profile name.")
@click.option("--endpoint-url", help="Custom S3 endpoint URL.")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output.")
def transfer(
    download: bool,
    upload: bool,
    bucket: str | None,
    object_key: str | None,
    local_path: str | None,
    kms_key_arn: str | None,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    verbose: bool,
) -> None:
    """Download or upload files with client-side KMS encryption.

    Exactly one of --download or --upload is required. With an object key
    ending in '/', the whole prefix (download) or directory tree (upload)
    is transferred and its structure preserved.
    """
    import boto3
    from botocore.exceptions import BotoCoreError

    from s3cse.client.encryption import EncryptionClient
    from s3cse.client.keyring import KmsKeyring
    from s3cse.client.storage import create_store
    from s3cse.client.sync import SyncDriver, SyncError, TransferCancelledError

    setup_logging(verbose)
    defaults = load_config()

    try:
        config = RunConfig.from_flags(
            download=download,
            upload=upload,
            bucket=bucket,
            object_key=object_key,
            local_path=local_path,
            kms_key_arn=resolve_option("kms_key_arn", kms_key_arn, defaults),
            region=resolve_option("region", region, defaults),
            profile=resolve_option("profile", profile, defaults),
            endpoint_url=resolve_option("endpoint_url", endpoint_url, defaults),
        )
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    # Assume-role profiles with mfa_serial prompt for the MFA code on stdin
    try:
        session = boto3.Session(profile_name=config.profile, region_name=config.region)
        store = create_store(
            {"type": "s3", "region": config.region, "endpoint_url": config.endpoint_url},
            session=session,
        )
        kms_client = session.client("kms", region_name=config.region)
    except BotoCoreError as e:
        click.echo(f"Error: unable to load AWS credentials: {e}", err=True)
        sys.exit(1)

    client = EncryptionClient(store, KmsKeyring(kms_client, config.kms_key_arn))
    cancel_event = threading.Event()
    driver = SyncDriver(config, client, cancel_event=cancel_event)
    action = "download objects" if config.is_download else "upload objects"

    # SIGTERM stops the run before the next item; Ctrl-C aborts the item in flight
    try:
        with cancel_on_sigterm(cancel_event):
            result = driver.run()
    except TransferCancelledError as e:
        click.echo(f"Cancelled before {e.item}. Items completed before it were kept.", err=True)
        sys.exit(130)
    except SyncError as e:
        click.echo(f"Error: Failed to {action}: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted. Items completed before the interruption were kept.", err=True)
        sys.exit(130)

    verb = "Downloaded" if config.is_download else "Uploaded"
    click.echo(f"{verb} {result.count} item(s), {result.bytes_transferred} bytes.")
