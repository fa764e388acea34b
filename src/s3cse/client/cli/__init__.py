"""Command-line interface for s3cse.

This module provides the main CLI entry point and assembles all commands.

Commands:
- transfer: Download or upload files with client-side KMS encryption
- configure: Store default AWS settings
- show-config: Show stored defaults
"""

from __future__ import annotations

import click

from s3cse.client.cli.config import (
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
    setup_logging,
)
from s3cse.client.cli.configure import configure, show_config
from s3cse.client.cli.transfer import transfer


@click.group()
@click.version_option(package_name="s3cse")
def cli() -> None:
    """s3cse - S3 transfers with client-side KMS envelope encryption."""


# Transfer command
cli.add_command(transfer)

# Configuration commands
cli.add_command(configure)
cli.add_command(show_config)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "save_config",
    "setup_logging",
]
