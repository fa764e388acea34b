"""Configuration commands for the s3cse CLI.

Commands:
- configure: Store default AWS settings
- show-config: Show stored defaults
"""

from __future__ import annotations

import click

from s3cse.client.cli.config import CONFIG_KEYS, get_config_file, load_config, save_config


@click.command()
@click.option("--region", help="Default AWS region.")
@click.option("--profile", help="Default AWS profile name.")
@click.option("--endpoint-url", help="Default S3 endpoint URL.")
@click.option("--kms-key-arn", help="Default KMS key ARN.")
@click.option("--unset", multiple=True, type=click.Choice(CONFIG_KEYS), help="Remove a stored default.")
def configure(
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    kms_key_arn: str | None,
    unset: tuple[str, ...],
) -> None:
    """Store defaults used when options are omitted from 'transfer'.

    Explicit command-line options always take precedence.
    """
    config = load_config()
    updates = {
        "region": region,
        "profile": profile,
        "endpoint_url": endpoint_url,
        "kms_key_arn": kms_key_arn,
    }
    changed = False
    for name, value in updates.items():
        if value:
            config[name] = value
            changed = True
    for name in unset:
        if config.pop(name, None) is not None:
            changed = True

    if not changed:
        click.echo("Nothing to change. Pass at least one option.")
        return

    save_config(config)
    click.echo(f"Saved configuration to {get_config_file()}")


@click.command("show-config")
def show_config() -> None:
    """Show stored defaults."""
    config = load_config()
    if not config:
        click.echo("No stored configuration.")
        return
    for name in CONFIG_KEYS:
        if name in config:
            click.echo(f"{name}: {config[name]}")
