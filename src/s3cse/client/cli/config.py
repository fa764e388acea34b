"""Configuration utilities for the s3cse CLI.

This module provides persistent defaults shared across CLI commands.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

# Keys accepted in config.json
CONFIG_KEYS = ("region", "profile", "endpoint_url", "kms_key_arn")


def get_config_dir() -> Path:
    """Get the configuration directory for s3cse.

    Returns:
        Path to ~/.s3cse or equivalent.
    """
    return Path.home() / ".s3cse"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def resolve_option(name: str, value: str | None, config: dict[str, str]) -> str | None:
    """Pick an explicit option value, falling back to the stored default.

    Args:
        name: Config key (e.g. "region").
        value: Value given on the command line, if any.
        config: Loaded configuration.

    Returns:
        The effective value, or None.
    """
    if value:
        return value
    return config.get(name) or None


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the s3cse logger on stderr.

    Args:
        verbose: Enable DEBUG output.
    """
    root_logger = logging.getLogger("s3cse")
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Avoid stacking handlers when commands are invoked repeatedly (tests)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    log_format = "%(asctime)s - %(levelname)s - %(message)s" if verbose else "%(message)s"
    stderr_handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(stderr_handler)
