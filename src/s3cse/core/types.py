"""Shared types for s3cse.

This module defines the base error and enums used across core and client.
"""

from __future__ import annotations

from enum import Enum


class SyncError(Exception):
    """Base exception for run errors."""


class TransferDirection(str, Enum):
    """Direction of a transfer run."""

    DOWNLOAD = "download"
    UPLOAD = "upload"
