"""Shared types and utilities for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

from enum import Enum
from pathlib import Path

import typer

from sidecarpath.core.config import ConfigError, ReclaimConfig, load_reclaim_config
from sidecarpath.utils.formatting import print_error


class OutputFormat(str, Enum):
    """Output format options for report-producing commands."""

    TABLE = "table"
    JSON = "json"


def get_config_path(ctx: typer.Context) -> Path | None:
    """Get the --config override stored by the main callback, if any."""
    obj = ctx.find_root().obj
    if isinstance(obj, dict):
        return obj.get("config_path")
    return None


def load_config_or_exit(ctx: typer.Context) -> ReclaimConfig:
    """Load the reclaimer config, exiting with code 1 on errors.

    Args:
        ctx: Typer context carrying the global --config option.

    Returns:
        Validated ReclaimConfig (defaults when no file exists).
    """
    try:
        return load_reclaim_config(get_config_path(ctx))
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
