"""CLI commands for sidecarpath.

This package contains all subcommand implementations.
"""

from sidecarpath.cli.commands import allocate, census, clean, config, validate

__all__ = ["allocate", "census", "clean", "config", "validate"]
