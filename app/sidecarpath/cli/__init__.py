"""CLI package for sidecarpath.

This package contains the Typer application and all subcommands.
"""

from sidecarpath.cli.main import app

__all__ = ["app"]
