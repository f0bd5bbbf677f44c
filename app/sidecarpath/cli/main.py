"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from pathlib import Path
from typing import Annotated

import typer

from sidecarpath import __version__
from sidecarpath.cli.commands import allocate, census, clean, config, validate
from sidecarpath.utils.formatting import setup_logging

# Create main Typer app
app = typer.Typer(
    name="sidecarpath",
    help="Host-path allocation and cleanup for FUSE sidecar containers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sidecarpath version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Reclaimer config file (default: ~/.config/sidecarpath/reclaim.toml).",
        ),
    ] = None,
) -> None:
    """sidecarpath - host-path allocation and cleanup for FUSE sidecars.

    Allocates a unique host directory per sidecar injection and reclaims
    directories left behind by deleted Pods.
    """
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = config_path
    setup_logging(verbose=verbose, quiet=quiet)


# Register commands
app.command(name="clean")(clean.clean)
app.command(name="census")(census.census)
app.command(name="allocate")(allocate.allocate)
app.command(name="validate")(validate.validate)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
