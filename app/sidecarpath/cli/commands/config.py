"""Reclaimer configuration commands.

Provides commands to show the effective reclaimer configuration and to
write a default config file.
"""

from typing import Annotated

import typer

from sidecarpath.cli.types import get_config_path, load_config_or_exit
from sidecarpath.core.config import ConfigError, ReclaimConfig, save_reclaim_config
from sidecarpath.core.paths import get_reclaim_config_path
from sidecarpath.utils.formatting import console, create_table, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize the reclaimer configuration.",
    no_args_is_help=True,
)


@app.command()
def show(ctx: typer.Context) -> None:
    """Show the effective reclaimer configuration."""
    config = load_config_or_exit(ctx)
    path = get_config_path(ctx) or get_reclaim_config_path()

    table = create_table("Reclaimer Configuration")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for key, value in config.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)

    source = str(path) if path.exists() else f"defaults ({path} not found)"
    console.print(f"\n[muted]Source: {source}[/muted]")


@app.command()
def init(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with default settings."""
    path = get_config_path(ctx) or get_reclaim_config_path()

    if path.exists() and not force:
        print_info(f"Config already exists: {path} (use --force to overwrite)")
        return

    try:
        saved = save_reclaim_config(ReclaimConfig(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")
