"""Check paths against the allocated host-path grammar."""

from typing import Annotated

import typer

from sidecarpath.cli.types import load_config_or_exit
from sidecarpath.hostpath.validator import validate_path_format
from sidecarpath.utils.formatting import console, create_table, print_success, print_warning


def validate(
    ctx: typer.Context,
    paths: Annotated[
        list[str],
        typer.Argument(help="Paths to check."),
    ],
    base_dir: Annotated[
        str | None,
        typer.Option("--base-dir", "-b", help="Base directory (default: $MOUNT_ROOT or /runtime-mnt)."),
    ] = None,
) -> None:
    """Report which paths the reclaimer would consider as candidates."""
    base = base_dir if base_dir is not None else load_config_or_exit(ctx).base_dir

    table = create_table(f"Format Check (base: {base})")
    table.add_column("Path", overflow="fold")
    table.add_column("Result", width=8, justify="center")

    rejected = 0
    for path in paths:
        if validate_path_format(path, base):
            table.add_row(path, "[success]valid[/success]")
        else:
            rejected += 1
            table.add_row(path, "[error]invalid[/error]")

    console.print(table)

    if rejected:
        print_warning(f"{rejected} of {len(paths)} path(s) do not match the allocation format.")
        raise typer.Exit(code=1)
    print_success(f"All {len(paths)} path(s) match the allocation format.")
