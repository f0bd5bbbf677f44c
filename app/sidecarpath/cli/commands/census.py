"""Read-only census of allocation directories."""

import json
from pathlib import Path
from typing import Annotated

import typer

from sidecarpath.cli.types import OutputFormat, load_config_or_exit
from sidecarpath.hostpath.errors import PreconditionError
from sidecarpath.hostpath.reclaimer import DirectoryReclaimer
from sidecarpath.utils.formatting import console, create_table, print_error, print_info, print_warning


def census(
    ctx: typer.Context,
    base_dir: Annotated[
        Path | None,
        typer.Option("--base-dir", "-b", help="Base directory (default: $MOUNT_ROOT or /runtime-mnt)."),
    ] = None,
    threshold: Annotated[
        int | None,
        typer.Option("--threshold", "-t", min=0, help="Threshold to compare the total against."),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-l",
            min=1,
            help="Show only the N pod directories with the most allocations.",
        ),
    ] = None,
) -> None:
    """Count pod and allocation directories without changing anything."""
    config = load_config_or_exit(ctx)
    effective_threshold = threshold if threshold is not None else config.threshold
    base = str(base_dir) if base_dir is not None else config.base_dir

    reclaimer = DirectoryReclaimer(base, threshold=effective_threshold, require_root=False)
    try:
        result = reclaimer.census()
    except PreconditionError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    total = result.total_subdirs
    reached = total >= effective_threshold

    if output_format == OutputFormat.JSON:
        data = {
            "base_dir": result.base_dir,
            "threshold": effective_threshold,
            "threshold_reached": reached,
            "total_subdirs": total,
            "identities": result.identity_counts,
        }
        console.print_json(json.dumps(data))
        return

    rows = sorted(result.identity_counts.items(), key=lambda item: item[1], reverse=True)
    shown = rows[:limit] if limit else rows

    if shown:
        table = create_table("Pod Directories")
        table.add_column("Pod Directory", no_wrap=True)
        table.add_column("Allocations", justify="right", style="info")
        for identity_dir, count in shown:
            table.add_row(identity_dir, str(count))
        console.print(table)

    console.print(
        f"\n[muted]{len(rows)} pod directories, {total} allocation directories[/muted]"
    )
    if reached:
        print_warning(f"Threshold reached ({total} >= {effective_threshold}); cleanup would run.")
    else:
        print_info(f"Below threshold ({total} < {effective_threshold}); cleanup would be a no-op.")
