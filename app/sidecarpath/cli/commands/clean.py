"""Host-path cleanup command.

Runs the reclaimer against a base directory and reports which
allocation directories were removed, skipped, or failed.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from sidecarpath.cli.types import OutputFormat, load_config_or_exit
from sidecarpath.hostpath.errors import PreconditionError
from sidecarpath.hostpath.models import IdentityReport, ReclaimReport
from sidecarpath.hostpath.reclaimer import DirectoryReclaimer
from sidecarpath.utils.formatting import (
    console,
    create_table,
    print_error,
    print_info,
    print_success,
    print_warning,
    setup_logging,
)


def clean(
    ctx: typer.Context,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Evaluate every gate but remove nothing."),
    ] = False,
    base_dir: Annotated[
        Path | None,
        typer.Option("--base-dir", "-b", help="Base directory (default: $MOUNT_ROOT or /runtime-mnt)."),
    ] = None,
    threshold: Annotated[
        int | None,
        typer.Option("--threshold", "-t", min=0, help="Allocation directory count that triggers cleanup."),
    ] = None,
    age_days: Annotated[
        int | None,
        typer.Option("--age-days", "-a", min=0, help="Minimum directory age in days."),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", "-w", min=1, max=64, help="Pod directories swept in parallel."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every skip decision."),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    export_path: Annotated[
        Path | None,
        typer.Option(
            "--export",
            "-e",
            help="Export the full report to a JSON file.",
        ),
    ] = None,
    no_require_root: Annotated[
        bool,
        typer.Option("--no-require-root", help="Skip the root privilege check."),
    ] = False,
) -> None:
    """Remove abandoned sidecar host-path directories."""
    if verbose:
        setup_logging(verbose=True)

    config = load_config_or_exit(ctx)

    reclaimer = DirectoryReclaimer(
        str(base_dir) if base_dir is not None else config.base_dir,
        threshold=threshold if threshold is not None else config.threshold,
        age_days=age_days if age_days is not None else config.age_days,
        workers=workers if workers is not None else config.workers,
        dry_run=dry_run,
        require_root=config.require_root and not no_require_root,
    )

    try:
        reclaimer.check_preconditions()
        report = reclaimer.run()
    except PreconditionError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if export_path is not None:
        _export_report(report, export_path)

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(report.to_dict()))
    else:
        _print_report(report)

    if report.failed:
        raise typer.Exit(code=1)


# === Private helper functions ===


def _print_report(report: ReclaimReport) -> None:
    """Display the reclaim report as a Rich table with a summary."""
    mode = "dry-run" if report.dry_run else "delete"
    print_info(
        f"Base: {report.base_dir}  threshold: {report.threshold}  "
        f"age: {report.age_days}d  mode: {mode}"
    )

    if not report.threshold_reached:
        print_success(
            f"{report.total_subdirs} allocation directories, below threshold "
            f"({report.threshold}). Nothing to clean."
        )
        return

    if report.identities:
        console.print(_identity_table(report.identities, report.dry_run))

    removed_label = "would be removed" if report.dry_run else "removed"
    console.print(
        f"\n[muted]{report.deleted} {removed_label}, {report.skipped} skipped, "
        f"{report.failed} failed[/muted]"
    )
    console.print(
        f"[muted]Allocation directories: {report.total_subdirs} before, "
        f"{report.remaining_subdirs} after[/muted]"
    )

    if report.failed:
        print_warning(f"{report.failed} directories could not be removed; they will be retried.")
    elif report.dry_run:
        print_info(f"Dry-run: {report.deleted} directories would be removed.")
    else:
        print_success(f"Cleanup complete: {report.deleted} directories removed.")


def _identity_table(identities: list[IdentityReport], dry_run: bool) -> Table:
    """Build a per-PodIdentity summary table."""
    title = "Pod Directories (dry-run)" if dry_run else "Pod Directories"
    table = create_table(title)
    table.add_column("Pod Directory", no_wrap=True)
    table.add_column("Removed", justify="right", style="removed")
    table.add_column("Skipped", justify="right", style="skipped")
    table.add_column("Failed", justify="right")
    table.add_column("Pod Dir Removed", justify="center")

    for r in identities:
        failed = f"[error]{r.failed}[/error]" if r.failed else "0"
        gone = "yes" if r.identity_removed else "-"
        table.add_row(r.identity_dir, str(r.deleted), str(r.skipped), failed, gone)

    return table


def _export_report(report: ReclaimReport, export_path: Path) -> None:
    """Export the full reclaim report to a JSON file."""
    export_path = export_path.resolve()
    if export_path.is_dir():
        print_error(f"Export path is a directory: {export_path}")
        raise typer.Exit(code=1)

    try:
        export_path.parent.mkdir(parents=True, exist_ok=True)
        export_path.write_text(json.dumps(report.to_dict(), indent=2))
        print_info(f"Report exported to {export_path}")
    except OSError as e:
        print_error(f"Failed to export: {e}")
        raise typer.Exit(code=1) from e

