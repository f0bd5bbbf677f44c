"""Allocate a unique sidecar host path.

Exposes the webhook's allocation routine for scripting and debugging.
Prints only the path by default so the output can be captured directly.
"""

import json
from enum import Enum
from typing import Annotated

import typer

from sidecarpath.hostpath.allocator import PathAllocator
from sidecarpath.hostpath.errors import InvalidInputError
from sidecarpath.utils.formatting import console, print_error


class AllocateFormat(str, Enum):
    """Output format options for allocate."""

    TEXT = "text"
    JSON = "json"


def allocate(
    base: Annotated[
        str,
        typer.Option("--base", "-b", help="Base path prefix for the runtime type."),
    ],
    dataset_path: Annotated[
        str,
        typer.Option("--dataset-path", "-d", help="Legacy dataset mount path."),
    ],
    pod_name: Annotated[
        str,
        typer.Option("--pod-name", "-n", help="Pod name (empty if generateName is used)."),
    ] = "",
    generate_name: Annotated[
        str,
        typer.Option("--generate-name", "-g", help="Pod generateName prefix."),
    ] = "",
    output_format: Annotated[
        AllocateFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = AllocateFormat.TEXT,
) -> None:
    """Allocate a fresh host path for one sidecar mount."""
    try:
        allocated = PathAllocator().allocate(base, pod_name, generate_name, dataset_path)
    except InvalidInputError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if output_format == AllocateFormat.JSON:
        data = {
            "path": allocated.path,
            "unique_elem": allocated.unique_elem,
            "identity": allocated.identity,
            "allocation_id": allocated.allocation_id,
            "mount_dir": allocated.mount_dir,
        }
        console.print_json(json.dumps(data))
        return

    typer.echo(allocated.path)
