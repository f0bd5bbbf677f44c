"""Sidecar host-path allocation and reclamation module.

This module provides unique host-path allocation for FUSE sidecar
injection, the path-format recognizer, mount-point probing, and the
empty-only reclaimer for directories abandoned by deleted Pods.
"""

from sidecarpath.hostpath.allocator import PathAllocator, generate_unique_host_path
from sidecarpath.hostpath.errors import (
    DeletionFailure,
    HostPathError,
    InvalidInputError,
    PreconditionError,
)
from sidecarpath.hostpath.hostfs import HostFS, LocalHostFS
from sidecarpath.hostpath.models import (
    AllocatedPath,
    Census,
    IdentityReport,
    LeafAction,
    LeafDecision,
    ReclaimReport,
    SkipReason,
)
from sidecarpath.hostpath.mounts import MountProbe
from sidecarpath.hostpath.operator import HostPathOperator, RemovalResult
from sidecarpath.hostpath.reclaimer import DirectoryReclaimer
from sidecarpath.hostpath.validator import validate_path_format

__all__ = [
    "AllocatedPath",
    "Census",
    "DeletionFailure",
    "DirectoryReclaimer",
    "HostFS",
    "HostPathError",
    "HostPathOperator",
    "IdentityReport",
    "InvalidInputError",
    "LeafAction",
    "LeafDecision",
    "LocalHostFS",
    "MountProbe",
    "PathAllocator",
    "PreconditionError",
    "ReclaimReport",
    "RemovalResult",
    "SkipReason",
    "generate_unique_host_path",
    "validate_path_format",
]
