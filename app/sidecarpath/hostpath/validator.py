"""Recognizer for the host-path grammar produced by the allocator.

A path is a reclaim candidate only if, relative to the base directory,
it is exactly ``<identity>/<allocation-id>/<dataset>-fuse-mount``. This
predicate runs before every other gate in the reclaimer and bounds the
set of directories a sweep may ever consider.
"""

import posixpath
import re

from sidecarpath.hostpath.models import FUSE_MOUNT_SUFFIX

# Exact AllocationID emitted by the allocator: 16-digit timestamp, 8-char suffix.
ALLOCATION_ID_PATTERN = re.compile(r"^[0-9]{16}-[a-z0-9]{8}$")

# Components below the base directory: identity, allocation id, leaf.
ALLOCATED_PATH_DEPTH = 3


def is_allocation_id(name: str) -> bool:
    """Check if a directory name is an AllocationID as the allocator emits it.

    Args:
        name: Single path component.

    Returns:
        True for ``<16 digits>-<8 lowercase alnum>``.
    """
    return ALLOCATION_ID_PATTERN.fullmatch(name) is not None


def is_fuse_mount_dir(name: str) -> bool:
    """Check if a name is ``<dataset>-fuse-mount`` with a non-empty dataset."""
    return name.endswith(FUSE_MOUNT_SUFFIX) and len(name) > len(FUSE_MOUNT_SUFFIX)


def split_relative(candidate: str, base: str) -> list[str] | None:
    """Split a candidate path into components relative to base.

    Both paths are normalized first, so ``..`` segments cannot walk a
    candidate out from under the base.

    Args:
        candidate: Path to decompose.
        base: Base directory.

    Returns:
        List of components, or None if candidate is not strictly below base.
    """
    if not candidate or not base:
        return None

    norm_base = posixpath.normpath(base)
    norm_candidate = posixpath.normpath(candidate)

    prefix = norm_base if norm_base.endswith("/") else norm_base + "/"
    if not norm_candidate.startswith(prefix):
        return None

    return norm_candidate[len(prefix) :].split("/")


def validate_path_format(candidate: str, base: str) -> bool:
    """Check whether a path exactly matches the allocated host-path grammar.

    Args:
        candidate: Absolute path of a directory found under base.
        base: Base directory the allocator writes under.

    Returns:
        True only for ``base/<identity>/<allocation-id>/<dataset>-fuse-mount``.
    """
    parts = split_relative(candidate, base)
    if parts is None or len(parts) != ALLOCATED_PATH_DEPTH:
        return False

    identity, allocation_id, leaf = parts

    if identity in ("", ".", ".."):
        return False

    if not is_allocation_id(allocation_id):
        return False

    return is_fuse_mount_dir(leaf)
