"""Unique host-path allocation for FUSE sidecar injection.

Called synchronously from the admission webhook. Every call yields a
fresh ``<base>/<identity>/<allocation-id>/<dataset>-fuse-mount`` path so
that a recreated Pod with the same name never sees mount state left by
a deleted predecessor. No filesystem access and no registry: uniqueness
comes from the timestamp plus random suffix.
"""

import posixpath
import random
import string
import time
from collections.abc import Callable

from sidecarpath.hostpath.errors import InvalidInputError
from sidecarpath.hostpath.models import FUSE_MOUNT_SUFFIX, GENERATE_NAME_SUFFIX, AllocatedPath

# Alphabet for the random part of an AllocationID.
SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SUFFIX_LENGTH = 8

# Width of the zero-padded timestamp part of an AllocationID.
TIMESTAMP_WIDTH = 16


def dataset_name_from_path(legacy_dataset_path: str) -> str:
    """Extract the dataset name from a legacy dataset mount path.

    Args:
        legacy_dataset_path: Path such as ``/runtime-mnt/juicefs/default/demo/``.

    Returns:
        Final non-empty path component (``demo``).

    Raises:
        InvalidInputError: If the path has no usable final component.
    """
    name = posixpath.basename(legacy_dataset_path.rstrip("/"))
    if not name or name in (".", ".."):
        msg = f"Dataset path has no usable final component: {legacy_dataset_path!r}"
        raise InvalidInputError(msg)
    return name


def pod_identity(pod_name: str, pod_generate_name: str) -> str:
    """Compute the PodIdentity directory segment.

    Args:
        pod_name: Declared Pod name, may be empty at admission time.
        pod_generate_name: Pod generateName prefix.

    Returns:
        The Pod name, or the generateName prefix with a literal marker suffix.
        With neither set the identity is the bare marker.

    Raises:
        InvalidInputError: If the result is not a single path segment.
    """
    identity = pod_name or pod_generate_name + GENERATE_NAME_SUFFIX

    if "/" in identity or identity in (".", ".."):
        msg = f"Pod identity is not a valid path segment: {identity!r}"
        raise InvalidInputError(msg)
    return identity


class PathAllocator:
    """Produces unique host paths from injected time and entropy sources.

    Args:
        clock_ns: Returns the current time in nanoseconds since the epoch.
        rng: Random generator for the AllocationID suffix. Defaults to
            ``random.SystemRandom``, which draws from OS entropy and shares
            no seed state between threads or processes.

    Example:
        >>> allocator = PathAllocator()
        >>> allocated = allocator.allocate("/runtime-mnt/juicefs/default", "web-0", "", "/data/demo")
        >>> allocated.mount_dir
        'demo-fuse-mount'
    """

    def __init__(
        self,
        *,
        clock_ns: Callable[[], int] = time.time_ns,
        rng: random.Random | None = None,
    ) -> None:
        self._clock_ns = clock_ns
        self._rng = rng if rng is not None else random.SystemRandom()

    def new_allocation_id(self) -> str:
        """Generate a fresh AllocationID.

        The timestamp is rendered at microsecond resolution so it is exactly
        16 digits wide and keeps increasing with the clock.

        Returns:
            ``<16-digit timestamp>-<8 lowercase alnum>``.
        """
        timestamp = self._clock_ns() // 1_000
        suffix = "".join(self._rng.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
        return f"{timestamp:0{TIMESTAMP_WIDTH}d}-{suffix}"

    def allocate(
        self,
        base_path_prefix: str,
        pod_name: str,
        pod_generate_name: str,
        legacy_dataset_path: str,
    ) -> AllocatedPath:
        """Allocate a fresh host path for one sidecar injection.

        Args:
            base_path_prefix: Base directory for the cache-filesystem type.
            pod_name: Pod name (may be empty when generateName is used).
            pod_generate_name: Pod generateName prefix.
            legacy_dataset_path: Dataset mount path the name is derived from.

        Returns:
            AllocatedPath whose ``path`` is unique to this call.

        Raises:
            InvalidInputError: If no usable dataset name or Pod identity exists.
        """
        dataset_name = dataset_name_from_path(legacy_dataset_path)
        identity = pod_identity(pod_name, pod_generate_name)

        return AllocatedPath(
            base=base_path_prefix,
            identity=identity,
            allocation_id=self.new_allocation_id(),
            mount_dir=dataset_name + FUSE_MOUNT_SUFFIX,
        )


_default_allocator = PathAllocator()


def generate_unique_host_path(
    base_path_prefix: str,
    pod_name: str,
    pod_generate_name: str,
    legacy_dataset_path: str,
    *,
    allocator: PathAllocator | None = None,
) -> tuple[str, str]:
    """Webhook entry point: allocate a host path for a sidecar mount.

    Args:
        base_path_prefix: Base directory for the cache-filesystem type.
        pod_name: Pod name (may be empty).
        pod_generate_name: Pod generateName prefix.
        legacy_dataset_path: Dataset mount path the name is derived from.
        allocator: Optional allocator; defaults to a module-level instance.

    Returns:
        Tuple of (allocated host path, ``identity/allocation-id`` segment).

    Raises:
        InvalidInputError: The webhook must reject the admission request.
    """
    allocated = (allocator or _default_allocator).allocate(
        base_path_prefix, pod_name, pod_generate_name, legacy_dataset_path
    )
    return allocated.path, allocated.unique_elem
