"""Best-effort mount-point detection.

The probe errs towards "mounted": a wrong positive only skips a
deletion, a wrong negative could remove a directory in use.
"""

import logging
import re

from sidecarpath.hostpath.hostfs import HostFS, LocalHostFS

logger = logging.getLogger(__name__)

# Mount table of the current mount namespace (mount point is field 5).
PRIMARY_MOUNT_TABLE = "/proc/self/mountinfo"

# Fallback mount table (mount point is field 2).
FALLBACK_MOUNT_TABLE = "/proc/mounts"

# Prefix of artifacts some FUSE implementations leave in a mounted directory.
FUSE_HIDDEN_PREFIX = ".fuse_hidden"

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def decode_mount_field(field: str) -> str:
    """Decode octal escapes (``\\040`` for space etc.) used in mount tables."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def parse_mountinfo(content: str) -> set[str]:
    """Extract mount points from ``/proc/self/mountinfo`` content.

    Args:
        content: Raw file content.

    Returns:
        Set of decoded mount-point paths.
    """
    points: set[str] = set()
    for line in content.splitlines():
        parts = line.split()
        if len(parts) >= 5:
            points.add(decode_mount_field(parts[4]))
    return points


def parse_proc_mounts(content: str) -> set[str]:
    """Extract mount points from ``/proc/mounts`` content."""
    points: set[str] = set()
    for line in content.splitlines():
        parts = line.split()
        if len(parts) >= 2:
            points.add(decode_mount_field(parts[1]))
    return points


class MountProbe:
    """Determines whether a directory is an active mount point.

    Checks, in order:
    1. The primary mount table (mountinfo), falling back to /proc/mounts
       only when the primary cannot be read.
    2. A ``.fuse_hidden*`` sentinel directly inside the directory.

    When no mount table is readable, or the directory cannot be listed
    for the sentinel check, the path is reported as mounted.

    Args:
        fs: Filesystem interface. Defaults to the local host.
        primary_table: Path of the mountinfo-format table.
        fallback_table: Path of the /proc/mounts-format table.
    """

    def __init__(
        self,
        fs: HostFS | None = None,
        *,
        primary_table: str = PRIMARY_MOUNT_TABLE,
        fallback_table: str = FALLBACK_MOUNT_TABLE,
    ) -> None:
        self._fs = fs if fs is not None else LocalHostFS()
        self._primary_table = primary_table
        self._fallback_table = fallback_table

    def mount_points(self) -> set[str] | None:
        """Read the current set of mount points.

        Returns:
            Set of mount points, or None if no mount table could be read.
        """
        try:
            return parse_mountinfo(self._fs.read_text(self._primary_table))
        except OSError as e:
            logger.debug("Cannot read %s: %s", self._primary_table, e)

        try:
            return parse_proc_mounts(self._fs.read_text(self._fallback_table))
        except OSError as e:
            logger.debug("Cannot read %s: %s", self._fallback_table, e)

        return None

    def has_readable_table(self) -> bool:
        """Check that at least one mount table source is readable."""
        return self.mount_points() is not None

    def is_mounted(self, path: str) -> bool:
        """Check whether a directory is (or may be) an active mount point.

        Args:
            path: Directory to check.

        Returns:
            True if mounted or if mount state cannot be determined.
        """
        try:
            real_path = self._fs.realpath(path)
        except OSError:
            real_path = path

        points = self.mount_points()
        if points is None:
            logger.warning("No mount table readable, assuming mounted: %s", path)
            return True

        if real_path in points or path in points:
            return True

        return self._has_fuse_sentinel(path)

    def _has_fuse_sentinel(self, path: str) -> bool:
        """Check for a ``.fuse_hidden*`` entry directly inside the directory."""
        try:
            entries = self._fs.list_entries(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.debug("Cannot list %s for FUSE sentinel, assuming mounted: %s", path, e)
            return True

        return any(name.startswith(FUSE_HIDDEN_PREFIX) for name in entries)
