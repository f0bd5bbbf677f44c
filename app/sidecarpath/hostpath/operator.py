"""Empty-only directory removal with dry-run support.

``HostPathOperator`` is the only component of a reclaim run that
mutates the filesystem, and its only mutation is ``rmdir``: a
non-empty directory can never be removed, whatever the caller decided.
"""

import logging
import posixpath
import threading
from dataclasses import dataclass

from sidecarpath.hostpath.errors import DeletionFailure
from sidecarpath.hostpath.hostfs import HostFS
from sidecarpath.hostpath.models import SkipReason
from sidecarpath.hostpath.mounts import MountProbe

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RemovalResult:
    """Result of a single empty-only removal attempt.

    Attributes:
        path: Directory that was operated on.
        success: Whether the directory was (or in dry-run would be) removed.
        reason: Why the removal did not happen, None on success.
        error: Error message if the removal itself failed.
        dry_run: Whether this was a dry-run (no actual removal).
    """

    path: str
    success: bool
    reason: SkipReason | None = None
    error: str | None = None
    dry_run: bool = False


class HostPathOperator:
    """Removes empty directories after a final mount and emptiness re-check.

    In dry-run mode nothing is removed; instead the operator remembers
    which directories it would have removed and hides them from its own
    emptiness checks, so a dry-run predicts parent removals exactly as a
    real run would perform them.

    Args:
        fs: Filesystem interface.
        probe: Mount probe used for the final mount re-check.
        dry_run: If True, report removals without performing them.
    """

    def __init__(self, fs: HostFS, probe: MountProbe, *, dry_run: bool = False) -> None:
        self._fs = fs
        self._probe = probe
        self._dry_run = dry_run
        self._simulated: set[str] = set()
        self._lock = threading.Lock()

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def is_removed(self, path: str) -> bool:
        """True if the path was removed during a dry-run of this operator."""
        with self._lock:
            return path in self._simulated

    def exists(self, path: str) -> bool:
        """Check existence as seen by this run (dry-run removals hidden)."""
        return not self.is_removed(path) and self._fs.is_dir(path)

    def list_entries(self, path: str) -> list[str]:
        """List directory entries as seen by this run.

        Raises:
            OSError: If the directory cannot be listed.
        """
        entries = self._fs.list_entries(path)
        with self._lock:
            if not self._simulated:
                return entries
            return [e for e in entries if posixpath.join(path, e) not in self._simulated]

    def list_dirs(self, path: str) -> list[str]:
        """List subdirectories as seen by this run.

        Raises:
            OSError: If the directory cannot be listed.
        """
        dirs = self._fs.list_dirs(path)
        with self._lock:
            if not self._simulated:
                return dirs
            return [d for d in dirs if posixpath.join(path, d) not in self._simulated]

    def is_empty(self, path: str) -> bool:
        """Check emptiness as seen by this run. Unlistable counts as non-empty."""
        try:
            return not self.list_entries(path)
        except OSError as e:
            logger.debug("Cannot list %s, treating as non-empty: %s", path, e)
            return False

    def remove(self, path: str) -> RemovalResult:
        """Remove a single directory if it is unmounted and empty.

        Re-probes mount state and re-checks emptiness immediately before
        the ``rmdir``. Removal failures are logged and reported, never raised.

        Args:
            path: Directory to remove.

        Returns:
            RemovalResult describing what happened.
        """
        if self._probe.is_mounted(path):
            logger.warning("Directory is mounted, skipping: %s", path)
            return RemovalResult(path=path, success=False, reason=SkipReason.MOUNTED)

        if not self.is_empty(path):
            logger.debug("Directory not empty, skipping: %s", path)
            return RemovalResult(path=path, success=False, reason=SkipReason.NOT_EMPTY)

        if self._dry_run:
            logger.info("Dry-run: would remove %s", path)
            with self._lock:
                self._simulated.add(path)
            return RemovalResult(path=path, success=True, dry_run=True)

        try:
            self._rmdir(path)
        except DeletionFailure as e:
            logger.warning("%s", e)
            return RemovalResult(
                path=path,
                success=False,
                reason=SkipReason.DELETION_FAILED,
                error=e.reason,
            )

        logger.info("Removed %s", path)
        return RemovalResult(path=path, success=True)

    def _rmdir(self, path: str) -> None:
        """Empty-only removal.

        Raises:
            DeletionFailure: If the directory could not be removed.
        """
        try:
            self._fs.remove_empty_dir(path)
        except OSError as e:
            raise DeletionFailure(path, e.strerror or str(e)) from e
