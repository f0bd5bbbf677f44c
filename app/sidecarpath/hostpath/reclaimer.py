"""Scan-and-sweep reclamation of abandoned sidecar host-path directories.

Layout under the base directory::

    <base>/<pod-identity>/<allocation-id>/<dataset>-fuse-mount

A run counts allocation directories, does nothing while the count is
below the threshold, and otherwise removes leaves that pass every gate
in order: path format, age, mount state, emptiness. The only removal
primitive is ``rmdir``. A run can be interrupted at any point and simply
re-run; whatever was not removed stays a candidate.
"""

import logging
import os
import posixpath
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

from sidecarpath.hostpath.errors import PreconditionError
from sidecarpath.hostpath.hostfs import HostFS, LocalHostFS
from sidecarpath.hostpath.models import (
    FUSE_MOUNT_SUFFIX,
    Census,
    IdentityReport,
    LeafAction,
    LeafDecision,
    ReclaimReport,
    SkipReason,
)
from sidecarpath.hostpath.mounts import MountProbe
from sidecarpath.hostpath.operator import HostPathOperator
from sidecarpath.hostpath.validator import validate_path_format

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 1000
DEFAULT_AGE_DAYS = 90

SECONDS_PER_DAY = 86400


class DirectoryReclaimer:
    """Removes abandoned allocation directories under a base directory.

    Args:
        base_dir: Base directory holding PodIdentity directories.
        threshold: Minimum total AllocationID directory count before any
            removal is attempted.
        age_days: Minimum leaf age in whole days.
        dry_run: Evaluate every gate but remove nothing.
        fs: Filesystem interface. Defaults to the local host.
        probe: Mount probe. Defaults to one reading the host mount tables
            through ``fs``.
        clock: Returns the current time in seconds since the epoch.
        workers: Number of PodIdentity subtrees swept in parallel.
        require_root: Refuse to start unless running with euid 0.
        geteuid: Returns the effective uid. Defaults to ``os.geteuid``.
    """

    def __init__(
        self,
        base_dir: str,
        *,
        threshold: int = DEFAULT_THRESHOLD,
        age_days: int = DEFAULT_AGE_DAYS,
        dry_run: bool = False,
        fs: HostFS | None = None,
        probe: MountProbe | None = None,
        clock: Callable[[], float] = time.time,
        workers: int = 1,
        require_root: bool = True,
        geteuid: Callable[[], int] | None = None,
    ) -> None:
        if threshold < 0:
            msg = f"Threshold must be non-negative, got {threshold}"
            raise ValueError(msg)
        if age_days < 0:
            msg = f"Age threshold must be non-negative, got {age_days}"
            raise ValueError(msg)
        if workers < 1:
            msg = f"Workers must be at least 1, got {workers}"
            raise ValueError(msg)

        self._base_dir = posixpath.normpath(base_dir)
        self._threshold = threshold
        self._age_days = age_days
        self._dry_run = dry_run
        self._fs = fs if fs is not None else LocalHostFS()
        self._probe = probe if probe is not None else MountProbe(self._fs)
        self._clock = clock
        self._workers = workers
        self._require_root = require_root
        self._geteuid = geteuid

    @property
    def base_dir(self) -> str:
        return self._base_dir

    def check_preconditions(self) -> None:
        """Verify the reclaimer can run safely.

        Raises:
            PreconditionError: If not privileged, the base directory is
                missing, OS facilities are unavailable, or no mount table
                is readable.
        """
        if self._require_root:
            geteuid = self._geteuid or getattr(os, "geteuid", None)
            if geteuid is None or geteuid() != 0:
                msg = "Reclaimer must run as root to operate on host paths"
                raise PreconditionError(msg)

        if not self._fs.is_dir(self._base_dir):
            msg = f"Base directory does not exist: {self._base_dir}"
            raise PreconditionError(msg)

        missing = self._fs.missing_facilities()
        if missing:
            msg = f"Required OS facilities unavailable: {', '.join(missing)}"
            raise PreconditionError(msg)

        if not self._probe.has_readable_table():
            msg = "No mount table readable; cannot verify mount state"
            raise PreconditionError(msg)

    def census(self) -> Census:
        """Count AllocationID directories under every PodIdentity directory.

        Returns:
            Census of the base directory.

        Raises:
            PreconditionError: If the base directory cannot be listed.
        """
        return self._census(self._fs.list_dirs)

    def run(self) -> ReclaimReport:
        """Run one census-and-sweep pass.

        Returns:
            ReclaimReport with per-identity decisions and the post-run census.

        Raises:
            PreconditionError: If the base directory cannot be listed.
        """
        started_at = datetime.now(UTC)
        mode = "dry-run" if self._dry_run else "delete"
        logger.info(
            "Reclaiming %s (threshold=%d, age_days=%d, mode=%s)",
            self._base_dir,
            self._threshold,
            self._age_days,
            mode,
        )

        census = self.census()
        logger.info(
            "Found %d pod directories with %d allocation directories",
            len(census.identity_counts),
            census.total_subdirs,
        )

        report = ReclaimReport(
            base_dir=self._base_dir,
            threshold=self._threshold,
            age_days=self._age_days,
            dry_run=self._dry_run,
            total_subdirs=census.total_subdirs,
            remaining_subdirs=census.total_subdirs,
            started_at=started_at,
        )

        if census.total_subdirs < self._threshold:
            logger.info(
                "Allocation directory count (%d) below threshold (%d), nothing to do",
                census.total_subdirs,
                self._threshold,
            )
            report.finished_at = datetime.now(UTC)
            return report

        logger.warning(
            "Allocation directory count (%d) reached threshold (%d), sweeping",
            census.total_subdirs,
            self._threshold,
        )

        operator = HostPathOperator(self._fs, self._probe, dry_run=self._dry_run)
        identity_dirs = census.identity_dirs

        if self._workers > 1 and len(identity_dirs) > 1:
            with ThreadPoolExecutor(max_workers=self._workers) as pool:
                report.identities = list(
                    pool.map(lambda d: self._sweep_identity(d, operator), identity_dirs)
                )
        else:
            report.identities = [self._sweep_identity(d, operator) for d in identity_dirs]

        logger.info("Removing empty pod directories")
        for identity_report in report.identities:
            identity_report.identity_removed = self._remove_if_empty(
                identity_report.identity_dir, operator
            )

        report.remaining_subdirs = self._census(operator.list_dirs).total_subdirs
        report.finished_at = datetime.now(UTC)

        logger.info(
            "Reclaim finished: %d removed, %d skipped, %d failed, %d allocation directories remain",
            report.deleted,
            report.skipped,
            report.failed,
            report.remaining_subdirs,
        )
        return report

    def _census(self, list_dirs: Callable[[str], list[str]]) -> Census:
        """Count allocation directories using the given directory lister."""
        try:
            identities = list_dirs(self._base_dir)
        except OSError as e:
            msg = f"Cannot list base directory {self._base_dir}: {e}"
            raise PreconditionError(msg) from e

        counts: dict[str, int] = {}
        for name in identities:
            identity_dir = posixpath.join(self._base_dir, name)
            try:
                counts[identity_dir] = len(list_dirs(identity_dir))
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Cannot list pod directory %s: %s", identity_dir, e)
                counts[identity_dir] = 0

        return Census(base_dir=self._base_dir, identity_counts=counts)

    def _sweep_identity(self, identity_dir: str, operator: HostPathOperator) -> IdentityReport:
        """Evaluate and remove eligible leaves under one PodIdentity directory."""
        report = IdentityReport(identity_dir=identity_dir)
        logger.debug("Processing pod directory: %s", identity_dir)

        for leaf in self._find_leaves(identity_dir):
            decision = self._evaluate_leaf(leaf, operator)
            report.decisions.append(decision)

            if decision.removed:
                parent = posixpath.dirname(leaf)
                if self._remove_if_empty(parent, operator):
                    report.removed_parents.append(parent)

        logger.info(
            "Pod directory %s done (removed: %d, skipped: %d, failed: %d)",
            identity_dir,
            report.deleted,
            report.skipped,
            report.failed,
        )
        return report

    def _find_leaves(self, identity_dir: str) -> list[str]:
        """List ``*-fuse-mount`` directories exactly two levels below identity_dir."""
        leaves: list[str] = []
        try:
            allocation_names = self._fs.list_dirs(identity_dir)
        except OSError as e:
            logger.warning("Cannot list pod directory %s: %s", identity_dir, e)
            return leaves

        for allocation_name in allocation_names:
            allocation_dir = posixpath.join(identity_dir, allocation_name)
            try:
                names = self._fs.list_dirs(allocation_dir)
            except OSError as e:
                logger.debug("Cannot list %s: %s", allocation_dir, e)
                continue
            leaves.extend(
                posixpath.join(allocation_dir, name)
                for name in names
                if name.endswith(FUSE_MOUNT_SUFFIX)
            )
        return leaves

    def _evaluate_leaf(self, leaf: str, operator: HostPathOperator) -> LeafDecision:
        """Run every gate for one leaf and remove it if all pass."""
        if not validate_path_format(leaf, self._base_dir):
            logger.debug("Path format mismatch, skipping: %s", leaf)
            return _skip(leaf, SkipReason.FORMAT_MISMATCH)

        try:
            mtime = self._fs.mtime(leaf)
        except OSError as e:
            logger.warning("Cannot stat %s, skipping: %s", leaf, e)
            return _skip(leaf, SkipReason.STAT_FAILED)

        age_days = int((self._clock() - mtime) // SECONDS_PER_DAY)
        if age_days < self._age_days:
            logger.debug("Too new (%d < %d days), skipping: %s", age_days, self._age_days, leaf)
            return _skip(leaf, SkipReason.TOO_NEW, age_days)

        logger.debug("Age %d days, candidate for removal: %s", age_days, leaf)

        if self._probe.is_mounted(leaf):
            logger.warning("Directory is mounted, skipping: %s", leaf)
            return _skip(leaf, SkipReason.MOUNTED, age_days)

        if not operator.is_empty(leaf):
            logger.debug("Directory not empty, skipping: %s", leaf)
            return _skip(leaf, SkipReason.NOT_EMPTY, age_days)

        result = operator.remove(leaf)
        if result.success:
            action = LeafAction.WOULD_DELETE if result.dry_run else LeafAction.DELETED
            return LeafDecision(path=leaf, action=action, age_days=age_days)

        if result.reason == SkipReason.DELETION_FAILED:
            return LeafDecision(
                path=leaf,
                action=LeafAction.FAILED,
                reason=result.reason,
                age_days=age_days,
                error=result.error,
            )
        return _skip(leaf, result.reason or SkipReason.NOT_EMPTY, age_days)

    @staticmethod
    def _remove_if_empty(path: str, operator: HostPathOperator) -> bool:
        """Best-effort empty-only removal of a parent or identity directory."""
        if not operator.exists(path) or not operator.is_empty(path):
            return False
        return operator.remove(path).success


def _skip(leaf: str, reason: SkipReason, age_days: int | None = None) -> LeafDecision:
    return LeafDecision(path=leaf, action=LeafAction.SKIPPED, reason=reason, age_days=age_days)
