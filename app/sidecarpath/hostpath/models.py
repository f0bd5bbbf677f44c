"""Host-path domain models for allocation and reclamation.

This module defines the data structures shared by the allocator and
the reclaimer: the allocated path itself, per-leaf sweep decisions,
and the census and report produced by a reclaim run.
"""

import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# Literal suffix appended to a generateName prefix so the identity can
# never collide with a real Pod name equal to the raw prefix.
GENERATE_NAME_SUFFIX = "--generate-name"

# Literal suffix of every leaf (bind-mount target) directory.
FUSE_MOUNT_SUFFIX = "-fuse-mount"


class LeafAction(str, Enum):
    """Outcome for a single leaf directory in a sweep.

    Attributes:
        DELETED: Leaf was removed.
        WOULD_DELETE: Dry-run; a real run would have removed the leaf.
        SKIPPED: A safety gate rejected the leaf.
        FAILED: Every gate passed but the removal itself failed.
    """

    DELETED = "deleted"
    WOULD_DELETE = "would_delete"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(str, Enum):
    """Reason a leaf directory was not removed.

    Attributes:
        FORMAT_MISMATCH: Path does not match the allocation grammar.
        TOO_NEW: Directory is younger than the age threshold.
        MOUNTED: Directory is (or may be) an active mount point.
        NOT_EMPTY: Directory has entries at the final re-check.
        DELETION_FAILED: The empty-only removal returned an error.
        STAT_FAILED: Modification time could not be read.
    """

    FORMAT_MISMATCH = "format_mismatch"
    STAT_FAILED = "stat_failed"
    TOO_NEW = "too_new"
    MOUNTED = "mounted"
    NOT_EMPTY = "not_empty"
    DELETION_FAILED = "deletion_failed"


@dataclass(frozen=True, slots=True)
class AllocatedPath:
    """A host path decided for one sidecar injection.

    Attributes:
        base: Base path prefix the allocation lives under.
        identity: PodIdentity segment (pod name or generateName marker).
        allocation_id: ``<16 digits>-<8 lowercase alnum>`` segment.
        mount_dir: ``<dataset>-fuse-mount`` leaf segment.
    """

    base: str
    identity: str
    allocation_id: str
    mount_dir: str

    def __post_init__(self) -> None:
        """Validate allocated path data after initialization."""
        for name in ("identity", "allocation_id", "mount_dir"):
            value = getattr(self, name)
            if not value or "/" in value:
                msg = f"{name} must be a single non-empty path segment, got {value!r}"
                raise ValueError(msg)

    @property
    def path(self) -> str:
        """Full host path: base/identity/allocation_id/mount_dir."""
        return posixpath.join(self.base, self.identity, self.allocation_id, self.mount_dir)

    @property
    def unique_elem(self) -> str:
        """The per-instance segment recorded by the webhook (identity/allocation_id)."""
        return posixpath.join(self.identity, self.allocation_id)

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True, slots=True)
class LeafDecision:
    """Gate decision for one ``-fuse-mount`` leaf directory.

    Attributes:
        path: Absolute leaf path.
        action: What happened (or would happen in dry-run).
        reason: Why the leaf was skipped or failed, None otherwise.
        age_days: Whole days since last modification, None if not computed.
        error: Error message for failed removals.
    """

    path: str
    action: LeafAction
    reason: SkipReason | None = None
    age_days: int | None = None
    error: str | None = None

    @property
    def removed(self) -> bool:
        """True for deleted leaves and dry-run predicted deletions."""
        return self.action in (LeafAction.DELETED, LeafAction.WOULD_DELETE)


@dataclass(frozen=True, slots=True)
class Census:
    """Snapshot of PodIdentity and AllocationID directory counts.

    Attributes:
        base_dir: Directory that was counted.
        identity_counts: Immediate subdirectory count per PodIdentity directory.
    """

    base_dir: str
    identity_counts: dict[str, int]

    @property
    def identity_dirs(self) -> list[str]:
        """PodIdentity directories in census order."""
        return list(self.identity_counts)

    @property
    def total_subdirs(self) -> int:
        """Sum of AllocationID directories across all identities."""
        return sum(self.identity_counts.values())


@dataclass(slots=True)
class IdentityReport:
    """Sweep results for a single PodIdentity directory."""

    identity_dir: str
    decisions: list[LeafDecision] = field(default_factory=list)
    removed_parents: list[str] = field(default_factory=list)
    identity_removed: bool = False

    @property
    def deleted(self) -> int:
        return sum(1 for d in self.decisions if d.removed)

    @property
    def skipped(self) -> int:
        return sum(1 for d in self.decisions if d.action == LeafAction.SKIPPED)

    @property
    def failed(self) -> int:
        return sum(1 for d in self.decisions if d.action == LeafAction.FAILED)


@dataclass(slots=True)
class ReclaimReport:
    """Aggregate result of one reclaim run.

    Attributes:
        base_dir: Base directory that was swept.
        threshold: Subdirectory-count threshold in effect.
        age_days: Age threshold in days.
        dry_run: Whether removals were simulated.
        total_subdirs: AllocationID directory count before the sweep.
        remaining_subdirs: AllocationID directory count after the sweep.
        identities: Per-identity results (empty when below threshold).
        started_at: Run start time (UTC).
        finished_at: Run end time (UTC).
    """

    base_dir: str
    threshold: int
    age_days: int
    dry_run: bool
    total_subdirs: int
    remaining_subdirs: int
    identities: list[IdentityReport] = field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def threshold_reached(self) -> bool:
        return self.total_subdirs >= self.threshold

    @property
    def deleted(self) -> int:
        return sum(r.deleted for r in self.identities)

    @property
    def skipped(self) -> int:
        return sum(r.skipped for r in self.identities)

    @property
    def failed(self) -> int:
        return sum(r.failed for r in self.identities)

    @property
    def removed_leaves(self) -> list[str]:
        """Leaf paths removed (or predicted removed in dry-run), sorted."""
        return sorted(d.path for r in self.identities for d in r.decisions if d.removed)

    def to_dict(self) -> dict[str, object]:
        """Serialize the report for JSON output."""
        return {
            "base_dir": self.base_dir,
            "threshold": self.threshold,
            "age_days": self.age_days,
            "dry_run": self.dry_run,
            "threshold_reached": self.threshold_reached,
            "total_subdirs": self.total_subdirs,
            "remaining_subdirs": self.remaining_subdirs,
            "deleted": self.deleted,
            "skipped": self.skipped,
            "failed": self.failed,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "identities": [
                {
                    "identity_dir": r.identity_dir,
                    "deleted": r.deleted,
                    "skipped": r.skipped,
                    "failed": r.failed,
                    "removed_parents": r.removed_parents,
                    "identity_removed": r.identity_removed,
                    "decisions": [
                        {
                            "path": d.path,
                            "action": d.action.value,
                            "reason": d.reason.value if d.reason else None,
                            "age_days": d.age_days,
                            "error": d.error,
                        }
                        for d in r.decisions
                    ],
                }
                for r in self.identities
            ],
        }
