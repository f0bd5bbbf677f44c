"""Integration tests running the reclaimer against a real directory tree.

Uses LocalHostFS on a temporary directory with mount tables written to
temporary files, so no privileges or real mounts are needed.
"""

import os
import time
from pathlib import Path

import pytest
from sidecarpath.hostpath.allocator import PathAllocator
from sidecarpath.hostpath.hostfs import LocalHostFS
from sidecarpath.hostpath.models import LeafAction, SkipReason
from sidecarpath.hostpath.mounts import MountProbe
from sidecarpath.hostpath.reclaimer import DirectoryReclaimer

DAY = 86400


def _age(path: Path, days: float) -> None:
    stamp = time.time() - days * DAY
    os.utime(path, (stamp, stamp))


@pytest.fixture
def base(tmp_path: Path) -> Path:
    path = tmp_path / "runtime-mnt"
    path.mkdir()
    return path


@pytest.fixture
def mount_table(tmp_path: Path) -> Path:
    table = tmp_path / "mountinfo"
    table.write_text("22 1 8:1 / / rw,relatime shared:1 - ext4 /dev/sda1 rw\n")
    return table


def _probe(fs: LocalHostFS, table: Path) -> MountProbe:
    return MountProbe(fs, primary_table=str(table), fallback_table=str(table.parent / "none"))


def _allocate(base: Path, pod: str, dataset: str = "demo") -> Path:
    allocated = PathAllocator().allocate(str(base), pod, "", f"/data/{dataset}")
    path = Path(allocated.path)
    path.mkdir(parents=True)
    return path


class TestReclaimTree:
    """End-to-end runs on disk."""

    def test_full_sweep(self, base: Path, mount_table: Path) -> None:
        fs = LocalHostFS()
        old = _allocate(base, "web-0")
        young = _allocate(base, "web-1")
        busy = _allocate(base, "web-2")
        (busy / "chunk").write_text("data")
        mounted = _allocate(base, "web-3")
        stray = base / "web-4" / "not-an-allocation" / "demo-fuse-mount"
        stray.mkdir(parents=True)
        for path in (old, busy, mounted, stray):
            _age(path, 120)
        _age(young, 10)
        with mount_table.open("a") as f:
            f.write(f"101 22 0:50 / {mounted} rw - fuse.juicefs JuiceFS rw\n")

        report = DirectoryReclaimer(
            str(base),
            threshold=1,
            fs=fs,
            probe=_probe(fs, mount_table),
            require_root=False,
        ).run()

        reasons = {d.path: d.reason for r in report.identities for d in r.decisions}
        assert reasons[str(busy)] == SkipReason.NOT_EMPTY
        assert reasons[str(mounted)] == SkipReason.MOUNTED
        assert reasons[str(young)] == SkipReason.TOO_NEW
        assert reasons[str(stray)] == SkipReason.FORMAT_MISMATCH
        assert report.removed_leaves == [str(old)]
        assert not (base / "web-0").exists()
        assert busy.is_dir()
        assert mounted.is_dir()
        assert stray.is_dir()
        assert report.remaining_subdirs == 4

    def test_dry_run_leaves_tree_intact(self, base: Path, mount_table: Path) -> None:
        fs = LocalHostFS()
        leaves = [_allocate(base, f"pod-{n}") for n in range(3)]
        for leaf in leaves:
            _age(leaf, 100)
        before = sorted(str(p) for p in base.rglob("*"))

        report = DirectoryReclaimer(
            str(base),
            threshold=0,
            dry_run=True,
            fs=fs,
            probe=_probe(fs, mount_table),
            require_root=False,
        ).run()

        assert sorted(str(p) for p in base.rglob("*")) == before
        assert all(
            d.action == LeafAction.WOULD_DELETE for r in report.identities for d in r.decisions
        )
        assert report.deleted == 3
        assert report.remaining_subdirs == 0

    def test_fuse_hidden_file_blocks_removal(self, base: Path, mount_table: Path) -> None:
        fs = LocalHostFS()
        leaf = _allocate(base, "web-0")
        (leaf / ".fuse_hidden0000000100000001").write_text("")
        _age(leaf, 120)

        report = DirectoryReclaimer(
            str(base), threshold=0, fs=fs, probe=_probe(fs, mount_table), require_root=False
        ).run()

        assert report.identities[0].decisions[0].reason == SkipReason.MOUNTED
        assert leaf.is_dir()

    def test_symlinked_leaf_not_followed(self, base: Path, mount_table: Path, tmp_path: Path) -> None:
        """A symlink named like a leaf is never treated as a directory."""
        fs = LocalHostFS()
        target = tmp_path / "elsewhere"
        target.mkdir()
        allocation = base / "web-0" / "1717200000123456-a1b2c3d4"
        allocation.mkdir(parents=True)
        (allocation / "demo-fuse-mount").symlink_to(target)

        report = DirectoryReclaimer(
            str(base), threshold=0, fs=fs, probe=_probe(fs, mount_table), require_root=False
        ).run()

        assert report.identities[0].decisions == []
        assert target.is_dir()

    def test_preconditions_on_disk(self, base: Path, mount_table: Path) -> None:
        fs = LocalHostFS()
        reclaimer = DirectoryReclaimer(
            str(base), fs=fs, probe=_probe(fs, mount_table), geteuid=lambda: 0
        )

        reclaimer.check_preconditions()
        assert fs.missing_facilities() == []
