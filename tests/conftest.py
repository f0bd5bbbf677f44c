"""Pytest configuration and shared fixtures.

This module contains an in-memory HostFS double and fixtures used
across all test modules.
"""

import errno
import posixpath
from collections.abc import Callable

import pytest
from sidecarpath.hostpath.hostfs import HostFS
from sidecarpath.hostpath.mounts import FALLBACK_MOUNT_TABLE, PRIMARY_MOUNT_TABLE, MountProbe

# Fixed "now" for age calculations: 2024-06-01T00:00:00Z
NOW = 1_717_200_000.0
DAY = 86400.0


class FakeHostFS(HostFS):
    """In-memory directory tree implementing the HostFS interface.

    Directories carry an mtime; files carry text content. Every removal
    goes through ``remove_empty_dir``, which behaves like rmdir(2).
    """

    def __init__(self) -> None:
        self.dirs: dict[str, float] = {"/": 0.0}
        self.files: dict[str, str] = {}
        self.children: dict[str, set[str]] = {"/": set()}
        self.removed: list[str] = []
        self.unlistable: set[str] = set()
        self.rmdir_errors: dict[str, OSError] = {}
        self.missing: list[str] = []

    # --- tree building -------------------------------------------------

    def mkdir(self, path: str, mtime: float = NOW) -> str:
        path = posixpath.normpath(path)
        parent = posixpath.dirname(path)
        if parent not in self.dirs:
            self.mkdir(parent, mtime)
        if path not in self.dirs:
            self.dirs[path] = mtime
            self.children[path] = set()
            self.children[parent].add(posixpath.basename(path))
        else:
            self.dirs[path] = mtime
        return path

    def write(self, path: str, content: str = "") -> str:
        path = posixpath.normpath(path)
        parent = posixpath.dirname(path)
        if parent not in self.dirs:
            self.mkdir(parent)
        self.files[path] = content
        self.children[parent].add(posixpath.basename(path))
        return path

    # --- HostFS --------------------------------------------------------

    def is_dir(self, path: str) -> bool:
        return path in self.dirs

    def list_dirs(self, path: str) -> list[str]:
        self._check_listable(path)
        return sorted(n for n in self.children[path] if posixpath.join(path, n) in self.dirs)

    def list_entries(self, path: str) -> list[str]:
        self._check_listable(path)
        return sorted(self.children[path])

    def mtime(self, path: str) -> float:
        if path not in self.dirs:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        return self.dirs[path]

    def remove_empty_dir(self, path: str) -> None:
        if path in self.rmdir_errors:
            raise self.rmdir_errors[path]
        if path not in self.dirs:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        if self.children[path]:
            raise OSError(errno.ENOTEMPTY, "Directory not empty", path)
        del self.dirs[path]
        del self.children[path]
        self.children[posixpath.dirname(path)].discard(posixpath.basename(path))
        self.removed.append(path)

    def read_text(self, path: str) -> str:
        if path not in self.files:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        return self.files[path]

    def realpath(self, path: str) -> str:
        return posixpath.normpath(path)

    def missing_facilities(self) -> list[str]:
        return list(self.missing)

    def _check_listable(self, path: str) -> None:
        if path in self.unlistable:
            raise PermissionError(errno.EACCES, "Permission denied", path)
        if path not in self.dirs:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)


def mountinfo_line(mount_point: str, mount_id: int = 100) -> str:
    """Build a /proc/self/mountinfo line for a FUSE mount."""
    escaped = mount_point.replace(" ", "\\040")
    return f"{mount_id} 25 0:50 / {escaped} rw,relatime shared:1 - fuse.juicefs JuiceFS rw\n"


def allocation_id(n: int) -> str:
    """Deterministic, well-formed AllocationID for test trees."""
    return f"{1700000000000000 + n:016d}-abcd{n % 10000:04d}"


@pytest.fixture
def fake_fs() -> FakeHostFS:
    """Empty in-memory filesystem with an empty primary mount table."""
    fs = FakeHostFS()
    fs.write(PRIMARY_MOUNT_TABLE, mountinfo_line("/"))
    return fs


@pytest.fixture
def probe(fake_fs: FakeHostFS) -> MountProbe:
    """Mount probe reading the fake filesystem's mount tables."""
    return MountProbe(fake_fs)


@pytest.fixture
def make_leaf(fake_fs: FakeHostFS) -> Callable[..., str]:
    """Factory creating base/identity/allocation/dataset-fuse-mount leaves."""

    def _make(
        identity: str,
        n: int,
        *,
        base: str = "/runtime-mnt",
        dataset: str = "demo",
        age_days: float = 100,
    ) -> str:
        mtime = NOW - age_days * DAY
        leaf = posixpath.join(base, identity, allocation_id(n), f"{dataset}-fuse-mount")
        fake_fs.mkdir(leaf, mtime)
        return leaf

    return _make


__all__ = [
    "DAY",
    "FALLBACK_MOUNT_TABLE",
    "NOW",
    "PRIMARY_MOUNT_TABLE",
    "FakeHostFS",
    "allocation_id",
    "mountinfo_line",
]
