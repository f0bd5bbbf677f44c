"""Narrow filesystem interface used by the mount probe and reclaimer.

Every filesystem effect of a reclaim run goes through ``HostFS``: stat,
list children, remove-if-empty and read a mount table. ``LocalHostFS``
maps these onto direct ``os`` calls; tests substitute an in-memory
implementation of the same interface.
"""

import os
from abc import ABC, abstractmethod

# OS facilities a reclaim run cannot work without.
REQUIRED_FACILITIES: tuple[str, ...] = ("stat", "scandir", "rmdir")


class HostFS(ABC):
    """Abstract filesystem operations for host-path reclamation.

    Paths are absolute POSIX strings. Listing methods return entry
    names (not full paths) sorted for deterministic traversal.
    """

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        """Return True if the path is a directory and not a symlink."""

    @abstractmethod
    def list_dirs(self, path: str) -> list[str]:
        """Names of immediate subdirectories, excluding symlinks.

        Raises:
            OSError: If the directory cannot be listed.
        """

    @abstractmethod
    def list_entries(self, path: str) -> list[str]:
        """Names of all immediate entries, including hidden ones.

        Raises:
            OSError: If the directory cannot be listed.
        """

    @abstractmethod
    def mtime(self, path: str) -> float:
        """Last modification time in seconds since the epoch.

        Raises:
            OSError: If the path cannot be stat'ed.
        """

    @abstractmethod
    def remove_empty_dir(self, path: str) -> None:
        """Remove a directory only if it is empty. Never recursive.

        Raises:
            OSError: If the directory is non-empty, busy or missing.
        """

    @abstractmethod
    def read_text(self, path: str) -> str:
        """Read a whole text file (used for mount tables).

        Raises:
            OSError: If the file cannot be read.
        """

    @abstractmethod
    def realpath(self, path: str) -> str:
        """Canonical path with symlinks resolved."""

    def missing_facilities(self) -> list[str]:
        """Names of required OS facilities that are unavailable."""
        return []


class LocalHostFS(HostFS):
    """HostFS backed by direct ``os`` calls on the local host."""

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path) and not os.path.islink(path)

    def list_dirs(self, path: str) -> list[str]:
        with os.scandir(path) as it:
            return sorted(entry.name for entry in it if entry.is_dir(follow_symlinks=False))

    def list_entries(self, path: str) -> list[str]:
        with os.scandir(path) as it:
            return sorted(entry.name for entry in it)

    def mtime(self, path: str) -> float:
        return os.stat(path, follow_symlinks=False).st_mtime

    def remove_empty_dir(self, path: str) -> None:
        # rmdir(2) refuses non-empty directories; keep it the only removal primitive.
        os.rmdir(path)

    def read_text(self, path: str) -> str:
        with open(path, encoding="utf-8", errors="surrogateescape") as f:
            return f.read()

    def realpath(self, path: str) -> str:
        return os.path.realpath(path)

    def missing_facilities(self) -> list[str]:
        return [name for name in REQUIRED_FACILITIES if not hasattr(os, name)]
