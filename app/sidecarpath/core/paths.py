"""Path management for sidecarpath.

This module provides the host mount-root convention shared with the
runtime metadata store, and XDG-compliant paths for the tool's own
configuration.

Defaults:
- Mount root: /runtime-mnt (or $MOUNT_ROOT)
- Config: ~/.config/sidecarpath/
"""

import logging
import os
import posixpath
from pathlib import Path

logger = logging.getLogger(__name__)

# Application identifier for directory naming
APP_NAME = "sidecarpath"

# Environment variable holding the operator-wide host mount root.
MOUNT_ROOT_ENV = "MOUNT_ROOT"

DEFAULT_MOUNT_ROOT = "/runtime-mnt"


def is_valid_mount_root(path: str) -> bool:
    """Check if a value is usable as the host mount root.

    Args:
        path: Candidate mount root.

    Returns:
        True for a non-root absolute path without ``..`` segments.
    """
    if not path or not posixpath.isabs(path):
        return False
    normalized = posixpath.normpath(path)
    if not normalized.strip("/"):
        return False
    return ".." not in normalized.split("/")


def get_mount_root() -> str:
    """Get the host mount root.

    Reads $MOUNT_ROOT and falls back to the default when it is unset
    or invalid.

    Returns:
        Normalized absolute mount root.
    """
    value = os.environ.get(MOUNT_ROOT_ENV, "")
    if value and is_valid_mount_root(value):
        return posixpath.normpath(value)
    if value:
        logger.warning("Ignoring invalid %s=%r, using %s", MOUNT_ROOT_ENV, value, DEFAULT_MOUNT_ROOT)
    return DEFAULT_MOUNT_ROOT


def get_runtime_base_path(runtime_type: str) -> str:
    """Get the base path for one cache-filesystem runtime type.

    $MOUNT_ROOT joined with the runtime type. When $MOUNT_ROOT is unset or
    invalid the runtime type sits directly under the filesystem root, the
    layout the metadata store uses; it does not fall back to
    DEFAULT_MOUNT_ROOT.

    Args:
        runtime_type: Runtime type segment (e.g., "juicefs").

    Returns:
        Absolute base path for the runtime type.

    Raises:
        ValueError: If runtime_type is not a single path segment.
    """
    if not runtime_type or "/" in runtime_type or runtime_type in (".", ".."):
        msg = f"Invalid runtime type: {runtime_type!r}"
        raise ValueError(msg)
    value = os.environ.get(MOUNT_ROOT_ENV, "")
    if is_valid_mount_root(value):
        return posixpath.join(posixpath.normpath(value), runtime_type)
    return "/" + runtime_type


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/sidecarpath/ (or XDG_CONFIG_HOME/sidecarpath/).
    """
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_reclaim_config_path() -> Path:
    """Get the reclaimer configuration file path.

    Returns:
        Path to ~/.config/sidecarpath/reclaim.toml.
    """
    return get_config_dir() / "reclaim.toml"


def get_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/sidecarpath/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Returns:
        Path to the configuration directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    path = get_config_dir()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create config directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create config directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path
