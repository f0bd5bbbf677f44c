"""Reclaimer configuration and settings.

This module provides the configuration model and TOML I/O for the
host-path reclaimer. Values from the config file are defaults; CLI
options override them.

Configuration is stored in ~/.config/sidecarpath/reclaim.toml
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sidecarpath.core.paths import get_mount_root, get_reclaim_config_path
from sidecarpath.hostpath.reclaimer import DEFAULT_AGE_DAYS, DEFAULT_THRESHOLD


class ReclaimConfig(BaseModel):
    """Configuration for the host-path reclaimer.

    Attributes:
        base_dir: Base directory holding PodIdentity directories.
        threshold: Allocation directory count that triggers a sweep.
        age_days: Minimum age in days before a leaf may be removed.
        workers: PodIdentity subtrees swept in parallel.
        require_root: Refuse to run without root privilege.
    """

    model_config = ConfigDict(extra="forbid")

    base_dir: Annotated[
        str,
        Field(default_factory=get_mount_root, description="Base directory to sweep"),
    ]
    threshold: Annotated[
        int,
        Field(ge=0, description="Allocation directory count that triggers a sweep"),
    ] = DEFAULT_THRESHOLD
    age_days: Annotated[
        int,
        Field(ge=0, description="Minimum leaf age in days"),
    ] = DEFAULT_AGE_DAYS
    workers: Annotated[
        int,
        Field(ge=1, le=64, description="Parallel PodIdentity sweeps (1-64)"),
    ] = 1
    require_root: Annotated[
        bool,
        Field(description="Refuse to run without root privilege"),
    ] = True

    @field_validator("base_dir")
    @classmethod
    def validate_base_dir(cls, v: str) -> str:
        """Require an absolute base directory."""
        if not v.startswith("/"):
            msg = f"base_dir must be an absolute path, got {v!r}"
            raise ValueError(msg)
        return v


class ConfigError(Exception):
    """Base exception for reclaimer configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_reclaim_config(path: Path | None = None) -> ReclaimConfig:
    """Load reclaimer configuration from a TOML file.

    A missing file is not an error: defaults are returned.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated ReclaimConfig object.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or doesn't match the schema.
    """
    config_path = path or get_reclaim_config_path()

    if not config_path.exists():
        return ReclaimConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return ReclaimConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_reclaim_config(config: ReclaimConfig, path: Path | None = None) -> Path:
    """Save reclaimer configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The ReclaimConfig object to save.
        path: Path to save the config. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_reclaim_config_path()

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(config.model_dump(), f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
