"""Unit tests for the allocate command."""

import json
import re

from sidecarpath.cli.main import app
from sidecarpath.hostpath.validator import validate_path_format
from typer.testing import CliRunner

runner = CliRunner()

BASE = "/runtime-mnt/juicefs/default"


class TestAllocateCommand:
    """Tests for sidecarpath allocate."""

    def test_prints_path_only(self) -> None:
        """Text output is the bare path, suitable for capture."""
        result = runner.invoke(
            app, ["allocate", "--base", BASE, "--pod-name", "test", "--dataset-path", "/data/jfsdemo"]
        )

        assert result.exit_code == 0
        path = result.stdout.strip()
        assert re.fullmatch(rf"{BASE}/test/\d{{16}}-[a-z0-9]{{8}}/jfsdemo-fuse-mount", path)
        assert validate_path_format(path, BASE)

    def test_generate_name(self) -> None:
        result = runner.invoke(
            app, ["allocate", "-b", BASE, "-g", "job-", "-d", "/data/jfsdemo/"]
        )

        assert result.exit_code == 0
        assert result.stdout.startswith(f"{BASE}/job---generate-name/")

    def test_json_output(self) -> None:
        result = runner.invoke(
            app,
            ["allocate", "-b", BASE, "-n", "web-0", "-d", "/data/ds", "--format", "json"],
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["identity"] == "web-0"
        assert data["mount_dir"] == "ds-fuse-mount"
        assert data["path"] == f"{BASE}/{data['unique_elem']}/ds-fuse-mount"

    def test_without_name_or_generate_name(self) -> None:
        """With neither set the identity is the bare generate-name marker."""
        result = runner.invoke(app, ["allocate", "-b", BASE, "-d", "/data/ds"])

        assert result.exit_code == 0
        path = result.stdout.strip()
        assert path.startswith(f"{BASE}/--generate-name/")
        assert validate_path_format(path, BASE)

    def test_bad_dataset_path(self) -> None:
        result = runner.invoke(app, ["allocate", "-b", BASE, "-n", "web-0", "-d", "/"])

        assert result.exit_code == 1
