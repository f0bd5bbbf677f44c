"""Unit tests for MountProbe and mount table parsing."""

from conftest import FALLBACK_MOUNT_TABLE, PRIMARY_MOUNT_TABLE, FakeHostFS, mountinfo_line
from sidecarpath.hostpath.mounts import (
    MountProbe,
    decode_mount_field,
    parse_mountinfo,
    parse_proc_mounts,
)

LEAF = "/runtime-mnt/web-0/1717200000123456-a1b2c3d4/demo-fuse-mount"

MOUNTINFO = (
    "22 1 8:1 / / rw,relatime shared:1 - ext4 /dev/sda1 rw\n"
    "101 22 0:50 / /runtime-mnt/with\\040space rw - fuse.juicefs JuiceFS rw\n"
)

PROC_MOUNTS = (
    "/dev/sda1 / ext4 rw,relatime 0 0\n"
    "JuiceFS /runtime-mnt/other fuse.juicefs rw 0 0\n"
)


class TestParsing:
    """Tests for mount table parsers."""

    def test_decode_octal_escapes(self) -> None:
        assert decode_mount_field("/a\\040b\\011c") == "/a b\tc"

    def test_parse_mountinfo(self) -> None:
        """Field five of each mountinfo line is the mount point."""
        assert parse_mountinfo(MOUNTINFO) == {"/", "/runtime-mnt/with space"}

    def test_parse_mountinfo_skips_short_lines(self) -> None:
        assert parse_mountinfo("garbage\n\n1 2 3\n") == set()

    def test_parse_proc_mounts(self) -> None:
        """Field two of each /proc/mounts line is the mount point."""
        assert parse_proc_mounts(PROC_MOUNTS) == {"/", "/runtime-mnt/other"}


class TestMountProbe:
    """Tests for MountProbe.is_mounted."""

    def test_not_mounted(self, fake_fs: FakeHostFS) -> None:
        """An empty directory absent from the mount table is not mounted."""
        fake_fs.mkdir(LEAF)

        assert MountProbe(fake_fs).is_mounted(LEAF) is False

    def test_mounted_via_mountinfo(self, fake_fs: FakeHostFS) -> None:
        fake_fs.mkdir(LEAF)
        fake_fs.write(PRIMARY_MOUNT_TABLE, mountinfo_line(LEAF))

        assert MountProbe(fake_fs).is_mounted(LEAF) is True

    def test_exact_match_only(self, fake_fs: FakeHostFS) -> None:
        """A mount at a parent or sibling path does not count."""
        fake_fs.mkdir(LEAF)
        fake_fs.write(
            PRIMARY_MOUNT_TABLE,
            mountinfo_line("/runtime-mnt/web-0") + mountinfo_line(LEAF + "2", 101),
        )

        assert MountProbe(fake_fs).is_mounted(LEAF) is False

    def test_fallback_table_used_when_primary_unreadable(self) -> None:
        fs = FakeHostFS()
        fs.mkdir(LEAF)
        fs.write(FALLBACK_MOUNT_TABLE, f"JuiceFS {LEAF} fuse.juicefs rw 0 0\n")

        assert MountProbe(fs).is_mounted(LEAF) is True

    def test_fallback_ignored_when_primary_readable(self, fake_fs: FakeHostFS) -> None:
        """The fallback table is only consulted if the primary fails."""
        fake_fs.mkdir(LEAF)
        fake_fs.write(FALLBACK_MOUNT_TABLE, f"JuiceFS {LEAF} fuse.juicefs rw 0 0\n")

        assert MountProbe(fake_fs).is_mounted(LEAF) is False

    def test_no_table_readable_assumes_mounted(self) -> None:
        """Unknown mount state fails closed."""
        fs = FakeHostFS()
        fs.mkdir(LEAF)

        probe = MountProbe(fs)

        assert probe.has_readable_table() is False
        assert probe.is_mounted(LEAF) is True

    def test_fuse_hidden_sentinel(self, fake_fs: FakeHostFS) -> None:
        """A .fuse_hidden* entry counts as evidence of a mount."""
        fake_fs.mkdir(LEAF)
        fake_fs.write(f"{LEAF}/.fuse_hidden0000001a00000001")

        assert MountProbe(fake_fs).is_mounted(LEAF) is True

    def test_unlistable_directory_assumes_mounted(self, fake_fs: FakeHostFS) -> None:
        fake_fs.mkdir(LEAF)
        fake_fs.unlistable.add(LEAF)

        assert MountProbe(fake_fs).is_mounted(LEAF) is True

    def test_canonical_path_matched(self, fake_fs: FakeHostFS) -> None:
        """Paths are canonicalized before comparing with the table."""
        fake_fs.mkdir(LEAF)
        fake_fs.write(PRIMARY_MOUNT_TABLE, mountinfo_line(LEAF))

        assert MountProbe(fake_fs).is_mounted(LEAF + "/./") is True

    def test_custom_table_paths(self) -> None:
        fs = FakeHostFS()
        fs.mkdir(LEAF)
        fs.write("/tmp/mi", mountinfo_line(LEAF))

        probe = MountProbe(fs, primary_table="/tmp/mi", fallback_table="/tmp/none")

        assert probe.is_mounted(LEAF) is True
