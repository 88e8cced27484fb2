"""Tests for the pytest fixtures shipped with loopdisk."""
from pathlib import Path

from loopdisk import pytest_plugin
from loopdisk.storage.disk import LoopDisk
from loopdisk.storage.models import PartitionSpec


class TestPrivilegedSkipReason:
    """Tests for privileged_skip_reason."""

    def test_requires_root(self, mocker):
        mocker.patch("loopdisk.pytest_plugin.os.geteuid", return_value=1000)

        assert pytest_plugin.privileged_skip_reason() == "requires root"

    def test_requires_loop_control(self, mocker):
        mocker.patch("loopdisk.pytest_plugin.os.geteuid", return_value=0)
        mocker.patch("loopdisk.pytest_plugin.os.path.exists", return_value=False)

        assert pytest_plugin.privileged_skip_reason() == "loop devices unavailable"

    def test_reports_missing_tools(self, mocker):
        mocker.patch("loopdisk.pytest_plugin.os.geteuid", return_value=0)
        mocker.patch("loopdisk.pytest_plugin.os.path.exists", return_value=True)
        mocker.patch(
            "loopdisk.pytest_plugin.shutil.which",
            side_effect=lambda tool: None if tool in ("parted", "blkid") else f"/usr/bin/{tool}",
        )

        assert pytest_plugin.privileged_skip_reason() == "missing tools: parted, blkid"

    def test_ready(self, mocker):
        mocker.patch("loopdisk.pytest_plugin.os.geteuid", return_value=0)
        mocker.patch("loopdisk.pytest_plugin.os.path.exists", return_value=True)
        mocker.patch("loopdisk.pytest_plugin.shutil.which", return_value="/usr/bin/tool")

        assert pytest_plugin.privileged_skip_reason() is None


def test_loop_disk_factory_builds_in_tmp_path(loop_commands, loop_disk_factory, tmp_path):
    """Test the factory builds unique images under tmp_path."""
    disk = loop_disk_factory([PartitionSpec("ext4", "root", 4)])
    other = loop_disk_factory([PartitionSpec("ext4", "root", 4)])

    assert isinstance(disk, LoopDisk)
    images = [command[2][len("of="):] for command in loop_commands.commands("dd")]
    assert len(set(images)) == 2
    assert all(Path(image).parent == tmp_path for image in images)
    assert other.partitions[0].device == "/dev/loop7p1"


def test_file_partition_factory(fake_commands, file_partition_factory, tmp_path):
    """Test the factory names the file after the filesystem type."""
    result = file_partition_factory("vfat", 8)

    assert result.parent == tmp_path
    assert result.suffix == ".vfat"
    assert fake_commands.commands("mkfs.vfat") == [["mkfs.vfat", str(result)]]
