"""Pytest fixtures for loop disk images.

Enable them in a conftest.py with::

    pytest_plugins = ["loopdisk.pytest_plugin"]
"""

from __future__ import annotations

import os
import shutil
import uuid

import pytest

from loopdisk.logging import get_logger
from loopdisk.storage.disk import create_disk_image
from loopdisk.storage.exceptions import TeardownError
from loopdisk.storage.partition_file import create_file_partition

REQUIRED_TOOLS = ("dd", "parted", "losetup", "blkid", "mount", "umount", "sync")

log = get_logger(source="pytest", tags=["pytest"])


def missing_tools(tools=REQUIRED_TOOLS) -> list[str]:
    """Return the disk utilities that are not on PATH."""
    return [tool for tool in tools if shutil.which(tool) is None]


def privileged_skip_reason() -> str | None:
    """Why loop disk fixtures cannot run here, or None if they can."""
    if os.geteuid() != 0:
        return "requires root"
    if not os.path.exists("/dev/loop-control"):
        return "loop devices unavailable"
    missing = missing_tools()
    if missing:
        return f"missing tools: {', '.join(missing)}"
    return None


def _unique_path(directory, suffix: str) -> str:
    return os.path.join(os.fspath(directory), f"{uuid.uuid4().hex[:12]}{suffix}")


@pytest.fixture
def loop_disk_factory(tmp_path):
    """Fixture building GPT loop disks in ``tmp_path``.

    Call it with a list of PartitionSpec; every disk is closed on teardown.
    """
    disks = []

    def factory(partitions):
        disk = create_disk_image(_unique_path(tmp_path, ".img"), partitions)
        disks.append(disk)
        return disk

    yield factory

    for disk in reversed(disks):
        try:
            disk.close()
        except TeardownError as error:
            log.error(f"Failed to release {disk!r}: {error}")


@pytest.fixture
def file_partition_factory(tmp_path):
    """Fixture building single-filesystem image files in ``tmp_path``.

    Accepts the create_file_partition() arguments after the path.
    """

    def factory(fs_type, size, content_creator=None, archive=False):
        return create_file_partition(
            _unique_path(tmp_path, f".{fs_type}"),
            fs_type,
            size,
            content_creator=content_creator,
            archive=archive,
        )

    return factory
