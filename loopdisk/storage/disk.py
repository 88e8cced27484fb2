"""Loopback-backed GPT disk images for tests.

This module builds multi-partition disk images that tests can use as real
block devices without physical media.

Build Steps:
    1. dd:       allocate a zero-filled backing file (2 MiB + partitions)
    2. parted:   create a GPT partition table
    3. parted:   create one primary partition per spec, contiguous from 1MiB
    4. losetup:  attach the file with partition scanning (-P)
    5. blkid:    resolve the PARTUUID of every partition node
    6. mkfs.*:   format every partition with its label

Rollback:
    Each step that creates a resource pushes a compensating action (remove the
    backing file, detach the loop device) on a rollback stack. The first
    failing step unwinds the stack in reverse order and raises BuildError, so
    a failed build leaves neither a backing file nor an attached loop device.
    Compensation failures are logged, never raised over the original error.

Teardown:
    LoopDisk.close() detaches the loop device and deletes the backing file.
    It raises TeardownError when that fails, and is a no-op once it succeeded.

Example:
    >>> from loopdisk.storage.disk import create_disk_image
    >>> from loopdisk.storage.models import PartitionSpec
    >>> with create_disk_image("/tmp/disk.img", [
    ...     PartitionSpec("ext4", "root", 100),
    ...     PartitionSpec("vfat", "boot", 50),
    ... ]) as disk:
    ...     print(disk.partitions[1].device)
    /dev/loop0p2
"""

from __future__ import annotations

import os
import shutil
from contextlib import ExitStack
from typing import Callable, Iterable, Optional

from loopdisk.config.settings import get_bool
from loopdisk.logging import LoggerFactory, operation_context

from .blkid import resolve_partition_uuid
from .commands import run_checked_command, settle_devices
from .exceptions import BuildError, ExternalCommandError, StorageError, TeardownError
from .filesystem import format_filesystem
from .models import (
    PartitionInfo,
    PartitionSpec,
    disk_size_mib,
    partition_device,
    partition_layout,
)

log = LoggerFactory.for_disk()


class LoopDisk:
    """A disk image attached as a loop device.

    Owns the loop attachment and the backing file. Build instances with
    create_disk_image() and release them with close().
    """

    def __init__(
        self,
        path: str,
        device: Optional[str] = None,
        partitions: Optional[Iterable[PartitionInfo]] = None,
    ):
        self._path = os.fspath(path)
        self.device = device
        self.partitions: list[PartitionInfo] = list(partitions or [])

    def __repr__(self) -> str:
        return f"LoopDisk(device={self.device!r}, partitions={len(self.partitions)})"

    def __enter__(self) -> LoopDisk:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def close(self) -> None:
        """Detach the loop device and delete the backing file.

        Raises:
            TeardownError: If detaching fails (the backing file is kept) or
                the backing file cannot be removed
        """
        if self.device:
            try:
                _detach(self.device)
            except ExternalCommandError as error:
                raise TeardownError(
                    f"Failed to detach {self.device}: {error}",
                    device=self.device,
                    path=self._path,
                ) from error
            self.device = None

        try:
            _remove_path(self._path)
        except OSError as error:
            raise TeardownError(
                f"Failed to remove {self._path}: {error}", path=self._path
            ) from error


def _remove_path(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    log.debug(f"Removed {path}")


def _detach(device: str) -> None:
    run_checked_command(["losetup", "-d", device])
    log.debug(f"Detached {device}")


def _compensate(description: str, action: Callable[..., None], *args) -> None:
    """Run one rollback step, logging instead of raising on failure."""
    try:
        action(*args)
    except (StorageError, OSError) as error:
        log.error(f"Rollback step '{description}' failed: {error}")


def allocate_file(path: str, size: int) -> None:
    """Write a zero-filled file of ``size`` MiB."""
    run_checked_command(
        ["dd", "if=/dev/zero", f"of={path}", "bs=1M", f"count={size}"]
    )


def _create_partitions(path: str, partitions: list[PartitionSpec]) -> None:
    run_checked_command(["parted", "-s", path, "mktable", "gpt"])
    for start, end in partition_layout(partitions):
        run_checked_command(
            ["parted", "-s", path, "mkpart", "primary", f"{start}MiB", f"{end}MiB"]
        )


def _attach(path: str) -> str:
    output = run_checked_command(["losetup", "-f", "-P", path, "--show"])
    device = output.strip()
    if get_bool("settle_udev", True):
        settle_devices()
    return device


def create_disk_image(path, partitions: Iterable[PartitionSpec]) -> LoopDisk:
    """Create a GPT disk image at ``path`` and attach it as a loop device.

    Args:
        path: Backing file path (created, must be unique per test)
        partitions: Partitions to create, in on-disk order

    Returns:
        LoopDisk whose partitions[i].device is ``<loop>p<i+1>``

    Raises:
        BuildError: If any step fails; everything created so far is removed
    """
    path = os.fspath(path)
    partitions = list(partitions)
    size = disk_size_mib(partitions)
    disk = LoopDisk(path)

    with operation_context("disk", path=path, size_mib=size):
        try:
            with ExitStack() as rollback:
                rollback.callback(_compensate, f"remove {path}", _remove_path, path)
                allocate_file(path, size)
                _create_partitions(path, partitions)

                disk.device = _attach(path)
                rollback.callback(
                    _compensate, f"detach {disk.device}", _detach, disk.device
                )
                log.info(f"Attached {path} as {disk.device}")

                for index, spec in enumerate(partitions, start=1):
                    device = partition_device(disk.device, index)
                    part_uuid = resolve_partition_uuid(device)
                    disk.partitions.append(
                        PartitionInfo(
                            fs_type=spec.fs_type,
                            label=spec.label,
                            size=spec.size,
                            device=device,
                            part_uuid=part_uuid,
                        )
                    )
                    format_filesystem(device, spec.fs_type, spec.label)

                rollback.pop_all()
        except (StorageError, OSError) as error:
            disk.device = None
            disk.partitions = []
            raise BuildError(
                f"Failed to build disk image {path}: {error}", path=path
            ) from error

    return disk
