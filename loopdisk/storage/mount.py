"""Scoped mounting of image files on temporary mount points."""

import os
import tempfile
from contextlib import contextmanager
from typing import Iterator

from loopdisk.config.settings import DEFAULT_MOUNT_PREFIX, get_setting
from loopdisk.logging import LoggerFactory

from .commands import run_checked_command
from .exceptions import ExternalCommandError

log = LoggerFactory.for_partition_file()


def _release_mount(mount_point: str, mounted: bool) -> None:
    """Flush, unmount and remove a mount point; failures are only logged.

    The directory is removed with rmdir so a mount that failed to detach
    keeps its content.
    """
    if mounted:
        try:
            run_checked_command(["sync"])
        except ExternalCommandError as error:
            log.error(f"Sync error: {error}")

        try:
            run_checked_command(["umount", mount_point])
        except ExternalCommandError as error:
            log.error(f"Umount error: {error}")

    try:
        os.rmdir(mount_point)
    except OSError as error:
        log.error(f"Remove error: {error}")


@contextmanager
def temporary_mount(source: str) -> Iterator[str]:
    """Mount ``source`` on a fresh temporary directory.

    Yields the mount point path. On exit, whether the body succeeded or not,
    pending writes are synced, the filesystem is unmounted and the directory
    removed.

    Raises:
        ExternalCommandError: If mount fails (the directory is still removed)
    """
    prefix = get_setting("mount_prefix", DEFAULT_MOUNT_PREFIX)
    mount_point = tempfile.mkdtemp(prefix=prefix)
    mounted = False
    try:
        run_checked_command(["mount", source, mount_point])
        mounted = True
        log.debug(f"Mounted {source} at {mount_point}")
        yield mount_point
    finally:
        _release_mount(mount_point, mounted)
