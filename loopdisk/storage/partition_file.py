"""Single-filesystem image files, optionally populated and archived."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

from loopdisk.config.settings import DEFAULT_ARCHIVE_COMMAND, get_setting
from loopdisk.logging import LoggerFactory

from .commands import run_checked_command
from .disk import allocate_file
from .exceptions import BuildError, PopulateError, StorageError
from .filesystem import format_filesystem
from .mount import temporary_mount

log = LoggerFactory.for_partition_file()

ContentCreator = Callable[[str], None]


def archive_file(path: str) -> Path:
    """Compress ``path`` next to itself, keeping the original.

    Returns:
        Path of the compressed copy
    """
    command = list(get_setting("archive_command", DEFAULT_ARCHIVE_COMMAND))
    run_checked_command([*command, path])
    return Path(f"{path}.gz")


def _populate(path: str, content_creator: ContentCreator) -> None:
    with temporary_mount(path) as mount_point:
        try:
            content_creator(mount_point)
        except PopulateError:
            raise
        except Exception as error:
            raise PopulateError(mount_point, str(error), path=path) from error


def create_file_partition(
    path,
    fs_type: str,
    size: int,
    content_creator: Optional[ContentCreator] = None,
    archive: bool = False,
) -> Path:
    """Create a file holding a single ``fs_type`` filesystem of ``size`` MiB.

    The filesystem spans the whole file, there is no partition table. When
    ``content_creator`` is given, the file is mounted on a temporary directory
    and the callable receives the mount point; the file is always unmounted
    afterwards. When ``archive`` is set, a gzip copy is written next to the
    file once everything else succeeded.

    Returns:
        Path of the image, or of its ``.gz`` copy when archived

    Raises:
        PopulateError: If content_creator fails
        BuildError: If any disk utility or file system call fails
    """
    path = os.fspath(path)
    log.debug(f"Creating {fs_type} partition file {path} ({size} MiB)")
    try:
        allocate_file(path, size)
        format_filesystem(path, fs_type)

        if content_creator is not None:
            _populate(path, content_creator)

        if archive:
            archived = archive_file(path)
            log.info(f"Created {archived}")
            return archived
    except BuildError:
        raise
    except (StorageError, OSError) as error:
        raise BuildError(
            f"Failed to create partition file {path}: {error}", path=path
        ) from error

    log.info(f"Created {path}")
    return Path(path)
