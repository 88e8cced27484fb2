"""Filesystem creation with mkfs.* tools."""

from typing import Optional

from loopdisk.logging import LoggerFactory

from .commands import run_checked_command

log = LoggerFactory.for_disk()

# FAT family tools (mkfs.vfat, mkfs.fat, mkfs.msdos, mkdosfs) take the
# volume name with -n, everything else uses -L.
_NAME_LABEL_MARKERS = ("fat", "dos")


def label_option(fs_type: str) -> str:
    """Return the label flag understood by ``mkfs.<fs_type>``."""
    fs_type = fs_type.lower()
    if any(marker in fs_type for marker in _NAME_LABEL_MARKERS):
        return "-n"
    return "-L"


def build_mkfs_command(target: str, fs_type: str, label: Optional[str] = None) -> list[str]:
    """Build the mkfs command line for a device or image file."""
    command = [f"mkfs.{fs_type}", target]
    if label is not None:
        command.extend([label_option(fs_type), label])
    return command


def format_filesystem(target: str, fs_type: str, label: Optional[str] = None) -> str:
    """Create a filesystem on ``target``.

    Returns:
        Combined output of mkfs

    Raises:
        ExternalCommandError: If mkfs fails or is not installed
    """
    log.debug(f"Formatting {target} as {fs_type} (label: {label})")
    return run_checked_command(build_mkfs_command(target, fs_type, label))
