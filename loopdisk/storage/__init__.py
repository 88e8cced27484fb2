"""Loopback disk images, partition files and content verification.

Main Functions:
    - create_disk_image(): GPT disk image attached as a loop device
    - create_file_partition(): Single filesystem image file
    - compare_partitions(): SHA256 comparison of two partitions
    - resolve_partition_uuid(): PARTUUID lookup via blkid

Command Execution:
    - run_checked_command(): Run command and check result
"""

from .blkid import parse_partition_uuid, resolve_partition_uuid
from .commands import run_checked_command
from .disk import LoopDisk, create_disk_image
from .exceptions import (
    BuildError,
    ExternalCommandError,
    MismatchError,
    PartUUIDError,
    PartUUIDNotFoundError,
    PartUUIDParseError,
    PopulateError,
    StorageError,
    TeardownError,
)
from .models import PartitionInfo, PartitionSpec, disk_size_mib, partition_layout
from .partition_file import create_file_partition
from .verification import compare_partitions, compute_digest


__all__ = [
    # Disk images
    "LoopDisk",
    "create_disk_image",
    "create_file_partition",
    # Verification
    "compare_partitions",
    "compute_digest",
    # Identity
    "parse_partition_uuid",
    "resolve_partition_uuid",
    # Models
    "PartitionInfo",
    "PartitionSpec",
    "disk_size_mib",
    "partition_layout",
    # Command runners
    "run_checked_command",
    # Exceptions
    "BuildError",
    "ExternalCommandError",
    "MismatchError",
    "PartUUIDError",
    "PartUUIDNotFoundError",
    "PartUUIDParseError",
    "PopulateError",
    "StorageError",
    "TeardownError",
]
