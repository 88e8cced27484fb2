"""Loopback-backed disk image fixtures for tests."""

from .__version__ import __version__
from .storage import (
    BuildError,
    ExternalCommandError,
    LoopDisk,
    MismatchError,
    PartitionInfo,
    PartitionSpec,
    PartUUIDNotFoundError,
    PartUUIDParseError,
    PopulateError,
    StorageError,
    TeardownError,
    compare_partitions,
    compute_digest,
    create_disk_image,
    create_file_partition,
    resolve_partition_uuid,
)

__all__ = [
    "__version__",
    "BuildError",
    "ExternalCommandError",
    "LoopDisk",
    "MismatchError",
    "PartitionInfo",
    "PartitionSpec",
    "PartUUIDNotFoundError",
    "PartUUIDParseError",
    "PopulateError",
    "StorageError",
    "TeardownError",
    "compare_partitions",
    "compute_digest",
    "create_disk_image",
    "create_file_partition",
    "resolve_partition_uuid",
]
