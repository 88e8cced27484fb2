"""Partition descriptions and layout helpers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Iterable

# 1 MiB before the first partition for the GPT, 1 MiB after the last one
# for the backup GPT.
HEAD_RESERVED_MIB = 1
TAIL_RESERVED_MIB = 1


@dataclass(frozen=True)
class PartitionSpec:
    """One partition to create: filesystem type, label and size in MiB."""

    fs_type: str
    label: str
    size: int

    def __post_init__(self) -> None:
        if not self.fs_type:
            raise ValueError("Filesystem type is required")
        if isinstance(self.size, bool) or not isinstance(self.size, int):
            raise ValueError(f"Partition size must be an integer MiB count: {self.size!r}")
        if self.size <= 0:
            raise ValueError(f"Partition size must be positive: {self.size}")


@dataclass(frozen=True)
class PartitionInfo(PartitionSpec):
    """A created partition: its spec plus device node and PARTUUID."""

    device: str
    part_uuid: uuid.UUID


def disk_size_mib(partitions: Iterable[PartitionSpec]) -> int:
    """Total backing file size in MiB for the given partitions."""
    return HEAD_RESERVED_MIB + sum(part.size for part in partitions) + TAIL_RESERVED_MIB


def partition_layout(partitions: Iterable[PartitionSpec]) -> list[tuple[int, int]]:
    """Return contiguous ``(start, end)`` MiB offsets for each partition."""
    layout = []
    offset = HEAD_RESERVED_MIB
    for part in partitions:
        layout.append((offset, offset + part.size))
        offset += part.size
    return layout


def partition_device(device: str, index: int) -> str:
    """Device node of the 1-based partition ``index`` on a loop device."""
    return f"{device}p{index}"
