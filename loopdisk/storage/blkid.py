"""Partition UUID lookup using blkid."""

import uuid

from loopdisk.logging import LoggerFactory

from .commands import run_checked_command
from .exceptions import PartUUIDNotFoundError, PartUUIDParseError

PARTUUID_TAG = "PARTUUID="

log = LoggerFactory.for_disk()


def parse_partition_uuid(device: str, output: str) -> uuid.UUID:
    """Extract the PARTUUID tag from blkid output.

    Args:
        device: Device the output belongs to (for error messages)
        output: Raw blkid output, e.g. ``/dev/loop0p1: PARTUUID="..."``

    Raises:
        PartUUIDNotFoundError: No PARTUUID field in the output
        PartUUIDParseError: The PARTUUID value is not a UUID
    """
    for field in output.split():
        if not field.startswith(PARTUUID_TAG):
            continue
        value = field[len(PARTUUID_TAG):].strip('"')
        try:
            return uuid.UUID(value)
        except ValueError as error:
            raise PartUUIDParseError(device, value) from error
    raise PartUUIDNotFoundError(device)


def resolve_partition_uuid(device: str) -> uuid.UUID:
    """Return the PARTUUID of a partition device node."""
    output = run_checked_command(["blkid", device])
    part_uuid = parse_partition_uuid(device, output)
    log.debug(f"PARTUUID for {device}: {part_uuid}")
    return part_uuid
