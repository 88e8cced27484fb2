"""Custom exceptions for disk image fixtures.

This module defines a hierarchy of exceptions so that test code can tell a
failing disk utility apart from a missing partition UUID or a content mismatch.

Exception Hierarchy:
    StorageError (base)
        ├── ExternalCommandError
        ├── PartUUIDError
        │   ├── PartUUIDNotFoundError
        │   └── PartUUIDParseError
        ├── BuildError
        │   └── PopulateError
        ├── TeardownError
        └── MismatchError

Usage:
    from loopdisk.storage.exceptions import MismatchError

    try:
        compare_partitions(expected, actual)
    except MismatchError:
        ...
"""

from typing import Optional, Sequence


class StorageError(Exception):
    """Base exception for all fixture operations."""



class ExternalCommandError(StorageError):
    """An external disk utility exited non-zero or could not be started."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int],
        output: str = "",
    ):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        if returncode is None:
            status = "could not be started"
        else:
            status = f"exit status {returncode}"
        super().__init__(f"Command failed ({' '.join(self.command)}): {status} ({output})")


class PartUUIDError(StorageError):
    """Base exception for partition UUID lookup errors."""



class PartUUIDNotFoundError(PartUUIDError):
    """No PARTUUID tag was reported for the device."""

    def __init__(self, device: str):
        self.device = device
        super().__init__(f"Partition UUID not found: {device}")


class PartUUIDParseError(PartUUIDError):
    """The PARTUUID tag value is not a valid UUID."""

    def __init__(self, device: str, value: str):
        self.device = device
        self.value = value
        super().__init__(f"Invalid partition UUID for {device}: {value!r}")


class BuildError(StorageError):
    """Disk image or partition file could not be built."""

    def __init__(self, message: str, path: str = None):
        self.path = path
        super().__init__(message)


class PopulateError(BuildError):
    """Content creator failed while the partition was mounted."""

    def __init__(self, mount_point: str, reason: str = "", path: str = None):
        self.mount_point = mount_point
        self.reason = reason
        msg = f"Failed to populate {mount_point}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, path=path)


class TeardownError(StorageError):
    """Loop device detach or backing file removal failed."""

    def __init__(self, message: str, device: str = None, path: str = None):
        self.device = device
        self.path = path
        super().__init__(message)


class MismatchError(StorageError):
    """Compared partitions have different content."""

    def __init__(self, first: str, second: str):
        self.first = first
        self.second = second
        super().__init__(f"Data mismatch: {first} != {second}")
