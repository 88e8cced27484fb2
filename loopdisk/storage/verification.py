"""Partition content comparison using SHA256 digests."""

import hashlib
import os
from typing import BinaryIO, Optional

from loopdisk.config.settings import DEFAULT_IO_BUFFER_SIZE, get_int
from loopdisk.logging import LoggerFactory

from .exceptions import MismatchError

log = LoggerFactory.for_verify()


def _stream_size(stream: BinaryIO) -> int:
    size = stream.seek(0, os.SEEK_END)
    stream.seek(0, os.SEEK_SET)
    return size


def _hash_stream(stream: BinaryIO, length: int) -> "hashlib._Hash":
    """Hash up to ``length`` bytes; a short stream simply ends early."""
    buffer_size = get_int("io_buffer_size", DEFAULT_IO_BUFFER_SIZE)
    if buffer_size <= 0:
        buffer_size = DEFAULT_IO_BUFFER_SIZE
    digest = hashlib.sha256()
    remaining = length
    while remaining > 0:
        chunk = stream.read(min(buffer_size, remaining))
        if not chunk:
            break
        digest.update(chunk)
        remaining -= len(chunk)
    return digest


def compute_digest(path, length: Optional[int] = None) -> str:
    """Compute the SHA256 hex digest of a file or block device.

    Args:
        path: File or device to read
        length: Number of bytes to hash (defaults to the whole size)
    """
    with open(path, "rb") as stream:
        if length is None:
            length = _stream_size(stream)
        return _hash_stream(stream, length).hexdigest()


def compare_partitions(first, second) -> None:
    """Compare the content of two partitions or image files.

    The length compared is the size of ``first``. If ``second`` is shorter,
    only its available bytes are hashed.

    Raises:
        MismatchError: If the contents differ
        OSError: If either path cannot be read
    """
    with open(first, "rb") as first_stream, open(second, "rb") as second_stream:
        size = _stream_size(first_stream)
        second_stream.seek(0, os.SEEK_SET)
        log.debug(f"Comparing {size} bytes: {first} <-> {second}")

        first_digest = _hash_stream(first_stream, size).digest()
        second_digest = _hash_stream(second_stream, size).digest()

    if first_digest != second_digest:
        log.error(f"Verify mismatch for {first} -> {second}")
        raise MismatchError(os.fspath(first), os.fspath(second))
    log.debug(f"Verify complete: {first} matches {second}")
