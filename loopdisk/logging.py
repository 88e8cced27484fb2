from __future__ import annotations

import os
import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

DEFAULT_LOG_DIR = os.environ.get("LOOPDISK_LOG_DIR")


def _should_log_command_output(record) -> bool:
    """Keep raw command output at TRACE unless the command failed."""
    tags = record["extra"].get("tags", [])
    if "command" in tags and record["extra"].get("stream") == "output":
        return record["level"].no <= logger.level("TRACE").no or (
            record["level"].no >= logger.level("WARNING").no
        )
    return True


def _combined_filter(record) -> bool:
    """Combined filter for all log suppression rules."""
    return _should_log_command_output(record)


def setup_logging(
    *,
    debug: bool = False,
    trace: bool = False,
    log_dir: Path | str | None = None,
) -> Logger:
    """
    Setup logging sinks for fixture code.

    Sinks:
    - stderr: INFO+ (DEBUG with ``debug``, TRACE with ``trace``)
    - debug.log: DEBUG+ events, only when a log directory is configured
    - structured.jsonl: structured JSON logs, only when a log directory is configured

    Args:
        debug: Enable DEBUG level logging
        trace: Enable TRACE level logging (every command's output)
        log_dir: Log directory (defaults to $LOOPDISK_LOG_DIR, no files if unset)
    """
    logger.remove()
    logger.configure(extra={"job_id": "-", "tags": [], "source": "loopdisk"})

    if trace:
        console_level = "TRACE"
    elif debug:
        console_level = "DEBUG"
    else:
        console_level = "INFO"

    logger.add(
        sys.stderr,
        level=console_level,
        backtrace=False,
        diagnose=False,
        filter=_combined_filter,
        colorize=True,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[source]: <12}</cyan> | "
            "<blue>{extra[job_id]: <15}</blue> | "
            "{message}"
        ),
    )

    log_dir = log_dir or DEFAULT_LOG_DIR
    if log_dir is None:
        return logger

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_dir / "debug.log",
        level="TRACE" if trace else "DEBUG",
        rotation="10 MB",
        retention="3 days",
        backtrace=True,
        diagnose=False,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{extra[source]: <12} | "
            "{extra[job_id]: <15} | "
            "{extra[tags]} | "
            "{message}"
        ),
    )

    logger.add(
        log_dir / "structured.jsonl",
        level="INFO",
        rotation="10 MB",
        retention="7 days",
        serialize=True,
        format="{message}",
    )

    return logger


def get_logger(
    *,
    job_id: str | None = None,
    tags: Iterable[str] | None = None,
    source: str | None = None,
) -> Logger:
    """
    Get a logger with bound context.

    Args:
        job_id: Job identifier for tracking operations
        tags: Tags for filtering (e.g., ["disk", "losetup"])
        source: Source component (e.g., "disk", "verify")

    Returns:
        Logger with bound context
    """
    extras: dict[str, object] = {}
    if job_id is not None:
        extras["job_id"] = job_id
    if tags is not None:
        extras["tags"] = list(tags)
    if source is not None:
        extras["source"] = source
    return logger.bind(**extras)


@contextmanager
def operation_context(operation: str, **details):
    """
    Context manager for tracking fixture operations with automatic timing.

    Logs operation start, completion, and failure with duration tracking.

    Example:
        with operation_context("disk", path="/tmp/disk.img") as log:
            log.debug("Creating GPT")
    """
    job_id = f"{operation}-{uuid.uuid4().hex[:8]}"

    with logger.contextualize(job_id=job_id, operation=operation, **details):
        start_time = time.time()
        log = logger.bind(source=operation, job_id=job_id, tags=[operation])

        log.debug(f"{operation.capitalize()} started", **details)

        try:
            yield log
            duration = time.time() - start_time
            log.success(
                f"{operation.capitalize()} completed",
                duration_seconds=round(duration, 2),
            )
        except Exception as e:
            duration = time.time() - start_time
            log.error(
                f"{operation.capitalize()} failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(duration, 2),
            )
            raise


class LoggerFactory:
    """
    Factory for creating domain-specific loggers with automatic context.

    Each factory method returns a logger pre-configured with appropriate
    source and tags for the domain.
    """

    @staticmethod
    def for_disk(job_id: str | None = None) -> Logger:
        """Logger for multi-partition disk images."""
        if job_id is None:
            job_id = f"disk-{uuid.uuid4().hex[:8]}"
        return logger.bind(job_id=job_id, source="disk", tags=["disk", "loop"])

    @staticmethod
    def for_partition_file(job_id: str | None = None) -> Logger:
        """Logger for single-partition image files."""
        if job_id is None:
            job_id = f"part-{uuid.uuid4().hex[:8]}"
        return logger.bind(
            job_id=job_id, source="partition", tags=["partition", "mount"]
        )

    @staticmethod
    def for_verify() -> Logger:
        """Logger for partition comparison."""
        return logger.bind(source="verify", tags=["verify"])

    @staticmethod
    def for_commands() -> Logger:
        """Logger for external command execution."""
        return logger.bind(source="command", tags=["command"])
