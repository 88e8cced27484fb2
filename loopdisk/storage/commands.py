"""Command execution utilities for disk utilities."""

import shutil
import subprocess

from loopdisk.logging import LoggerFactory

from .exceptions import ExternalCommandError

log = LoggerFactory.for_commands()


def run_checked_command(command):
    """Run a command and raise ExternalCommandError if it fails.

    stdout and stderr are merged so the error carries the utility's
    diagnostics exactly as it printed them.

    Returns:
        Combined output of the command
    """
    log.debug(f"Running command: {' '.join(command)}")
    try:
        result = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as error:
        log.error(f"Command could not be started: {' '.join(command)}: {error}")
        raise ExternalCommandError(command, None, str(error)) from error
    output = result.stdout or ""
    if result.returncode != 0:
        log.bind(stream="output").warning(
            f"Command failed with code {result.returncode}: {output.strip()}"
        )
        raise ExternalCommandError(command, result.returncode, output)
    if output:
        log.bind(stream="output").trace(f"output: {output.strip()}")
    return output


def settle_devices():
    """Wait for udev to create device nodes, if udevadm is available."""
    if shutil.which("udevadm"):
        try:
            run_checked_command(["udevadm", "settle"])
        except ExternalCommandError as error:
            log.warning(f"udevadm settle failed: {error}")


__all__ = [
    "run_checked_command",
    "settle_devices",
]
