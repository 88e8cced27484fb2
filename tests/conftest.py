"""
Pytest configuration and shared fixtures for loopdisk tests.

Unit tests replace subprocess.run with a recorder so the exact command lines
can be asserted. Tests marked ``privileged`` build real loop devices and only
run with ``--run-privileged``.
"""

from pathlib import Path
from typing import List, Optional
from unittest.mock import Mock

import pytest

from loopdisk.config import settings

pytest_plugins = ["loopdisk.pytest_plugin"]


def pytest_addoption(parser):
    parser.addoption(
        "--run-privileged",
        action="store_true",
        default=False,
        help="run tests that need root, loop devices and disk utilities",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "privileged: test builds real loop devices (needs root)"
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-privileged"):
        from loopdisk.pytest_plugin import privileged_skip_reason

        reason = privileged_skip_reason()
    else:
        reason = "needs --run-privileged"
    if reason is None:
        return
    skip_privileged = pytest.mark.skip(reason=reason)
    for item in items:
        if "privileged" in item.keywords:
            item.add_marker(skip_privileged)


# ==============================================================================
# Subprocess Fakes
# ==============================================================================


class FakeCommands:
    """Callable standing in for subprocess.run.

    Records every command line and answers with configured output. Responses
    are matched on a command prefix; the most recently added match wins.
    """

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self._responses: list = []

    def respond(self, *prefix: str, output: str = "", returncode: int = 0) -> None:
        self._responses.append((list(prefix), returncode, output))

    def fail(self, *prefix: str, output: str = "error", returncode: int = 1) -> None:
        self.respond(*prefix, output=output, returncode=returncode)

    def commands(self, name: Optional[str] = None) -> List[List[str]]:
        if name is None:
            return list(self.calls)
        return [call for call in self.calls if call[0] == name]

    def __call__(self, command, **kwargs):
        command = list(command)
        self.calls.append(command)
        returncode, output = 0, ""
        for prefix, code, text in reversed(self._responses):
            if command[: len(prefix)] == prefix:
                returncode, output = code, text
                break
        if returncode == 0 and command[0] == "dd":
            self._write_dd_target(command)
        return Mock(returncode=returncode, stdout=output, stderr=None)

    @staticmethod
    def _write_dd_target(command: List[str]) -> None:
        """Leave a small file behind like dd would."""
        for arg in command:
            if arg.startswith("of="):
                target = Path(arg[len("of="):])
                if target.parent.is_dir():
                    target.write_bytes(b"\0" * 512)


@pytest.fixture
def fake_commands(mocker) -> FakeCommands:
    """
    Fixture replacing subprocess.run for the command runner.

    Returns:
        FakeCommands recorder, succeeding with empty output by default.
    """
    fake = FakeCommands()
    mocker.patch("loopdisk.storage.commands.subprocess.run", side_effect=fake)
    return fake


@pytest.fixture
def mock_subprocess_run(mocker):
    """
    Fixture providing a mock for subprocess.run.

    Returns:
        Mock object for subprocess.run
    """
    return mocker.patch("loopdisk.storage.commands.subprocess.run")


# ==============================================================================
# Settings
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_settings():
    """
    Auto-use fixture restoring default settings around each test.

    udev settling is disabled so unit tests see only the build commands.
    """
    settings.load_settings()
    settings.set_setting("settle_udev", False)
    yield settings.settings_store
    settings.load_settings()


# ==============================================================================
# Sample Data
# ==============================================================================


ROOT_UUID = "0f5c2a9e-8f0b-4b8e-9d4a-1c2b3d4e5f60"
BOOT_UUID = "7d1e6b52-3a4c-4e21-b0f7-9a8c6d5e4f31"


def blkid_output(device: str, part_uuid: str) -> str:
    return f'{device}: PARTLABEL="primary" PARTUUID="{part_uuid}"\n'


@pytest.fixture
def loop_commands(fake_commands) -> FakeCommands:
    """
    Fixture answering losetup with /dev/loop7 and blkid for two partitions.
    """
    fake_commands.respond("losetup", "-f", output="/dev/loop7\n")
    fake_commands.respond(
        "blkid", "/dev/loop7p1", output=blkid_output("/dev/loop7p1", ROOT_UUID)
    )
    fake_commands.respond(
        "blkid", "/dev/loop7p2", output=blkid_output("/dev/loop7p2", BOOT_UUID)
    )
    return fake_commands


@pytest.fixture
def temp_mount_point(tmp_path, mocker):
    """
    Fixture making tempfile.mkdtemp return a known directory under tmp_path.
    """
    mount_dir = tmp_path / "mnt" / "um_mount_test"
    mount_dir.mkdir(parents=True)
    mocker.patch(
        "loopdisk.storage.mount.tempfile.mkdtemp", return_value=str(mount_dir)
    )
    return mount_dir
