"""Settings storage for fixture configuration."""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


SETTINGS_PATH = Path(
    os.environ.get(
        "LOOPDISK_SETTINGS_PATH",
        Path.home() / ".config" / "loopdisk" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_IO_BUFFER_SIZE = 1024 * 1024
DEFAULT_MOUNT_PREFIX = "um_mount"
DEFAULT_ARCHIVE_COMMAND = ["gzip", "-k", "-f"]

DEFAULT_SETTINGS: dict[str, Any] = {
    "io_buffer_size": DEFAULT_IO_BUFFER_SIZE,
    "mount_prefix": DEFAULT_MOUNT_PREFIX,
    "archive_command": list(DEFAULT_ARCHIVE_COMMAND),
    "settle_udev": True,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


def load_settings() -> None:
    settings_store.values = copy.deepcopy(DEFAULT_SETTINGS)
    if not SETTINGS_PATH.exists():
        return
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return
    if isinstance(data, dict):
        settings_store.values.update(data)


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def set_setting(key: str, value: Any) -> None:
    settings_store.values[key] = value


def get_bool(key: str, default: bool = False) -> bool:
    return bool(get_setting(key, default))


def get_int(key: str, default: int = 0) -> int:
    value = get_setting(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


load_settings()
