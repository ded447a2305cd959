"""Launcher settings and the optional user config file.

``LauncherConfig`` carries timing, capacity, and naming settings. Hosts can
build one directly; ``load_launcher_config`` merges values from
``config.json`` in the platform user-config directory. The file is only read,
never written. All access is defensive: malformed or missing config falls
back to defaults.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "cmdpalette"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


@dataclass(frozen=True)
class LauncherConfig:
    poll_interval_seconds: float = 0.25
    scrollback_poll_seconds: float = 0.1
    scrollback_idle_polls: int = 50
    max_buffer_rows: int = 8000
    allowed_punctuation: str = " ._"
    exit_command_name: str = "Exit application"
    exit_command_priority: int = 2
    theme: str = "default"


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_path = CONFIG_PATH if path is None else path
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def _coerce(name: str, value: object, default: object) -> object | None:
    """Return ``value`` converted to the type of ``default``, or ``None``."""
    if isinstance(default, bool) or isinstance(value, bool):
        return None
    if isinstance(default, int):
        if not isinstance(value, int) or value < 0:
            return None
        if name == "max_buffer_rows" and value < 100:
            return None
        return value
    if isinstance(default, float):
        if not isinstance(value, (int, float)) or value <= 0:
            return None
        return float(value)
    if isinstance(default, str):
        if not isinstance(value, str):
            return None
        if name == "exit_command_name" and not value.strip():
            return None
        return value
    return None


def config_from_mapping(data: Mapping[str, object], base: LauncherConfig | None = None) -> LauncherConfig:
    """Apply known, well-typed keys of ``data`` on top of ``base``.

    Unknown keys and values of the wrong type are ignored.
    """
    config = base if base is not None else LauncherConfig()
    updates: dict[str, object] = {}
    for field_info in fields(LauncherConfig):
        if field_info.name not in data:
            continue
        coerced = _coerce(field_info.name, data[field_info.name], getattr(config, field_info.name))
        if coerced is not None:
            updates[field_info.name] = coerced
    return replace(config, **updates) if updates else config


def load_launcher_config(
    overrides: Mapping[str, object] | None = None,
    path: Path | None = None,
) -> LauncherConfig:
    """Build settings from the user config file plus explicit ``overrides``."""
    config = config_from_mapping(load_config(path))
    if overrides:
        config = config_from_mapping(overrides, config)
    return config
