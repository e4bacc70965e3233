"""Read-only JSON config helpers.

Holds the theme name, keybinding overrides, status message duration and
the event tick. Config is read once at startup; a missing file means
defaults, a malformed one is a ``ConfigError``.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path

from platformdirs import user_config_dir

from .errors import ConfigError

APP_NAME = "tabiew"
CONFIG_FILENAME = "config.json"
CONFIG_ENV_VAR = "TABIEW_CONFIG"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_STATUS_SECONDS = 4.0
DEFAULT_TICK_MS = 250


def config_path() -> Path:
    """Config file location, honoring the ``TABIEW_CONFIG`` override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the JSON config object.

    Returns an empty dict when the file does not exist. Unreadable files,
    invalid JSON, and non-object documents raise ``ConfigError``.
    """
    target = path if path is not None else config_path()
    try:
        text = target.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise ConfigError(f"cannot read config {target}: {exc.strerror or exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid config {target}: {exc.msg} (line {exc.lineno})") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"invalid config {target}: expected a JSON object")
    return data


def load_theme_name(config: Mapping[str, object]) -> str | None:
    value = config.get("theme")
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError("config 'theme' must be a string")
    return value


def load_keybindings(config: Mapping[str, object]) -> dict[str, object]:
    """Keybinding overrides: mode name -> key -> command line."""
    value = config.get("keybindings")
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError("config 'keybindings' must be an object")
    return value


def load_status_seconds(config: Mapping[str, object]) -> float:
    value = config.get("status_seconds", DEFAULT_STATUS_SECONDS)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError("config 'status_seconds' must be a positive number")
    return float(value)


def load_tick_ms(config: Mapping[str, object]) -> int:
    value = config.get("tick_ms", DEFAULT_TICK_MS)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError("config 'tick_ms' must be a positive integer")
    return value


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "config_path",
    "load_config",
    "load_theme_name",
    "load_keybindings",
    "load_status_seconds",
    "load_tick_ms",
]
