"""Configuration loading for serverstats.

Validates the refresh interval and loads display settings from TOML config
files with sensible defaults.
Search order: explicit --config path → ~/.config/serverstats/config.toml → defaults only.
"""

from __future__ import annotations

import math
import sys
import tomllib
from pathlib import Path
from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "color": True,
    "banner": True,
    "disk_path": "/",
    "log_file": "",
    "log_level": "WARNING",
}

# Expected value type per key; bool is checked before int/str would accept it.
_TYPES: dict[str, type] = {
    "color": bool,
    "banner": bool,
    "disk_path": str,
    "log_file": str,
    "log_level": str,
}

_DEFAULT_PATH = Path.home() / ".config" / "serverstats" / "config.toml"


class ConfigError(Exception):
    """Invalid or missing configuration; fatal before the dashboard starts."""


# ── Interval ────────────────────────────────────────────────────────────────


def parse_interval(value: str | None) -> float:
    """Parse the refresh period given to ``-s``.

    Accepts integer or decimal text. Raises ConfigError when the value is
    missing, not a number, not finite, or not strictly positive.
    """
    if value is None or not value.strip():
        raise ConfigError("Update interval (-s) is required.")
    try:
        seconds = float(value)
    except ValueError as e:
        raise ConfigError(f"Invalid update interval: {value!r} is not a number.") from e
    if not math.isfinite(seconds) or seconds <= 0:
        raise ConfigError(f"Invalid update interval: {value!r} must be a positive number.")
    return seconds


# ── Settings file ───────────────────────────────────────────────────────────


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into base, rejecting values of the wrong type."""
    merged = dict(base)
    for key, value in overlay.items():
        expected = _TYPES.get(key)
        if expected is not None and type(value) is not expected:
            raise ConfigError(
                f"config key {key!r} must be {expected.__name__}, "
                f"got {type(value).__name__}"
            )
        merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merging user TOML over defaults.

    Args:
        path: Explicit config file path (from --config). If None, tries the
              default location ~/.config/serverstats/config.toml.

    Returns:
        Merged configuration dict.

    Raises:
        ConfigError: If an explicit path doesn't exist or can't be parsed,
                     or a value has the wrong type.
    """
    if path is not None:
        if not path.is_file():
            raise ConfigError(f"config file not found: {path}")
        try:
            user_config = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"invalid TOML in {path}: {e}") from e
        return _merge(DEFAULT_CONFIG, user_config)

    # Try default location silently
    if _DEFAULT_PATH.is_file():
        try:
            user_config = tomllib.loads(_DEFAULT_PATH.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError:
            print(
                f"serverstats: warning: ignoring invalid TOML in {_DEFAULT_PATH}",
                file=sys.stderr,
            )
        else:
            return _merge(DEFAULT_CONFIG, user_config)

    return dict(DEFAULT_CONFIG)


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return f'"{value}"'


def dump_default_config() -> str:
    """Return the default configuration as a TOML string."""
    lines = [
        "# serverstats configuration",
        "# Place this file at ~/.config/serverstats/config.toml",
        "",
    ]
    for key, value in DEFAULT_CONFIG.items():
        lines.append(f"{key} = {_toml_value(value)}")
    return "\n".join(lines) + "\n"
