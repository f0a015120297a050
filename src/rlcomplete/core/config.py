"""Configuration management — TOML config at ~/.config/rlcomplete/rlcomplete.toml."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import tomli_w

from rlcomplete.core.exceptions import ConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

_DEFAULT_CONFIG: dict[str, Any] = {
    "engine": {
        "shell": "",
        "args": ["-i"],
        "expected": "bash",
        "trigger_byte": 0x1E,
    },
    "session": {
        "idle_timeout": 300.0,
        "sweep_interval": 60.0,
        "read_timeout": 0.0,
        "startup_quiet": 0.25,
        "startup_timeout": 5.0,
        "recreate_on_error": True,
    },
    "cache": {
        "enabled": True,
    },
    "logging": {
        "level": "WARNING",
    },
}


def get_config_dir() -> Path:
    """Return the config directory, creating it if needed."""
    config_dir = Path(os.environ.get("RLCOMPLETE_CONFIG_DIR", "~/.config/rlcomplete")).expanduser()
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Return the path to the config TOML file."""
    return get_config_dir() / "rlcomplete.toml"


def get_history_path() -> Path:
    """Return the path to the REPL history file."""
    return get_config_dir() / "history"


def load_config() -> dict[str, Any]:
    """Load configuration from TOML file, returning defaults if not found."""
    config_path = get_config_path()
    if not config_path.exists():
        return _deep_copy_dict(_DEFAULT_CONFIG)
    try:
        with open(config_path, "rb") as f:
            user_config = tomllib.load(f)
        return _merge_config(_deep_copy_dict(_DEFAULT_CONFIG), user_config)
    except Exception as e:
        raise ConfigError(f"Failed to load config: {e}") from e


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to TOML file."""
    config_path = get_config_path()
    try:
        with open(config_path, "wb") as f:
            tomli_w.dump(config, f)
    except Exception as e:
        raise ConfigError(f"Failed to save config: {e}") from e


def update_config(**updates: Any) -> dict[str, Any]:
    """Load config, apply nested updates, save, and return the result.

    Usage: update_config(session={"idle_timeout": 120.0}, cache={"enabled": False})
    """
    config = load_config()
    for section, values in updates.items():
        if section not in config:
            config[section] = {}
        if isinstance(values, dict):
            config[section].update(values)
        else:
            config[section] = values
    save_config(config)
    return config


def resolve_shell(config: dict[str, Any] | None = None) -> str:
    """Return the engine executable: configured shell, then $SHELL, then bash."""
    if config is None:
        config = load_config()
    shell = config.get("engine", {}).get("shell", "")
    return shell or os.environ.get("SHELL") or "bash"


def read_timeout(config: dict[str, Any] | None = None) -> float | None:
    """Return the response timeout in seconds, or None when waiting is unbounded."""
    if config is None:
        config = load_config()
    value = float(config.get("session", {}).get("read_timeout", 0.0) or 0.0)
    return value if value > 0 else None


def coerce_value(raw: str) -> Any:
    """Interpret a command-line string as a TOML scalar (bool, int, float, or string)."""
    lowered = raw.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw


def _merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_config(base[key], value)
        else:
            base[key] = value
    return base


def _deep_copy_dict(d: dict[str, Any]) -> dict[str, Any]:
    """Simple deep copy for nested dicts of simple types."""
    result: dict[str, Any] = {}
    for k, v in d.items():
        if isinstance(v, dict):
            result[k] = _deep_copy_dict(v)
        elif isinstance(v, list):
            result[k] = list(v)
        else:
            result[k] = v
    return result
