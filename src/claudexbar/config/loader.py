"""Configuration file loading and saving."""

import os
import sys

from pathlib import Path
from typing import Optional

import yaml

from pydantic import ValidationError

from .defaults import get_default_config
from .schema import BarConfig

# Module-level cache for config
_cached_config: Optional[BarConfig] = None
_cached_mtime: float = 0.0
_cached_path: Optional[Path] = None


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.getenv("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "claudexbar"


def get_config_path() -> Path:
    """Get the full configuration file path."""
    return get_config_dir() / "config.yaml"


def load_config_file(config_path: Optional[Path] = None) -> BarConfig:
    """Parse and validate a config file, raising on any problem.

    Raises:
        OSError: If the file cannot be read
        yaml.YAMLError: If the file is not valid YAML
        ValidationError: If the content does not match the schema
    """
    config_path = config_path or get_config_path()

    with open(config_path, encoding="utf-8") as f:
        config_data = yaml.safe_load(f)

    if config_data is None:
        config_data = {}
    if not isinstance(config_data, dict):
        raise ValueError("top-level YAML value must be a mapping")

    return BarConfig(**config_data)


def load_config() -> BarConfig:
    """
    Load configuration from YAML file with mtime-based caching.

    A missing file means defaults; the bar runs on every poll and never
    creates the file itself. An invalid file falls back to defaults with a
    warning on stderr.
    """
    global _cached_config, _cached_mtime, _cached_path

    config_path = get_config_path()

    try:
        current_mtime = config_path.stat().st_mtime
    except OSError:
        _cached_config = None
        _cached_mtime = 0.0
        return get_default_config()

    if (
        _cached_config is not None
        and _cached_path == config_path
        and current_mtime == _cached_mtime
    ):
        return _cached_config

    try:
        config = load_config_file(config_path)
    except (yaml.YAMLError, ValidationError, ValueError, OSError) as e:
        print(
            f"Warning: Failed to load config from {config_path}: {e}",
            file=sys.stderr,
        )
        print("Using default configuration.", file=sys.stderr)
        return get_default_config()

    _cached_config = config
    _cached_mtime = current_mtime
    _cached_path = config_path
    return config


def save_config(config: BarConfig) -> None:
    """Save configuration to YAML file."""
    config_path = get_config_path()
    config_dir = config_path.parent

    config_dir.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(mode="python", exclude_none=True)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
