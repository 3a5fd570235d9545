"""
Configuration utilities for the storm track report.

This module provides shared functions for loading the YAML configuration
and looking up nested values with sensible defaults.
"""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional


DEFAULT_CONFIG_PATH = "config/track_config.yaml"


def get_project_root() -> Path:
    """
    Get the project root directory.

    Returns:
        Path to the project root directory
    """
    # Go up from storm_tracks/utils to project root
    current_file = Path(__file__).resolve()
    return current_file.parent.parent.parent


def load_config(
    config_path: str = DEFAULT_CONFIG_PATH, relative_to_project_root: bool = True
) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the configuration file
        relative_to_project_root: If True, config_path is relative to project root

    Returns:
        Configuration dictionary (empty if the file holds no mapping)

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    if relative_to_project_root:
        config_file = get_project_root() / config_path
    else:
        config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in config file {config_file}: {e}")

    return config or {}


def get_config_value(
    config: Optional[Dict[str, Any]], key_path: str, default: Any = None
) -> Any:
    """
    Get a nested configuration value using dot notation.

    Args:
        config: Configuration dictionary (None is treated as empty)
        key_path: Dot-separated path to the key (e.g., 'tracks.single_point')
        default: Default value if key doesn't exist or is null

    Returns:
        Configuration value or default
    """
    value = config or {}
    try:
        for key in key_path.split("."):
            value = value[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def merge_config(
    base: Dict[str, Any], overrides: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Recursively merge override values into a copy of a base configuration.

    Nested dictionaries are merged key by key; any other value in
    ``overrides`` replaces the base value.
    """
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
