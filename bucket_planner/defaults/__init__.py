"""Seed defaults and their loaders.

Default settings, the default account set and the distribution
percentages are stored in JSON files next to this module so they can be
changed without touching code.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

# Configuration directory
CONFIG_DIR = Path(__file__).parent


def load_config(config_name: str) -> Dict[str, Any]:
    """Load a configuration file by name.

    Args:
        config_name: Name of the config file (without .json extension)

    Returns:
        Dictionary containing the configuration

    Raises:
        FileNotFoundError: If the configuration file doesn't exist
        json.JSONDecodeError: If the configuration file is invalid JSON

    Example:
        >>> load_config('settings')['distribution']['base']['savings']
        0.25
    """
    config_path = CONFIG_DIR / f"{config_name}.json"

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def get_config_value(config_name: str, *keys: str, default: Any = None) -> Any:
    """Get a nested configuration value by key path.

    Args:
        config_name: Name of the config file
        *keys: Path to the nested value (e.g., 'distribution', 'base', 'core')
        default: Default value if key path doesn't exist

    Returns:
        The configuration value at the specified path, or default if not found
    """
    try:
        value = load_config(config_name)
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError, FileNotFoundError):
        return default


def base_distribution_defaults() -> Dict[str, float]:
    """Default monthly split: core, shit, savings, fun, buffer."""
    return dict(load_config('settings')['distribution']['base'])


def subsidy_distribution_defaults() -> Dict[str, float]:
    """Default subsidy split: savings, core, shit, fun (no buffer)."""
    return dict(load_config('settings')['distribution']['subsidy'])


__all__ = [
    'load_config',
    'get_config_value',
    'base_distribution_defaults',
    'subsidy_distribution_defaults',
]
