"""Loader for the packaged JSON settings.

Files are read once per process and handed out as copies, so callers may
modify what they get back.  The ``budgets`` file is checked on load: both
utilisation thresholds must be numbers in 0..100 with yellow not above red.
"""

from __future__ import annotations

import copy
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

SETTINGS_DIR = Path(__file__).parent

THRESHOLD_KEYS = ('yellow', 'red')


@lru_cache(maxsize=None)
def _read_settings(config_name: str) -> Dict[str, Any]:
    config_path = SETTINGS_DIR / f"{config_name}.json"
    if not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {config_path}")
    with open(config_path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if config_name == 'budgets':
        validate_thresholds(data.get('thresholds', {}))
    return data


def validate_thresholds(thresholds: Dict[str, Any]) -> None:
    """Check a ``thresholds`` block.

    Raises:
        ValueError: If a threshold is missing, not numeric, outside 0..100,
            or yellow exceeds red
    """
    values = {}
    for key in THRESHOLD_KEYS:
        raw = thresholds.get(key)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValueError(f"Threshold '{key}' must be a number, got {raw!r}")
        if not 0 <= raw <= 100:
            raise ValueError(f"Threshold '{key}' must be between 0 and 100, got {raw}")
        values[key] = raw
    if values['yellow'] > values['red']:
        raise ValueError(f"Yellow threshold {values['yellow']} is above red threshold {values['red']}")


def load_config(config_name: str) -> Dict[str, Any]:
    """Load a settings file by name (without the .json extension).

    Raises:
        FileNotFoundError: If the settings file doesn't exist
        json.JSONDecodeError: If the settings file is invalid JSON
        ValueError: If the budgets file carries unusable thresholds
    """
    return copy.deepcopy(_read_settings(config_name))


def get_budget_config() -> Dict[str, Any]:
    """Get the budget settings (thresholds, user labels, projection, display)."""
    return load_config('budgets')


def get_config_value(config_name: str, *keys: str, default: Any = None) -> Any:
    """Get a nested settings value by key path, or ``default`` when absent.

    Example:
        >>> get_config_value('budgets', 'thresholds', 'yellow')
        75
    """
    try:
        value = _read_settings(config_name)
        for key in keys:
            value = value[key]
    except (KeyError, TypeError, FileNotFoundError):
        return default
    return copy.deepcopy(value)
