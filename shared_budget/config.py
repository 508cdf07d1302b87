"""Configuration management for the shared budget engine.

This module centralizes paths and threshold defaults, including
environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

from .settings import get_config_value, validate_thresholds

logger = logging.getLogger(__name__)

# Base project root - assumes this file is in shared_budget/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("SHARED_BUDGET_DATA_DIR", _PROJECT_ROOT / "data"))
EXPORTS_DIR = DATA_DIR / "exports"

# Snapshot of sectors, categories, budgets and transactions
SNAPSHOT_PATH = Path(
    os.getenv("SHARED_BUDGET_SNAPSHOT_PATH", DATA_DIR / "budget_snapshot.json")
).resolve()

DEFAULT_YELLOW_THRESHOLD = 75.0
DEFAULT_RED_THRESHOLD = 90.0
DEFAULT_DAYS_IN_YEAR = 365


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, EXPORTS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def _threshold_from_env(name: str, fallback: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return fallback
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return fallback


def get_thresholds() -> Dict[str, float]:
    """Return the ``yellow`` and ``red`` utilisation thresholds in percent.

    Packaged settings supply the defaults; ``SHARED_BUDGET_YELLOW_THRESHOLD``
    and ``SHARED_BUDGET_RED_THRESHOLD`` override them.  Overrides that leave
    yellow above red, or outside 0..100, are ignored as a pair.
    """
    yellow = float(get_config_value('budgets', 'thresholds', 'yellow', default=DEFAULT_YELLOW_THRESHOLD))
    red = float(get_config_value('budgets', 'thresholds', 'red', default=DEFAULT_RED_THRESHOLD))
    limits = {
        'yellow': _threshold_from_env("SHARED_BUDGET_YELLOW_THRESHOLD", yellow),
        'red': _threshold_from_env("SHARED_BUDGET_RED_THRESHOLD", red),
    }
    try:
        validate_thresholds(limits)
    except ValueError as e:
        logger.warning("Ignoring threshold overrides: %s", e)
        return {'yellow': yellow, 'red': red}
    return limits


def get_days_in_year() -> int:
    return int(get_config_value('budgets', 'projection', 'days_in_year', default=DEFAULT_DAYS_IN_YEAR))


def get_user_labels() -> Dict[str, str]:
    labels = get_config_value('budgets', 'users', default={}) or {}
    return {
        'user1': labels.get('user1', 'User 1'),
        'user2': labels.get('user2', 'User 2'),
    }


def get_unassigned_label() -> str:
    """Heading for budgeted categories outside every sector."""
    return get_config_value('budgets', 'display', 'unassigned_label', default='Unassigned') or 'Unassigned'
