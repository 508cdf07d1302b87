"""Packaged settings files and loaders.

Settings are stored as JSON next to this module so thresholds, user labels
and display colours can be changed without touching code.
"""

from .defaults import load_config, get_budget_config, get_config_value, validate_thresholds

__all__ = ['load_config', 'get_budget_config', 'get_config_value', 'validate_thresholds']
