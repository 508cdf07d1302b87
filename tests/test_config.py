"""Tests for threshold and settings lookup."""

from __future__ import annotations

import pytest

from shared_budget import config
from shared_budget.settings import get_budget_config, get_config_value, validate_thresholds


def test_default_thresholds(monkeypatch) -> None:
    monkeypatch.delenv('SHARED_BUDGET_YELLOW_THRESHOLD', raising=False)
    monkeypatch.delenv('SHARED_BUDGET_RED_THRESHOLD', raising=False)
    assert config.get_thresholds() == {'yellow': 75.0, 'red': 90.0}


def test_threshold_env_override(monkeypatch) -> None:
    monkeypatch.setenv('SHARED_BUDGET_YELLOW_THRESHOLD', '60')
    monkeypatch.delenv('SHARED_BUDGET_RED_THRESHOLD', raising=False)
    assert config.get_thresholds()['yellow'] == 60.0


def test_bad_threshold_env_is_ignored(monkeypatch, caplog) -> None:
    monkeypatch.setenv('SHARED_BUDGET_RED_THRESHOLD', 'high')
    with caplog.at_level('WARNING', logger='shared_budget.config'):
        assert config.get_thresholds()['red'] == 90.0
    assert 'SHARED_BUDGET_RED_THRESHOLD' in caplog.text


def test_settings_lookup() -> None:
    assert get_config_value('budgets', 'users', 'user1') == 'User 1'
    assert get_config_value('budgets', 'no', 'such', 'key', default='x') == 'x'
    assert get_config_value('missing_file', 'a', default=1) == 1
    assert config.get_days_in_year() == 365
    assert config.get_user_labels() == {'user1': 'User 1', 'user2': 'User 2'}


def test_budget_config_file() -> None:
    settings = get_budget_config()
    assert settings['thresholds'] == {'yellow': 75, 'red': 90}


def test_threshold_overrides_that_cross_are_ignored(monkeypatch, caplog) -> None:
    monkeypatch.setenv('SHARED_BUDGET_YELLOW_THRESHOLD', '95')
    monkeypatch.delenv('SHARED_BUDGET_RED_THRESHOLD', raising=False)
    with caplog.at_level('WARNING', logger='shared_budget.config'):
        assert config.get_thresholds() == {'yellow': 75.0, 'red': 90.0}
    assert 'above red' in caplog.text


@pytest.mark.parametrize(
    "thresholds",
    [
        {'yellow': 75},
        {'yellow': 'high', 'red': 90},
        {'yellow': 75, 'red': 120},
        {'yellow': 95, 'red': 90},
    ],
)
def test_validate_thresholds_rejects(thresholds) -> None:
    with pytest.raises(ValueError):
        validate_thresholds(thresholds)


def test_settings_are_returned_as_copies() -> None:
    get_budget_config()['thresholds']['yellow'] = 10
    labels = get_config_value('budgets', 'users')
    labels['user1'] = 'Changed'
    assert get_config_value('budgets', 'thresholds', 'yellow') == 75
    assert get_config_value('budgets', 'users', 'user1') == 'User 1'
