"""Unit tests for shared_budget.thresholds."""

from __future__ import annotations

import pytest

from shared_budget import thresholds as th
from shared_budget.models import BudgetSummary, SplitAmount


def test_zero_budget_percentages() -> None:
    assert th.utilization_percentage(0, 0) == 0
    assert th.utilization_percentage(0, 5) == 100


def test_zero_budget_with_spend_is_over() -> None:
    percentage, tier = th.classify_spend(0, 5, yellow_threshold=75)
    assert percentage == 100
    assert tier is th.StatusTier.OVER


def test_zero_budget_without_spend_is_under() -> None:
    assert th.classify_spend(0, 0, yellow_threshold=75) == (0, th.StatusTier.UNDER)


@pytest.mark.parametrize(
    "percentage, expected",
    [
        (50, th.StatusTier.UNDER),
        (75, th.StatusTier.WARNING),
        (100, th.StatusTier.WARNING),
        (100.5, th.StatusTier.OVER),
    ],
)
def test_classify_single_threshold(percentage, expected) -> None:
    assert th.classify(percentage, yellow_threshold=75) is expected


@pytest.mark.parametrize(
    "percentage, expected",
    [
        (74.9, th.StatusTier.UNDER),
        (80, th.StatusTier.WARNING),
        (90, th.StatusTier.OVER),
    ],
)
def test_classify_with_red_threshold(percentage, expected) -> None:
    assert th.classify(percentage, yellow_threshold=75, red_threshold=90) is expected


def test_progress_is_capped() -> None:
    assert th.progress_percentage(100, 250) == 100
    assert th.progress_percentage(100, 40) == 40


def test_one_user_over_their_share() -> None:
    summary = BudgetSummary(
        category_id='dining',
        category_name='Dining',
        year=2024,
        month=3,
        budget_id='b1',
        amount=SplitAmount(50, 50),
        current_period_budget=100,
        current_period_spent=60,
        current_period_user1_spent=60,
        current_period_user2_spent=0,
    )

    total_pct, total_tier = th.classify_spend(100, 60, yellow_threshold=75)
    shares = th.classify_user_shares(summary, yellow_threshold=75)

    assert total_tier is th.StatusTier.UNDER
    assert total_pct == 60
    assert shares['user1'] == (120, th.StatusTier.OVER)
    assert shares['user2'] == (0, th.StatusTier.UNDER)


def test_user_shares_with_red_threshold() -> None:
    summary = BudgetSummary(
        category_id='dining',
        category_name='Dining',
        year=2024,
        month=3,
        budget_id='b1',
        amount=SplitAmount(100, 100),
        current_period_user1_spent=95,
        current_period_user2_spent=80,
    )

    yellow_only = th.classify_user_shares(summary, yellow_threshold=75)
    both = th.classify_user_shares(summary, yellow_threshold=75, red_threshold=90)

    assert yellow_only['user1'][1] is th.StatusTier.WARNING
    assert both['user1'][1] is th.StatusTier.OVER
    assert both['user2'][1] is th.StatusTier.WARNING
