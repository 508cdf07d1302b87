"""Utilisation percentages and warning tiers."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .models import BudgetSummary, SectorBudgetSummary


class StatusTier(str, Enum):
    UNDER = 'under'
    WARNING = 'warning'
    OVER = 'over'


def utilization_percentage(budget: float, spent: float) -> float:
    """Percent of ``budget`` consumed by ``spent``.

    A zero budget reads as 100% as soon as anything is spent and 0% otherwise,
    so spending against an unfunded category still surfaces as fully used.
    """
    if budget == 0:
        return 100.0 if spent > 0 else 0.0
    return spent / budget * 100.0


def progress_percentage(budget: float, spent: float) -> float:
    """Utilisation capped at 100, for progress bar widths."""
    return min(utilization_percentage(budget, spent), 100.0)


def classify(
    percentage: float,
    yellow_threshold: float,
    red_threshold: Optional[float] = None,
) -> StatusTier:
    """Map a utilisation percentage onto a tier.

    With only ``yellow_threshold`` the over tier starts above 100%.  When
    ``red_threshold`` is given both thresholds are compared independently.
    """
    if red_threshold is None:
        if percentage > 100:
            return StatusTier.OVER
        if percentage >= yellow_threshold:
            return StatusTier.WARNING
        return StatusTier.UNDER
    if percentage >= red_threshold:
        return StatusTier.OVER
    if percentage >= yellow_threshold:
        return StatusTier.WARNING
    return StatusTier.UNDER


def classify_spend(
    budget: float,
    spent: float,
    yellow_threshold: float,
    red_threshold: Optional[float] = None,
) -> Tuple[float, StatusTier]:
    """Return ``(percentage, tier)`` for a budget/spend pair.

    Any spend against a zero budget is over regardless of thresholds.
    """
    percentage = utilization_percentage(budget, spent)
    if budget == 0 and spent > 0:
        return percentage, StatusTier.OVER
    return percentage, classify(percentage, yellow_threshold, red_threshold)


def classify_user_shares(
    summary: Union[BudgetSummary, SectorBudgetSummary],
    yellow_threshold: float,
    red_threshold: Optional[float] = None,
) -> Dict[str, Tuple[float, StatusTier]]:
    """Tier each user's spend against that user's own share of the budget.

    A user can be over their share while the other user, and the total, are
    still under.  Per-user cards compare both thresholds when
    ``red_threshold`` is given.
    """
    if summary.amount is None:
        user1_budget = user2_budget = 0.0
    else:
        user1_budget = summary.amount.user1_share
        user2_budget = summary.amount.user2_share
    return {
        'user1': classify_spend(user1_budget, summary.current_period_user1_spent, yellow_threshold, red_threshold),
        'user2': classify_spend(user2_budget, summary.current_period_user2_spent, yellow_threshold, red_threshold),
    }
