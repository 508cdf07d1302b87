"""Linear yearly spend projection.

A yearly budget is assumed to be spent evenly across the year.  After
``month_of_year`` months, ``floor(month_of_year / 12 * 365)`` days have
elapsed and the implied spend is that many days of ``yearly_budget / 365``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import pandas as pd

from .errors import InvalidBudgetRowError
from .models import BudgetSummary, SectorBudgetSummary

DAYS_IN_YEAR = 365


class ProjectionStatus(str, Enum):
    ON_TRACK = 'on_track'
    OUTPACING = 'outpacing'
    OVER_BUDGET = 'over_budget'


@dataclass(frozen=True)
class YearlyProjection:
    yearly_budget: float
    spent_to_date: float
    daily_budget: float
    days_elapsed: int
    should_be_spent_by_now: float
    difference: float
    is_on_track: bool
    status: ProjectionStatus


def _check_month(month_of_year: int) -> None:
    if not 1 <= month_of_year <= 12:
        raise InvalidBudgetRowError(f"month_of_year must be between 1 and 12, got {month_of_year}")


def days_elapsed(month_of_year: int, days_in_year: int = DAYS_IN_YEAR) -> int:
    return math.floor(month_of_year / 12 * days_in_year)


def project_on_track(
    yearly_budget: float,
    spent_to_date: float,
    month_of_year: int,
    days_in_year: int = DAYS_IN_YEAR,
) -> YearlyProjection:
    """Compare spend to date with the linearly implied spend.

    ``status`` is ``over_budget`` once the whole yearly budget is exceeded,
    ``outpacing`` when spend is ahead of the implied figure, ``on_track``
    otherwise.  ``is_on_track`` is the simpler ``difference <= 0`` test.

    A zero budget is not special-cased: the implied spend is 0 and any spend
    reads as over budget.  Callers normally skip zero budgets.
    """
    _check_month(month_of_year)
    daily_budget = yearly_budget / days_in_year
    elapsed = days_elapsed(month_of_year, days_in_year)
    should_be_spent = daily_budget * elapsed
    difference = spent_to_date - should_be_spent

    if spent_to_date > yearly_budget:
        status = ProjectionStatus.OVER_BUDGET
    elif spent_to_date > should_be_spent:
        status = ProjectionStatus.OUTPACING
    else:
        status = ProjectionStatus.ON_TRACK

    return YearlyProjection(
        yearly_budget=yearly_budget,
        spent_to_date=spent_to_date,
        daily_budget=daily_budget,
        days_elapsed=elapsed,
        should_be_spent_by_now=should_be_spent,
        difference=difference,
        is_on_track=difference <= 0,
        status=status,
    )


def project_summary(
    summary: Union[BudgetSummary, SectorBudgetSummary],
    month_of_year: int,
    days_in_year: int = DAYS_IN_YEAR,
) -> Optional[YearlyProjection]:
    """Project a yearly summary; ``None`` when it has no positive budget."""
    if not summary.has_budget or summary.nominal_budget <= 0:
        return None
    return project_on_track(
        summary.nominal_budget, summary.current_period_spent or 0.0, month_of_year, days_in_year,
    )


def projection_frame(
    yearly_budget: float,
    spent_to_date: float,
    month_of_year: int,
    days_in_year: int = DAYS_IN_YEAR,
) -> pd.DataFrame:
    """Implied cumulative spend at the end of each month, with the actual figure at ``month_of_year``."""
    _check_month(month_of_year)
    daily_budget = yearly_budget / days_in_year
    months = list(range(1, 13))
    frame = pd.DataFrame({
        'Month': months,
        'Target': [daily_budget * days_elapsed(m, days_in_year) for m in months],
    })
    frame['Actual'] = [spent_to_date if m == month_of_year else None for m in months]
    return frame
