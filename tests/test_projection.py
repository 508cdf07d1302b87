"""Unit tests for shared_budget.projection."""

from __future__ import annotations

import pytest

from shared_budget import projection as proj
from shared_budget.errors import InvalidBudgetRowError
from shared_budget.models import AbsoluteAmount, BudgetSummary


def test_outpacing_mid_year() -> None:
    result = proj.project_on_track(1200, 700, 6)
    assert result.days_elapsed == 182
    assert result.daily_budget == pytest.approx(1200 / 365)
    assert result.should_be_spent_by_now == pytest.approx(598.36, abs=0.01)
    assert result.difference == pytest.approx(101.64, abs=0.01)
    assert not result.is_on_track
    assert result.status is proj.ProjectionStatus.OUTPACING


def test_over_budget() -> None:
    result = proj.project_on_track(1200, 1300, 6)
    assert result.status is proj.ProjectionStatus.OVER_BUDGET


def test_on_track() -> None:
    result = proj.project_on_track(1200, 100, 6)
    assert result.is_on_track
    assert result.status is proj.ProjectionStatus.ON_TRACK


def test_full_year_elapsed() -> None:
    result = proj.project_on_track(365, 365, 12)
    assert result.days_elapsed == 365
    assert result.should_be_spent_by_now == pytest.approx(365)
    assert result.status is proj.ProjectionStatus.ON_TRACK


@pytest.mark.parametrize("month", [0, 13])
def test_month_out_of_range(month) -> None:
    with pytest.raises(InvalidBudgetRowError):
        proj.project_on_track(1200, 0, month)


def test_project_summary_skips_unbudgeted() -> None:
    assert proj.project_summary(BudgetSummary('gifts', 'Gifts', 2024, 6), 6) is None
    zero = BudgetSummary('gifts', 'Gifts', 2024, 6, budget_id='b', amount=AbsoluteAmount(0.0))
    assert proj.project_summary(zero, 6) is None


def test_project_summary() -> None:
    summary = BudgetSummary(
        'gifts', 'Gifts', 2024, 6, budget_id='b', amount=AbsoluteAmount(1200.0), current_period_spent=700.0,
    )
    result = proj.project_summary(summary, 6)
    assert result.status is proj.ProjectionStatus.OUTPACING


def test_projection_frame() -> None:
    frame = proj.projection_frame(1200, 700, 6)
    assert frame['Month'].tolist() == list(range(1, 13))
    assert frame.loc[frame['Month'] == 6, 'Actual'].iloc[0] == 700
    assert frame['Actual'].notna().sum() == 1
    assert frame['Target'].iloc[-1] == pytest.approx(1200)
