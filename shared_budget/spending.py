"""Spend computation from transactions and per-period summary building.

Only ``expense`` transactions count as spend.  An expense is reduced by every
``reimbursement`` that points at it through ``reimburses_transaction_id``,
and never drops below zero.  Per-user spend follows the expense's
``split_type``: ``user1_only``/``user2_only`` attribute the whole amount to
one user, ``splitEqually`` attributes half to each, anything else attributes
nothing.  The full reimbursement is subtracted from each user's share.

Three windows are supported:

* ``monthly`` – the calendar month, honouring ``excluded_from_monthly_budget``
* ``year_to_date`` – January through the selected month, honouring
  ``excluded_from_yearly_budget``
* ``previous_months`` – January through the month before the selected one,
  honouring ``excluded_from_yearly_budget``
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .models import (
    BudgetSummary,
    Category,
    CategoryBudget,
    Period,
    Sector,
    SectorBudget,
    SectorBudgetSummary,
    Transaction,
)

logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = [
    'id',
    'amount',
    'date',
    'transaction_type',
    'category_id',
    'split_type',
    'reimburses_transaction_id',
    'excluded_from_monthly_budget',
    'excluded_from_yearly_budget',
]
SPENT_COLUMNS = ['spent', 'user1_spent', 'user2_spent']


class SpendWindow(str, Enum):
    MONTHLY = 'monthly'
    YEAR_TO_DATE = 'year_to_date'
    PREVIOUS_MONTHS = 'previous_months'

    @property
    def is_yearly(self) -> bool:
        return self is not SpendWindow.MONTHLY


TransactionsLike = Union[pd.DataFrame, Iterable[Transaction]]


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Build a typed DataFrame from transaction records.

    Rows with dates pandas cannot parse are dropped.
    """
    rows = [t.as_row() for t in transactions]
    if not rows:
        return _empty_transactions_frame()
    return _normalize_frame(pd.DataFrame(rows))


def _empty_transactions_frame() -> pd.DataFrame:
    frame = pd.DataFrame(columns=TRANSACTION_COLUMNS)
    frame['amount'] = frame['amount'].astype(float)
    frame['date'] = pd.to_datetime(frame['date'])
    return frame


def _normalize_frame(frame: pd.DataFrame) -> pd.DataFrame:
    working = frame.copy()
    for column in TRANSACTION_COLUMNS:
        if column not in working.columns:
            working[column] = None
    working['amount'] = pd.to_numeric(working['amount'], errors='coerce').fillna(0.0)
    working['date'] = pd.to_datetime(working['date'], errors='coerce')
    working = working.dropna(subset=['date'])
    for flag in ('excluded_from_monthly_budget', 'excluded_from_yearly_budget'):
        working[flag] = working[flag].fillna(False).astype(bool)
    working['transaction_type'] = working['transaction_type'].fillna('expense')
    return working[TRANSACTION_COLUMNS]


def _as_frame(transactions: TransactionsLike) -> pd.DataFrame:
    if isinstance(transactions, pd.DataFrame):
        if transactions.empty:
            return _empty_transactions_frame()
        return _normalize_frame(transactions)
    return transactions_frame(transactions)


def net_expenses(transactions: TransactionsLike) -> pd.DataFrame:
    """Expense rows with ``spent``, ``user1_spent`` and ``user2_spent`` net of reimbursements."""
    frame = _as_frame(transactions)
    expenses = frame[frame['transaction_type'] == 'expense'].copy()
    if expenses.empty:
        for column in ['reimbursed'] + SPENT_COLUMNS:
            expenses[column] = pd.Series(dtype=float)
        return expenses

    reimbursements = frame[
        (frame['transaction_type'] == 'reimbursement') & frame['reimburses_transaction_id'].notna()
    ]
    reimbursed_by_expense = reimbursements.groupby('reimburses_transaction_id')['amount'].sum()
    expenses['reimbursed'] = expenses['id'].map(reimbursed_by_expense).fillna(0.0)

    amount = expenses['amount'].to_numpy(dtype=float)
    reimbursed = expenses['reimbursed'].to_numpy(dtype=float)
    split = expenses['split_type'].to_numpy(dtype=object)

    user1_gross = np.where(split == 'user1_only', amount, np.where(split == 'splitEqually', amount / 2, 0.0))
    user2_gross = np.where(split == 'user2_only', amount, np.where(split == 'splitEqually', amount / 2, 0.0))

    expenses['spent'] = np.maximum(amount - reimbursed, 0.0)
    expenses['user1_spent'] = np.maximum(user1_gross - reimbursed, 0.0)
    expenses['user2_spent'] = np.maximum(user2_gross - reimbursed, 0.0)
    return expenses


def _window_mask(expenses: pd.DataFrame, period: Period, window: SpendWindow) -> pd.Series:
    dates = expenses['date']
    same_year = dates.dt.year == period.year
    if window is SpendWindow.MONTHLY:
        return same_year & (dates.dt.month == period.month) & ~expenses['excluded_from_monthly_budget']
    if window is SpendWindow.YEAR_TO_DATE:
        return same_year & (dates.dt.month <= period.month) & ~expenses['excluded_from_yearly_budget']
    return same_year & (dates.dt.month < period.month) & ~expenses['excluded_from_yearly_budget']


def spent_by_category(
    transactions: TransactionsLike,
    period: Period,
    window: SpendWindow = SpendWindow.MONTHLY,
) -> pd.DataFrame:
    """Spend per category for ``period`` under ``window``.

    Returns a DataFrame indexed by ``category_id`` with columns ``spent``,
    ``user1_spent`` and ``user2_spent``.  Expenses without a category are
    ignored.
    """
    expenses = net_expenses(transactions)
    if expenses.empty:
        return pd.DataFrame(columns=SPENT_COLUMNS, dtype=float).rename_axis('category_id')
    scoped = expenses[_window_mask(expenses, period, window) & expenses['category_id'].notna()]
    grouped = scoped.groupby('category_id')[SPENT_COLUMNS].sum()
    return grouped.astype(float)


def spent_for_categories(category_ids: Iterable[str], spent: pd.DataFrame) -> Dict[str, float]:
    """Sum ``spent`` rows over ``category_ids``; unknown ids contribute nothing."""
    present = [c for c in set(category_ids) if c in spent.index]
    if not present:
        return {column: 0.0 for column in SPENT_COLUMNS}
    totals = spent.loc[present, SPENT_COLUMNS].sum()
    return {column: float(totals[column]) for column in SPENT_COLUMNS}


def _budget_matches(budget: Union[CategoryBudget, SectorBudget], period: Period, window: SpendWindow) -> bool:
    if budget.year != period.year:
        return False
    if window.is_yearly:
        return budget.month is None
    return budget.month == period.month


def _remaining(budget: float, spent: float) -> Dict[str, Optional[float]]:
    if budget > 0:
        return {
            'amount': budget - spent,
            'percentage': round((budget - spent) / budget * 100, 2),
        }
    return {'amount': None, 'percentage': None}


def build_budget_summaries(
    categories: Sequence[Category],
    category_budgets: Iterable[CategoryBudget],
    transactions: TransactionsLike,
    period: Period,
    window: SpendWindow = SpendWindow.MONTHLY,
) -> List[BudgetSummary]:
    """One summary per category, budgeted or not, in category order."""
    known_ids = {cat.id for cat in categories}
    budgets: Dict[str, CategoryBudget] = {}
    for budget in category_budgets:
        if not _budget_matches(budget, period, window):
            continue
        if budget.category_id not in known_ids:
            logger.debug("Skipping budget %s for unknown category %s", budget.id, budget.category_id)
            continue
        budgets[budget.category_id] = budget

    spent = spent_by_category(transactions, period, window)
    summaries = []
    for category in categories:
        budget = budgets.get(category.id)
        figures = spent_for_categories([category.id], spent)
        nominal = budget.amount.total if budget is not None else 0.0
        remaining = _remaining(nominal, figures['spent'])
        summaries.append(BudgetSummary(
            category_id=category.id,
            category_name=category.name,
            category_image=category.image_url,
            year=period.year,
            month=period.month,
            budget_id=budget.id if budget is not None else None,
            amount=budget.amount if budget is not None else None,
            current_period_budget=nominal,
            current_period_spent=figures['spent'],
            current_period_user1_spent=figures['user1_spent'],
            current_period_user2_spent=figures['user2_spent'],
            current_period_remaining_amount=remaining['amount'],
            current_period_remaining_percentage=remaining['percentage'],
        ))
    return summaries


def build_sector_budget_summaries(
    sectors: Sequence[Sector],
    sector_budgets: Iterable[SectorBudget],
    category_budgets: Iterable[CategoryBudget],
    transactions: TransactionsLike,
    period: Period,
    window: SpendWindow = SpendWindow.MONTHLY,
) -> List[SectorBudgetSummary]:
    """One summary per sector, budgeted or not, in sector order.

    Sector spend covers every category listed on the sector, budgeted or not.
    ``category_budgets_total`` sums the child category budgets for the period.
    """
    known_ids = {sector.id for sector in sectors}
    budgets: Dict[str, SectorBudget] = {}
    for budget in sector_budgets:
        if not _budget_matches(budget, period, window):
            continue
        if budget.sector_id not in known_ids:
            logger.debug("Skipping budget %s for unknown sector %s", budget.id, budget.sector_id)
            continue
        budgets[budget.sector_id] = budget

    child_totals: Dict[str, float] = {}
    for budget in category_budgets:
        if _budget_matches(budget, period, window):
            child_totals[budget.category_id] = budget.amount.total

    spent = spent_by_category(transactions, period, window)
    summaries = []
    for sector in sectors:
        budget = budgets.get(sector.id)
        figures = spent_for_categories(sector.category_ids, spent)
        summary = SectorBudgetSummary(
            sector_id=sector.id,
            sector_name=sector.name,
            year=period.year,
            month=period.month,
            budget_id=budget.id if budget is not None else None,
            amount=budget.amount if budget is not None else None,
            auto_rollup=budget.auto_rollup if budget is not None else False,
            current_period_spent=figures['spent'],
            current_period_user1_spent=figures['user1_spent'],
            current_period_user2_spent=figures['user2_spent'],
            category_budgets_total=sum(child_totals.get(c, 0.0) for c in sector.category_ids),
        )
        if summary.has_budget:
            summary.current_period_budget = summary.effective_budget
        remaining = _remaining(summary.current_period_budget, summary.current_period_spent)
        summary.current_period_remaining_amount = remaining['amount']
        summary.current_period_remaining_percentage = remaining['percentage']
        summaries.append(summary)
    return summaries
