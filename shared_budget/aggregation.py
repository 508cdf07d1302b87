"""Budget totals and presentation rows for the sector/category hierarchy.

Top-level totals never count a category twice: when a category's sector
carries its own budget row for the period, the sector figure is the unit of
record and the category is left out of the totals (it still appears as a
child row underneath its sector).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .hierarchy import (
    budget_summaries_for_sector,
    budgeted_sector_ids,
    categories_for_sector,
    sector_summary_for,
    sectors_without_budgets,
    unassigned_budget_summaries,
)
from .models import BudgetSummary, Category, Sector, SectorBudgetSummary
from .thresholds import StatusTier, classify_spend, utilization_percentage


@dataclass(frozen=True)
class BudgetTotals:
    total_budget: float
    total_spent: float
    total_remaining: float
    overall_percentage: float

    def as_dict(self) -> Dict[str, float]:
        return {
            'totalBudget': self.total_budget,
            'totalSpent': self.total_spent,
            'totalRemaining': self.total_remaining,
            'overallPercentage': self.overall_percentage,
        }


def aggregate(
    sectors: Sequence[Sector],
    budget_summaries: Sequence[BudgetSummary],
    sector_summaries: Sequence[SectorBudgetSummary],
) -> BudgetTotals:
    """Total budget, spend, remaining and utilisation across the hierarchy.

    Works for monthly and yearly summaries alike.

    Example:
        Sector "Home" budgets 1500 on its own row and its categories Rent
        (1000) and Utilities (200) are budgeted too; the total budget is 1500.
    """
    covered_sectors = budgeted_sector_ids(sector_summaries)
    covered_categories = set()
    for sector in sectors:
        if sector.id in covered_sectors:
            covered_categories.update(sector.category_ids)

    sector_budgets_total = 0.0
    sector_spent_total = 0.0
    for summary in sector_summaries:
        if not summary.has_budget:
            continue
        sector_budgets_total += summary.nominal_budget
        sector_spent_total += summary.current_period_spent or 0.0

    category_budgets_total = 0.0
    category_spent_total = 0.0
    for summary in budget_summaries:
        if not summary.has_budget:
            continue
        if summary.category_id in covered_categories:
            continue
        category_budgets_total += summary.nominal_budget
        category_spent_total += summary.current_period_spent or 0.0

    total_budget = sector_budgets_total + category_budgets_total
    total_spent = sector_spent_total + category_spent_total
    overall = (total_spent / total_budget * 100) if total_budget > 0 else 0.0
    return BudgetTotals(
        total_budget=total_budget,
        total_spent=total_spent,
        total_remaining=total_budget - total_spent,
        overall_percentage=overall,
    )


def sector_total(sector: Sector, sector_summaries: Sequence[SectorBudgetSummary]) -> float:
    """Nominal budget of ``sector`` this period, 0 when it has no budget row."""
    summary = sector_summary_for(sector.id, sector_summaries)
    if summary is not None and summary.has_budget:
        return summary.nominal_budget
    return 0.0


def sector_spent(sector: Sector, sector_summaries: Sequence[SectorBudgetSummary]) -> float:
    summary = sector_summary_for(sector.id, sector_summaries)
    if summary is None:
        return 0.0
    return summary.current_period_spent or 0.0


@dataclass
class CategoryRow:
    summary: BudgetSummary
    total: float
    spent: float
    over_under: float
    percentage: float
    tier: StatusTier


@dataclass
class SectorRow:
    sector: Sector
    summary: Optional[SectorBudgetSummary]
    categories: List[Category]
    category_rows: List[CategoryRow]
    total: float
    spent: float
    over_under: float
    percentage: float
    tier: StatusTier
    missing_budget: bool = False
    children_exceed_ceiling: bool = False

    @property
    def has_budget(self) -> bool:
        return self.summary is not None and self.summary.has_budget


def order_sector_rows(rows: Sequence[SectorRow]) -> List[SectorRow]:
    """Budgeted sectors first, then by utilisation descending; ties keep input order."""
    return sorted(rows, key=lambda row: (not row.has_budget, -row.percentage))


def order_category_rows(rows: Sequence[CategoryRow]) -> List[CategoryRow]:
    """Utilisation descending; ties keep input order."""
    return sorted(rows, key=lambda row: -row.percentage)


def category_row(summary: BudgetSummary, yellow_threshold: float) -> CategoryRow:
    total = summary.nominal_budget
    spent = summary.current_period_spent or 0.0
    percentage, tier = classify_spend(total, spent, yellow_threshold)
    return CategoryRow(
        summary=summary,
        total=total,
        spent=spent,
        over_under=total - spent,
        percentage=percentage,
        tier=tier,
    )


def build_sector_rows(
    sectors: Sequence[Sector],
    categories: Sequence[Category],
    budget_summaries: Sequence[BudgetSummary],
    sector_summaries: Sequence[SectorBudgetSummary],
    yellow_threshold: float,
) -> List[SectorRow]:
    """Ordered sector rows, each carrying its ordered budgeted category rows."""
    missing = {s.id for s in sectors_without_budgets(sectors, budget_summaries, sector_summaries)}
    rows = []
    for sector in sectors:
        summary = sector_summary_for(sector.id, sector_summaries)
        total = sector_total(sector, sector_summaries)
        spent = sector_spent(sector, sector_summaries)
        percentage, tier = classify_spend(total, spent, yellow_threshold)
        children = [category_row(b, yellow_threshold) for b in budget_summaries_for_sector(sector, budget_summaries)]
        exceeds = (
            summary is not None
            and summary.has_budget
            and not summary.auto_rollup
            and summary.category_budgets_total > total
        )
        rows.append(SectorRow(
            sector=sector,
            summary=summary,
            categories=categories_for_sector(sector, categories),
            category_rows=order_category_rows(children),
            total=total,
            spent=spent,
            over_under=total - spent,
            percentage=percentage,
            tier=tier,
            missing_budget=sector.id in missing,
            children_exceed_ceiling=exceeds,
        ))
    return order_sector_rows(rows)


def unassigned_rows(
    sectors: Sequence[Sector],
    categories: Sequence[Category],
    budget_summaries: Sequence[BudgetSummary],
    yellow_threshold: float,
) -> List[CategoryRow]:
    summaries = unassigned_budget_summaries(sectors, categories, budget_summaries)
    return order_category_rows([category_row(b, yellow_threshold) for b in summaries])


TABLE_COLUMNS = [
    'Level', 'Sector', 'Name', 'Budget', 'Spent', 'Over/Under', '% Used', 'Status', 'Auto Rollup', 'Flags',
]


def budget_table(
    sectors: Sequence[Sector],
    categories: Sequence[Category],
    budget_summaries: Sequence[BudgetSummary],
    sector_summaries: Sequence[SectorBudgetSummary],
    yellow_threshold: float,
    unassigned_label: str = 'Unassigned',
) -> pd.DataFrame:
    """Flatten the ordered hierarchy into a DataFrame for display and export.

    Each sector row is followed by its category rows; budgeted categories
    outside every sector come last under ``unassigned_label``.
    """
    records = []
    for row in build_sector_rows(sectors, categories, budget_summaries, sector_summaries, yellow_threshold):
        flags = []
        if row.missing_budget:
            flags.append('missing sector budget')
        if row.children_exceed_ceiling:
            flags.append('categories exceed sector budget')
        records.append({
            'Level': 'sector',
            'Sector': row.sector.name,
            'Name': row.sector.name,
            'Budget': row.total,
            'Spent': row.spent,
            'Over/Under': row.over_under,
            '% Used': row.percentage,
            'Status': row.tier.value,
            'Auto Rollup': bool(row.summary.auto_rollup) if row.has_budget else None,
            'Flags': ', '.join(flags),
        })
        for child in row.category_rows:
            records.append(_category_record(child, row.sector.name))

    for child in unassigned_rows(sectors, categories, budget_summaries, yellow_threshold):
        records.append(_category_record(child, unassigned_label))

    if not records:
        return pd.DataFrame(columns=TABLE_COLUMNS)
    return pd.DataFrame(records, columns=TABLE_COLUMNS)


def _category_record(row: CategoryRow, sector_name: str) -> Dict[str, object]:
    return {
        'Level': 'category',
        'Sector': sector_name,
        'Name': row.summary.category_name,
        'Budget': row.total,
        'Spent': row.spent,
        'Over/Under': row.over_under,
        '% Used': row.percentage,
        'Status': row.tier.value,
        'Auto Rollup': None,
        'Flags': '',
    }


def utilization_frame(rows: Sequence[SectorRow]) -> pd.DataFrame:
    """Sector-level utilisation for charting."""
    return pd.DataFrame(
        [
            {
                'Name': row.sector.name,
                'Budget': row.total,
                'Spent': row.spent,
                'Percent': utilization_percentage(row.total, row.spent),
                'Status': row.tier.value,
            }
            for row in rows
        ],
        columns=['Name', 'Budget', 'Spent', 'Percent', 'Status'],
    )
