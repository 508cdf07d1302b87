#!/usr/bin/env python3
"""Print the budget hierarchy, totals and warnings for one month."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from shared_budget import aggregation, config, hierarchy, projection, spending, thresholds
from shared_budget.errors import BudgetEngineError
from shared_budget.loaders import load_snapshot, load_transactions_csv
from shared_budget.models import Period


def main(snapshot_path: Path, month: Period, yearly: bool = False, transactions_csv: Optional[Path] = None,
         export: Optional[Path] = None) -> int:
    try:
        snapshot = load_snapshot(snapshot_path)
        if transactions_csv is not None:
            snapshot.transactions = load_transactions_csv(transactions_csv)
    except (BudgetEngineError, OSError) as e:
        print(f"Could not load budget data: {e}")
        return 1

    window = spending.SpendWindow.YEAR_TO_DATE if yearly else spending.SpendWindow.MONTHLY
    budget_summaries = spending.build_budget_summaries(
        snapshot.categories, snapshot.category_budgets, snapshot.transactions, month, window,
    )
    sector_summaries = spending.build_sector_budget_summaries(
        snapshot.sectors, snapshot.sector_budgets, snapshot.category_budgets, snapshot.transactions, month, window,
    )
    limits = config.get_thresholds()

    heading = f"{month.year} through {month.label}" if yearly else month.label
    print(f"Budget report for {heading}")
    table = aggregation.budget_table(
        snapshot.sectors, snapshot.categories, budget_summaries, sector_summaries, limits['yellow'],
        unassigned_label=config.get_unassigned_label(),
    )
    if table.empty:
        print("No budgets found.")
    else:
        print(table.to_string(index=False, float_format=lambda v: f"{v:,.2f}"))

    totals = aggregation.aggregate(snapshot.sectors, budget_summaries, sector_summaries)
    print(
        f"\nTotal budget {totals.total_budget:,.2f}, spent {totals.total_spent:,.2f}, "
        f"remaining {totals.total_remaining:,.2f} ({totals.overall_percentage:.1f}% used)"
    )

    excluded = hierarchy.excluded_sectors(snapshot.sectors, sector_summaries)
    if excluded:
        print("\nSectors without a sector budget (totals use their category budgets): "
              + ", ".join(s.name for s in excluded))

    missing = hierarchy.sectors_without_budgets(snapshot.sectors, budget_summaries, sector_summaries)
    if missing:
        print("\nSectors with category budgets but no sector budget:")
        for sector in missing:
            print(f"  - {sector.name}")

    labels = config.get_user_labels()
    flagged = []
    for summary in budget_summaries:
        if not summary.has_budget:
            continue
        shares = thresholds.classify_user_shares(summary, limits['yellow'], limits['red'])
        for user, (percentage, tier) in shares.items():
            if tier is not thresholds.StatusTier.UNDER:
                flagged.append(f"  - {summary.category_name}: {labels[user]} {percentage:.0f}% ({tier.value})")
    if flagged:
        print("\nPer-user shares needing attention:")
        print("\n".join(flagged))

    if yearly:
        print("\nProjection:")
        days_in_year = config.get_days_in_year()
        for summary in sector_summaries + budget_summaries:
            result = projection.project_summary(summary, month.month, days_in_year)
            if result is None:
                continue
            name = getattr(summary, 'sector_name', None) or getattr(summary, 'category_name', '')
            print(
                f"  {name}: {result.status.value} "
                f"(spent {result.spent_to_date:,.2f}, on-track {result.should_be_spent_by_now:,.2f})"
            )

    if export is not None:
        export.parent.mkdir(parents=True, exist_ok=True)
        table.to_csv(export, index=False)
        print(f"\nWrote {export}")
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show budget totals for a month.')
    parser.add_argument('--snapshot', type=Path, default=config.SNAPSHOT_PATH, help='Budget snapshot JSON file')
    parser.add_argument('--month', type=Period.parse, default=Period.from_date(date.today()),
                        help='Month as YYYY-MM (default: current month)')
    parser.add_argument('--yearly', action='store_true', help='Report yearly budgets through --month')
    parser.add_argument('--transactions', type=Path, help='CSV of transactions to use instead of the snapshot')
    parser.add_argument('--export', type=Path, help='Write the table to this CSV file')
    parser.add_argument('--verbose', action='store_true', help='Log engine details')
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')
    raise SystemExit(main(args.snapshot, args.month, args.yearly, args.transactions, args.export))
