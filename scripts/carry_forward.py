#!/usr/bin/env python3
"""Copy one month's budgets into another month of the snapshot."""

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

from shared_budget import config, propagation
from shared_budget.errors import BudgetEngineError
from shared_budget.loaders import load_snapshot, save_snapshot
from shared_budget.models import Period
from shared_budget.store import InMemoryBudgetStore


def main(snapshot_path: Path, target: Period, source: Optional[Period] = None, resume: bool = False,
         clear: bool = False) -> int:
    try:
        snapshot = load_snapshot(snapshot_path)
    except BudgetEngineError as e:
        print(f"Could not load {snapshot_path}: {e}")
        return 1
    store = InMemoryBudgetStore.from_snapshot(snapshot)

    try:
        if resume:
            results = propagation.resume_pending_propagations(store)
            if not results:
                print("No interrupted copies to resume.")
            for result in results:
                print(f"Resumed {result.source} -> {result.target}")
        elif clear:
            categories, sectors = propagation.delete_period_budgets(store, target)
            print(f"Deleted {categories} category and {sectors} sector budgets for {target.label}")
        else:
            result = propagation.propagate(store, source or target.previous(), target)
            print(
                f"Copied {result.category_budgets_copied} category and "
                f"{result.sector_budgets_copied} sector budgets from {result.source.label} to {result.target.label}"
            )
    except BudgetEngineError as e:
        print(f"Failed: {e}")
        # Keep the in-progress marker so --resume can finish the job.
        save_snapshot(store.apply_to_snapshot(snapshot), snapshot_path)
        return 1
    except ValueError as e:
        print(f"Failed: {e}")
        return 1

    save_snapshot(store.apply_to_snapshot(snapshot), snapshot_path)
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Carry budgets forward between months.')
    parser.add_argument('--snapshot', type=Path, default=config.SNAPSHOT_PATH, help='Budget snapshot JSON file')
    parser.add_argument('--month', type=Period.parse, default=Period.from_date(date.today()),
                        help='Target month as YYYY-MM (default: current month)')
    parser.add_argument('--source', type=Period.parse, help='Month to copy from (default: the month before)')
    parser.add_argument('--resume', action='store_true', help='Finish copies that stopped part way')
    parser.add_argument('--clear', action='store_true', help='Delete every budget of --month instead of copying')
    parser.add_argument('--verbose', action='store_true', help='Log each propagation step')
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')
    raise SystemExit(main(args.snapshot, args.month, args.source, args.resume, args.clear))
