"""Reading and writing budget snapshots.

A snapshot is a JSON document holding the raw rows the engine works on:
``sectors``, ``categories``, ``category_budgets``, ``sector_budgets``,
``transactions`` and any ``propagation_markers`` left by an interrupted
carry-forward.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from .errors import InvalidBudgetRowError
from .models import Category, CategoryBudget, Sector, SectorBudget, Transaction

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class BudgetSnapshot:
    sectors: List[Sector] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    category_budgets: List[CategoryBudget] = field(default_factory=list)
    sector_budgets: List[SectorBudget] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    propagation_markers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BudgetSnapshot':
        if not isinstance(data, dict):
            raise InvalidBudgetRowError("Snapshot must be a JSON object")
        markers = data.get('propagation_markers') or {}
        if not isinstance(markers, dict):
            markers = {}
        return cls(
            sectors=[Sector.from_row(r) for r in data.get('sectors') or []],
            categories=[Category.from_row(r) for r in data.get('categories') or []],
            category_budgets=[CategoryBudget.from_row(r) for r in data.get('category_budgets') or []],
            sector_budgets=[SectorBudget.from_row(r) for r in data.get('sector_budgets') or []],
            transactions=[Transaction.from_row(r) for r in data.get('transactions') or []],
            propagation_markers={str(k): str(v) for k, v in markers.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': SNAPSHOT_VERSION,
            'saved_at': datetime.now().isoformat(timespec="seconds"),
            'sectors': [
                {'id': s.id, 'name': s.name, 'category_ids': sorted(s.category_ids)} for s in self.sectors
            ],
            'categories': [
                {'id': c.id, 'name': c.name, 'image_url': c.image_url} for c in self.categories
            ],
            'category_budgets': [b.as_row() for b in self.category_budgets],
            'sector_budgets': [b.as_row() for b in self.sector_budgets],
            'transactions': [t.as_row() for t in self.transactions],
            'propagation_markers': dict(self.propagation_markers),
        }


def load_snapshot(path: Union[str, Path]) -> BudgetSnapshot:
    """Load a snapshot file; a missing file yields an empty snapshot.

    Raises:
        InvalidBudgetRowError: If the file is not valid JSON or holds bad rows
    """
    target = Path(path)
    if not target.exists():
        return BudgetSnapshot()
    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except json.JSONDecodeError as e:
        raise InvalidBudgetRowError(f"Snapshot {target} is not valid JSON: {e}") from e
    return BudgetSnapshot.from_dict(data)


def save_snapshot(snapshot: BudgetSnapshot, path: Union[str, Path]) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        with target.open('w', encoding='utf-8') as handle:
            json.dump(snapshot.to_dict(), handle, indent=2, sort_keys=True)
    except OSError as e:
        raise OSError(f"Failed to save snapshot to {target}: {e}") from e


def load_transactions_csv(path: Union[str, Path], *, skip_invalid: bool = True) -> List[Transaction]:
    """Read transaction rows from a CSV export.

    Columns follow :class:`~shared_budget.models.Transaction`.  Rows that
    cannot be parsed are skipped unless ``skip_invalid`` is False.
    """
    df = pd.read_csv(path, dtype={'id': str, 'category_id': str, 'reimburses_transaction_id': str})
    df = df.astype(object).where(pd.notna(df), None)
    transactions = []
    for row in df.to_dict(orient='records'):
        try:
            transactions.append(Transaction.from_row(row))
        except InvalidBudgetRowError as e:
            if not skip_invalid:
                raise
            logger.warning("Skipping transaction row in %s: %s", path, e)
    return transactions

