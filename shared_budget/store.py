"""In-memory budget store used by scripts, the dashboard and tests.

Rows are keyed by (category or sector, year, month).  Saving a category
budget creates a placeholder sector budget (absolute 0, auto-rollup) for the
category's sector when that sector has no budget for the month, the same
rule the hosted database applies.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .hierarchy import category_sector_index
from .loaders import BudgetSnapshot
from .models import AbsoluteAmount, CategoryBudget, Period, Sector, SectorBudget

logger = logging.getLogger(__name__)

RowKey = Tuple[str, int, Optional[int]]


def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryBudgetStore:
    """Dictionary-backed implementation of :class:`~shared_budget.propagation.BudgetStore`."""

    def __init__(
        self,
        sectors: Sequence[Sector] = (),
        category_budgets: Iterable[CategoryBudget] = (),
        sector_budgets: Iterable[SectorBudget] = (),
        propagation_markers: Optional[Dict[str, str]] = None,
        id_factory: Callable[[], str] = _new_id,
    ):
        self.sectors = list(sectors)
        self._owners = category_sector_index(self.sectors)
        self._id_factory = id_factory
        self._category_budgets: Dict[RowKey, CategoryBudget] = {}
        self._sector_budgets: Dict[RowKey, SectorBudget] = {}
        self._markers: Dict[str, str] = dict(propagation_markers or {})
        for budget in category_budgets:
            self._category_budgets[(budget.category_id, budget.year, budget.month)] = budget
        for budget in sector_budgets:
            self._sector_budgets[(budget.sector_id, budget.year, budget.month)] = budget

    @classmethod
    def from_snapshot(cls, snapshot: BudgetSnapshot, **kwargs) -> 'InMemoryBudgetStore':
        return cls(
            sectors=snapshot.sectors,
            category_budgets=snapshot.category_budgets,
            sector_budgets=snapshot.sector_budgets,
            propagation_markers=snapshot.propagation_markers,
            **kwargs,
        )

    def apply_to_snapshot(self, snapshot: BudgetSnapshot) -> BudgetSnapshot:
        """Write the store's budget rows and markers back onto ``snapshot``."""
        snapshot.category_budgets = self.all_category_budgets()
        snapshot.sector_budgets = self.all_sector_budgets()
        snapshot.propagation_markers = dict(self._markers)
        return snapshot

    # Reads

    def all_category_budgets(self) -> List[CategoryBudget]:
        return list(self._category_budgets.values())

    def all_sector_budgets(self) -> List[SectorBudget]:
        return list(self._sector_budgets.values())

    def category_budgets_for(self, period: Period) -> List[CategoryBudget]:
        return [b for b in self._category_budgets.values() if b.year == period.year and b.month == period.month]

    def sector_budgets_for(self, period: Period) -> List[SectorBudget]:
        return [b for b in self._sector_budgets.values() if b.year == period.year and b.month == period.month]

    def available_periods(self) -> List[Period]:
        """Months holding any budget row, newest first."""
        periods = {
            Period(b.year, b.month)
            for b in list(self._category_budgets.values()) + list(self._sector_budgets.values())
            if b.month is not None
        }
        return sorted(periods, reverse=True)

    # Writes

    def upsert_category_budgets(self, rows: Sequence[CategoryBudget]) -> None:
        for row in rows:
            key = (row.category_id, row.year, row.month)
            existing = self._category_budgets.get(key)
            budget_id = existing.id if existing is not None else self._id_factory()
            self._category_budgets[key] = CategoryBudget(budget_id, row.category_id, row.year, row.month, row.amount)
            owner = self._owners.get(row.category_id)
            if owner is not None and row.month is not None:
                self.ensure_sector_budget_placeholder(owner.id, Period(row.year, row.month))

    def ensure_sector_budget_placeholder(self, sector_id: str, period: Period) -> None:
        key = (sector_id, period.year, period.month)
        if key in self._sector_budgets:
            return
        logger.debug("Creating placeholder budget for sector %s in %s", sector_id, period)
        self._sector_budgets[key] = SectorBudget(
            self._id_factory(), sector_id, period.year, period.month, AbsoluteAmount(0.0), auto_rollup=True,
        )

    def delete_sector_budgets(self, period: Period) -> int:
        keys = [k for k in self._sector_budgets if k[1] == period.year and k[2] == period.month]
        for key in keys:
            del self._sector_budgets[key]
        return len(keys)

    def delete_category_budgets(self, period: Period) -> int:
        keys = [k for k in self._category_budgets if k[1] == period.year and k[2] == period.month]
        for key in keys:
            del self._category_budgets[key]
        return len(keys)

    def upsert_sector_budgets(self, rows: Sequence[SectorBudget]) -> None:
        for row in rows:
            key = (row.sector_id, row.year, row.month)
            existing = self._sector_budgets.get(key)
            budget_id = existing.id if existing is not None else self._id_factory()
            self._sector_budgets[key] = SectorBudget(
                budget_id, row.sector_id, row.year, row.month, row.amount, row.auto_rollup,
            )

    # Propagation markers

    def begin_propagation(self, source: Period, target: Period) -> None:
        self._markers[target.key] = source.key

    def complete_propagation(self, target: Period) -> None:
        self._markers.pop(target.key, None)

    def pending_propagations(self) -> List[Tuple[Period, Period]]:
        return [(Period.parse(source), Period.parse(target)) for target, source in sorted(self._markers.items())]
