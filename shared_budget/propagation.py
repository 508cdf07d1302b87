"""Month-to-month budget carry-forward and copy.

Copying budgets into a target month runs three steps, always in this order:

1. upsert every category budget of the source month into the target month;
2. delete every sector budget of the target month;
3. upsert every sector budget of the source month into the target month.

Saving a category budget makes the store create a placeholder budget for the
category's sector when that sector has none for the month.  Step 2 removes
those placeholders before step 3 writes the source month's sector settings,
so the target never ends up with duplicate or default sector rows.

The sequence is not transactional.  A marker is written for the target month
before step 1 and cleared after step 3; a marker left behind means a run
stopped part way, and re-running the whole sequence repairs it because step 1
and step 3 are upserts and step 2 deletes by month unconditionally.

Callers must not run two propagations into the same target month at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, Tuple, TypeVar

from .errors import EmptySourcePeriodError, PropagationError
from .models import CategoryBudget, Period, SectorBudget

logger = logging.getLogger(__name__)

T = TypeVar('T')


class BudgetStore(Protocol):
    """Persistence operations the propagation steps rely on.

    Each call is atomic on its own.  Ids on rows passed to the upsert methods
    are ignored; the store keeps the id of an existing row for the same
    (category or sector, month) and assigns one otherwise.
    """

    def category_budgets_for(self, period: Period) -> List[CategoryBudget]:
        ...

    def sector_budgets_for(self, period: Period) -> List[SectorBudget]:
        ...

    def upsert_category_budgets(self, rows: Sequence[CategoryBudget]) -> None:
        """Insert or replace by (category, month).

        Must call :meth:`ensure_sector_budget_placeholder` for the owning
        sector of every saved category.
        """
        ...

    def ensure_sector_budget_placeholder(self, sector_id: str, period: Period) -> None:
        """Create a default sector budget when the sector has none for ``period``."""
        ...

    def delete_sector_budgets(self, period: Period) -> int:
        ...

    def upsert_sector_budgets(self, rows: Sequence[SectorBudget]) -> None:
        ...

    def delete_category_budgets(self, period: Period) -> int:
        ...

    def begin_propagation(self, source: Period, target: Period) -> None:
        ...

    def complete_propagation(self, target: Period) -> None:
        ...

    def pending_propagations(self) -> List[Tuple[Period, Period]]:
        """``(source, target)`` pairs whose marker is still set."""
        ...


class PropagationStep(str, Enum):
    COPY_CATEGORY_BUDGETS = 'copy_category_budgets'
    CLEAR_SECTOR_BUDGETS = 'clear_sector_budgets'
    COPY_SECTOR_BUDGETS = 'copy_sector_budgets'


@dataclass
class PropagationResult:
    source: Period
    target: Period
    category_budgets_copied: int = 0
    sector_budgets_cleared: int = 0
    sector_budgets_copied: int = 0


def _run_step(step: PropagationStep, source: Period, target: Period, action: Callable[[], T]) -> T:
    logger.info("Propagation %s -> %s: %s", source, target, step.value)
    try:
        return action()
    except Exception as exc:
        logger.warning("Propagation %s -> %s failed at %s: %s", source, target, step.value, exc)
        raise PropagationError(step, source, target, exc) from exc


def propagate(store: BudgetStore, source: Period, target: Period) -> PropagationResult:
    """Copy ``source`` month budgets into ``target`` month.

    Raises:
        ValueError: If ``source`` and ``target`` are the same month
        EmptySourcePeriodError: If ``source`` has no budget rows
        PropagationError: If a step fails; later steps are not attempted and
            the in-progress marker for ``target`` stays set
    """
    if source == target:
        raise ValueError(f"Cannot copy budgets from {source} onto itself")

    category_rows = store.category_budgets_for(source)
    sector_rows = store.sector_budgets_for(source)
    if not category_rows and not sector_rows:
        raise EmptySourcePeriodError(source)

    store.begin_propagation(source, target)
    result = PropagationResult(source=source, target=target)

    copied_categories = [row.for_period(target, row.id) for row in category_rows]
    _run_step(
        PropagationStep.COPY_CATEGORY_BUDGETS, source, target,
        lambda: store.upsert_category_budgets(copied_categories),
    )
    result.category_budgets_copied = len(copied_categories)

    result.sector_budgets_cleared = _run_step(
        PropagationStep.CLEAR_SECTOR_BUDGETS, source, target,
        lambda: store.delete_sector_budgets(target),
    ) or 0

    copied_sectors = [row.for_period(target, row.id) for row in sector_rows]
    _run_step(
        PropagationStep.COPY_SECTOR_BUDGETS, source, target,
        lambda: store.upsert_sector_budgets(copied_sectors),
    )
    result.sector_budgets_copied = len(copied_sectors)

    store.complete_propagation(target)
    logger.info(
        "Copied %d category and %d sector budgets from %s to %s",
        result.category_budgets_copied, result.sector_budgets_copied, source, target,
    )
    return result


def carry_forward(store: BudgetStore, target: Period) -> PropagationResult:
    """Copy the previous month's budgets into ``target``."""
    return propagate(store, target.previous(), target)


def month_has_budget_data(store: BudgetStore, period: Period) -> bool:
    return bool(store.category_budgets_for(period) or store.sector_budgets_for(period))


def carry_forward_if_needed(
    store: BudgetStore,
    target: Period,
    today: Optional[date] = None,
) -> Optional[PropagationResult]:
    """Carry budgets forward into the current month when it has none yet.

    Only the current month is filled automatically; past and future months,
    and months that already hold budgets, are left alone.
    """
    current = Period.from_date(today or date.today())
    if target != current:
        return None
    if month_has_budget_data(store, target):
        return None
    try:
        return carry_forward(store, target)
    except EmptySourcePeriodError:
        logger.info("Nothing to carry forward into %s", target)
        return None


def resume_pending_propagations(store: BudgetStore) -> List[PropagationResult]:
    """Re-run, from step 1, every propagation that stopped part way.

    A marker whose source month no longer holds budgets cannot be repaired
    and is dropped.  Every pending marker is attempted; if any of them fails
    again the first failure is raised once the rest have been tried.
    """
    results = []
    failures: List[PropagationError] = []
    for source, target in store.pending_propagations():
        logger.info("Resuming interrupted propagation %s -> %s", source, target)
        try:
            results.append(propagate(store, source, target))
        except EmptySourcePeriodError:
            logger.warning("Dropping propagation %s -> %s: %s has no budgets left", source, target, source)
            store.complete_propagation(target)
        except PropagationError as exc:
            failures.append(exc)
    if failures:
        raise failures[0]
    return results


def delete_period_budgets(store: BudgetStore, period: Period) -> Tuple[int, int]:
    """Delete every category and sector budget of ``period``; other months are untouched.

    Any unfinished copy into ``period`` is abandoned along with its marker.
    """
    categories = store.delete_category_budgets(period) or 0
    sectors = store.delete_sector_budgets(period) or 0
    store.complete_propagation(period)
    logger.info("Deleted %d category and %d sector budgets for %s", categories, sectors, period)
    return categories, sectors
