"""Sector/category classification helpers.

A sector owns a set of category ids.  These helpers answer which categories
sit under a sector, which sit under none, and which category budgets lack a
budget on their owning sector.  Ids referenced by a sector but missing from
the category collection are skipped rather than treated as errors.

A category is expected to belong to at most one sector.  When the data breaks
that rule, the first sector in collection order owns the category and the
duplicate membership is logged.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .models import BudgetSummary, Category, Sector, SectorBudgetSummary

logger = logging.getLogger(__name__)


def categories_for_sector(sector: Sector, categories: Iterable[Category]) -> List[Category]:
    """Return the categories whose id is listed on ``sector``, in input order."""
    found = [cat for cat in categories if cat.id in sector.category_ids]
    if len(found) < len(sector.category_ids):
        missing = sector.category_ids - {cat.id for cat in found}
        logger.debug("Sector %s references unknown categories %s", sector.id, sorted(missing))
    return found


def assigned_category_ids(sectors: Iterable[Sector]) -> Set[str]:
    assigned: Set[str] = set()
    for sector in sectors:
        assigned.update(sector.category_ids)
    return assigned


def unassigned_categories(sectors: Iterable[Sector], categories: Iterable[Category]) -> List[Category]:
    """Return categories not listed on any sector."""
    assigned = assigned_category_ids(sectors)
    return [cat for cat in categories if cat.id not in assigned]


def category_sector_index(sectors: Sequence[Sector]) -> Dict[str, Sector]:
    """Map each category id to its owning sector.

    The first sector listing a category wins; later claims are logged and
    ignored.
    """
    index: Dict[str, Sector] = {}
    for sector in sectors:
        for category_id in sector.category_ids:
            owner = index.get(category_id)
            if owner is None:
                index[category_id] = sector
            elif owner.id != sector.id:
                logger.warning(
                    "Category %s is listed on sectors %s and %s; using %s",
                    category_id, owner.id, sector.id, owner.id,
                )
    return index


def sector_summary_for(
    sector_id: str,
    sector_summaries: Iterable[SectorBudgetSummary],
) -> Optional[SectorBudgetSummary]:
    return next((s for s in sector_summaries if s.sector_id == sector_id), None)


def budgeted_sector_ids(sector_summaries: Iterable[SectorBudgetSummary]) -> Set[str]:
    """Ids of sectors holding a budget row this period."""
    return {s.sector_id for s in sector_summaries if s.has_budget}


def budget_summaries_for_sector(
    sector: Sector,
    budget_summaries: Iterable[BudgetSummary],
) -> List[BudgetSummary]:
    """Budgeted category summaries belonging to ``sector``."""
    return [b for b in budget_summaries if b.category_id in sector.category_ids and b.has_budget]


def unassigned_budget_summaries(
    sectors: Iterable[Sector],
    categories: Iterable[Category],
    budget_summaries: Iterable[BudgetSummary],
) -> List[BudgetSummary]:
    """Budgeted category summaries for categories outside every sector."""
    unassigned_ids = {cat.id for cat in unassigned_categories(sectors, categories)}
    return [b for b in budget_summaries if b.category_id in unassigned_ids and b.has_budget]


def orphaned_category_budgets(
    sectors: Sequence[Sector],
    budget_summaries: Iterable[BudgetSummary],
    sector_summaries: Iterable[SectorBudgetSummary],
) -> List[BudgetSummary]:
    """Category budgets whose owning sector has no budget row this period.

    Categories outside every sector are never orphaned.
    """
    owners = category_sector_index(sectors)
    with_budget = budgeted_sector_ids(sector_summaries)
    orphaned = []
    for budget in budget_summaries:
        if not budget.has_budget:
            continue
        sector = owners.get(budget.category_id)
        if sector is None:
            continue
        if sector.id not in with_budget:
            orphaned.append(budget)
    return orphaned


def sectors_without_budgets(
    sectors: Iterable[Sector],
    budget_summaries: Sequence[BudgetSummary],
    sector_summaries: Iterable[SectorBudgetSummary],
) -> List[Sector]:
    """Sectors with no budget row but at least one budgeted child category."""
    with_budget = budgeted_sector_ids(sector_summaries)
    return [
        sector for sector in sectors
        if sector.id not in with_budget and budget_summaries_for_sector(sector, budget_summaries)
    ]


def excluded_sectors(
    sectors: Iterable[Sector],
    sector_summaries: Iterable[SectorBudgetSummary],
) -> List[Sector]:
    """Sectors left out of top-level totals because they carry no budget row."""
    with_budget = budgeted_sector_ids(sector_summaries)
    return [sector for sector in sectors if sector.id not in with_budget]
