"""Unit tests for shared_budget.hierarchy."""

from __future__ import annotations

from shared_budget import hierarchy
from shared_budget.models import (
    AbsoluteAmount,
    BudgetSummary,
    Category,
    Sector,
    SectorBudgetSummary,
)


def _sample_categories():
    return [
        Category('rent', 'Rent'),
        Category('utilities', 'Utilities'),
        Category('groceries', 'Groceries'),
        Category('dining', 'Dining'),
        Category('gifts', 'Gifts'),
    ]


def _sample_sectors():
    return [
        Sector('home', 'Home', frozenset({'rent', 'utilities', 'ghost'})),
        Sector('food', 'Food', frozenset({'groceries', 'dining'})),
    ]


def _budget(category_id: str, amount: float = 100.0) -> BudgetSummary:
    return BudgetSummary(
        category_id=category_id,
        category_name=category_id.title(),
        year=2024,
        month=3,
        budget_id=f"b-{category_id}",
        amount=AbsoluteAmount(amount),
        current_period_budget=amount,
    )


def _sector_summary(sector_id: str, budgeted: bool = True) -> SectorBudgetSummary:
    return SectorBudgetSummary(
        sector_id=sector_id,
        sector_name=sector_id.title(),
        year=2024,
        month=3,
        budget_id=f"s-{sector_id}" if budgeted else None,
        amount=AbsoluteAmount(500.0) if budgeted else None,
    )


def test_sectors_and_unassigned_partition_categories() -> None:
    categories = _sample_categories()
    sectors = _sample_sectors()

    seen = []
    for sector in sectors:
        seen.extend(c.id for c in hierarchy.categories_for_sector(sector, categories))
    seen.extend(c.id for c in hierarchy.unassigned_categories(sectors, categories))

    assert sorted(seen) == sorted(c.id for c in categories)
    assert len(seen) == len(set(seen))


def test_unknown_category_ids_are_skipped() -> None:
    home = _sample_sectors()[0]
    found = hierarchy.categories_for_sector(home, _sample_categories())
    assert [c.id for c in found] == ['rent', 'utilities']


def test_unassigned_categories() -> None:
    unassigned = hierarchy.unassigned_categories(_sample_sectors(), _sample_categories())
    assert [c.id for c in unassigned] == ['gifts']


def test_orphaned_category_budgets() -> None:
    budgets = [_budget('rent'), _budget('groceries'), _budget('gifts')]
    sector_summaries = [_sector_summary('home'), _sector_summary('food', budgeted=False)]

    orphaned = hierarchy.orphaned_category_budgets(_sample_sectors(), budgets, sector_summaries)

    # Gifts sits outside every sector so it is never orphaned.
    assert [b.category_id for b in orphaned] == ['groceries']


def test_unbudgeted_summaries_are_not_orphans() -> None:
    unbudgeted = BudgetSummary('dining', 'Dining', 2024, 3)
    orphaned = hierarchy.orphaned_category_budgets(_sample_sectors(), [unbudgeted], [])
    assert orphaned == []


def test_sectors_without_budgets() -> None:
    budgets = [_budget('groceries')]
    sector_summaries = [_sector_summary('home', budgeted=False), _sector_summary('food', budgeted=False)]

    missing = hierarchy.sectors_without_budgets(_sample_sectors(), budgets, sector_summaries)

    assert [s.id for s in missing] == ['food']


def test_excluded_sectors() -> None:
    excluded = hierarchy.excluded_sectors(_sample_sectors(), [_sector_summary('home')])
    assert [s.id for s in excluded] == ['food']


def test_category_in_two_sectors_belongs_to_first(caplog) -> None:
    sectors = [
        Sector('a', 'A', frozenset({'shared'})),
        Sector('b', 'B', frozenset({'shared'})),
    ]
    with caplog.at_level('WARNING', logger='shared_budget.hierarchy'):
        index = hierarchy.category_sector_index(sectors)
    assert index['shared'].id == 'a'
    assert 'shared' in caplog.text

