"""Unit tests for shared_budget.propagation and the in-memory store."""

from __future__ import annotations

from datetime import date

import pytest

from shared_budget import propagation
from shared_budget.errors import EmptySourcePeriodError, PropagationError
from shared_budget.models import AbsoluteAmount, CategoryBudget, Period, Sector, SectorBudget, SplitAmount
from shared_budget.store import InMemoryBudgetStore

FEB = Period(2024, 2)
MAR = Period(2024, 3)


class RecordingStore(InMemoryBudgetStore):
    """Store that records write calls and can fail one of them."""

    def __init__(self, *args, fail_on=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []
        self.fail_on = fail_on

    def _record(self, name):
        self.calls.append(name)
        if self.fail_on == name:
            raise RuntimeError(f"{name} unavailable")

    def upsert_category_budgets(self, rows):
        self._record('upsert_category_budgets')
        super().upsert_category_budgets(rows)

    def delete_sector_budgets(self, period):
        self._record('delete_sector_budgets')
        return super().delete_sector_budgets(period)

    def upsert_sector_budgets(self, rows):
        self._record('upsert_sector_budgets')
        super().upsert_sector_budgets(rows)


def _sample_store(**kwargs) -> RecordingStore:
    sectors = [
        Sector('home', 'Home', frozenset({'rent'})),
        Sector('food', 'Food', frozenset({'groceries'})),
    ]
    category_budgets = [
        CategoryBudget('c1', 'rent', 2024, 2, AbsoluteAmount(1000.0)),
        CategoryBudget('c2', 'groceries', 2024, 2, SplitAmount(150.0, 150.0)),
    ]
    sector_budgets = [SectorBudget('s1', 'home', 2024, 2, AbsoluteAmount(1500.0))]
    return RecordingStore(sectors, category_budgets, sector_budgets, **kwargs)


def _content(rows):
    return sorted(
        (getattr(r, 'category_id', None) or r.sector_id, r.year, r.month, r.amount, getattr(r, 'auto_rollup', None))
        for r in rows
    )


def test_steps_run_in_order() -> None:
    store = _sample_store()
    propagation.propagate(store, FEB, MAR)
    assert store.calls == ['upsert_category_budgets', 'delete_sector_budgets', 'upsert_sector_budgets']


def test_placeholders_are_replaced_by_source_sector_budgets() -> None:
    store = _sample_store()
    result = propagation.propagate(store, FEB, MAR)

    sector_rows = store.sector_budgets_for(MAR)
    assert [(r.sector_id, r.amount, r.auto_rollup) for r in sector_rows] == [
        ('home', AbsoluteAmount(1500.0), False),
    ]
    assert result.category_budgets_copied == 2
    assert result.sector_budgets_cleared == 2
    assert result.sector_budgets_copied == 1
    assert _content(store.category_budgets_for(MAR)) == _content(
        [r.for_period(MAR, r.id) for r in store.category_budgets_for(FEB)]
    )


def test_saving_a_category_budget_creates_a_placeholder() -> None:
    store = _sample_store()
    store.upsert_category_budgets([CategoryBudget('x', 'groceries', 2024, 4, AbsoluteAmount(10.0))])
    placeholder = store.sector_budgets_for(Period(2024, 4))[0]
    assert placeholder.sector_id == 'food'
    assert placeholder.amount == AbsoluteAmount(0.0)
    assert placeholder.auto_rollup


def test_propagation_is_idempotent() -> None:
    store = _sample_store()
    propagation.propagate(store, FEB, MAR)
    first_categories = _content(store.category_budgets_for(MAR))
    first_sectors = _content(store.sector_budgets_for(MAR))
    first_ids = sorted(r.id for r in store.category_budgets_for(MAR))

    propagation.propagate(store, FEB, MAR)

    assert _content(store.category_budgets_for(MAR)) == first_categories
    assert _content(store.sector_budgets_for(MAR)) == first_sectors
    assert sorted(r.id for r in store.category_budgets_for(MAR)) == first_ids


def test_failed_step_stops_and_leaves_marker() -> None:
    store = _sample_store(fail_on='delete_sector_budgets')

    with pytest.raises(PropagationError) as excinfo:
        propagation.propagate(store, FEB, MAR)

    err = excinfo.value
    assert err.step is propagation.PropagationStep.CLEAR_SECTOR_BUDGETS
    assert isinstance(err.__cause__, RuntimeError)
    assert 'delete_sector_budgets unavailable' in str(err)
    assert 'upsert_sector_budgets' not in store.calls
    assert store.pending_propagations() == [(FEB, MAR)]


def test_resume_repairs_interrupted_propagation() -> None:
    store = _sample_store(fail_on='upsert_sector_budgets')
    with pytest.raises(PropagationError):
        propagation.propagate(store, FEB, MAR)
    assert store.sector_budgets_for(MAR) == []

    store.fail_on = None
    results = propagation.resume_pending_propagations(store)

    assert [(r.source, r.target) for r in results] == [(FEB, MAR)]
    assert store.pending_propagations() == []
    assert [r.sector_id for r in store.sector_budgets_for(MAR)] == ['home']


def test_empty_source_is_rejected_before_any_step() -> None:
    store = _sample_store()
    with pytest.raises(EmptySourcePeriodError):
        propagation.propagate(store, Period(2023, 12), MAR)
    assert store.calls == []
    assert store.pending_propagations() == []


def test_copy_onto_itself_is_rejected() -> None:
    with pytest.raises(ValueError):
        propagation.propagate(_sample_store(), FEB, FEB)


def test_carry_forward_uses_previous_month() -> None:
    store = _sample_store()
    result = propagation.carry_forward(store, MAR)
    assert result.source == FEB
    assert propagation.month_has_budget_data(store, MAR)


def test_carry_forward_if_needed_only_fills_current_empty_month() -> None:
    store = _sample_store()
    assert propagation.carry_forward_if_needed(store, Period(2024, 4), today=date(2024, 3, 10)) is None
    assert propagation.carry_forward_if_needed(store, FEB, today=date(2024, 2, 10)) is None

    result = propagation.carry_forward_if_needed(store, MAR, today=date(2024, 3, 10))
    assert result is not None
    assert propagation.carry_forward_if_needed(store, MAR, today=date(2024, 3, 10)) is None


def test_carry_forward_if_needed_with_nothing_to_copy() -> None:
    store = _sample_store()
    assert propagation.carry_forward_if_needed(store, Period(2024, 6), today=date(2024, 6, 1)) is None


def test_delete_period_budgets_leaves_other_months() -> None:
    store = _sample_store()
    propagation.propagate(store, FEB, MAR)

    assert propagation.delete_period_budgets(store, MAR) == (2, 1)
    assert store.category_budgets_for(MAR) == []
    assert store.sector_budgets_for(MAR) == []
    assert len(store.category_budgets_for(FEB)) == 2


def test_available_periods_newest_first() -> None:
    store = _sample_store()
    propagation.propagate(store, FEB, MAR)
    assert store.available_periods() == [MAR, FEB]


def _store_with_markers(**kwargs) -> RecordingStore:
    sectors = [Sector('home', 'Home', frozenset({'rent'}))]
    category_budgets = [
        CategoryBudget('c1', 'rent', 2024, 2, AbsoluteAmount(1000.0)),
        CategoryBudget('c2', 'rent', 2024, 3, AbsoluteAmount(1100.0)),
    ]
    markers = {'2024-04': '2024-02', '2024-05': '2024-03'}
    return RecordingStore(sectors, category_budgets, [], propagation_markers=markers, **kwargs)


def test_resume_drops_marker_when_source_was_emptied() -> None:
    store = _store_with_markers()
    propagation.delete_period_budgets(store, FEB)

    results = propagation.resume_pending_propagations(store)

    assert [(r.source, r.target) for r in results] == [(MAR, Period(2024, 5))]
    assert store.pending_propagations() == []
    assert [b.amount for b in store.category_budgets_for(Period(2024, 5))] == [AbsoluteAmount(1100.0)]
    assert store.category_budgets_for(Period(2024, 4)) == []


def test_resume_tries_every_marker_before_raising() -> None:
    store = _store_with_markers(fail_on='upsert_sector_budgets')

    with pytest.raises(PropagationError):
        propagation.resume_pending_propagations(store)

    assert store.calls.count('upsert_category_budgets') == 2
    assert len(store.pending_propagations()) == 2


def test_deleting_a_month_abandons_its_unfinished_copy() -> None:
    store = _store_with_markers()
    propagation.delete_period_budgets(store, Period(2024, 4))
    assert store.pending_propagations() == [(MAR, Period(2024, 5))]
