"""Streamlit page for the shared budget.

Reads the JSON snapshot configured in :mod:`shared_budget.config`, shows the
monthly and yearly hierarchy with totals, warnings and projections, and
offers carry-forward/copy actions that write back to the snapshot.

To run the dashboard from the command line::

    streamlit run shared_budget/dashboard.py
"""

from __future__ import annotations

import os
import sys
from datetime import date
from typing import List

import streamlit as st

if __package__:
    from . import aggregation, config, hierarchy, projection, propagation, spending, thresholds
    from . import visualization as viz
    from .errors import BudgetEngineError
    from .loaders import BudgetSnapshot, load_snapshot, save_snapshot
    from .models import Period
    from .store import InMemoryBudgetStore
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from shared_budget import aggregation, config, hierarchy, projection, propagation, spending, thresholds  # type: ignore
    from shared_budget import visualization as viz  # type: ignore
    from shared_budget.errors import BudgetEngineError  # type: ignore
    from shared_budget.loaders import BudgetSnapshot, load_snapshot, save_snapshot  # type: ignore
    from shared_budget.models import Period  # type: ignore
    from shared_budget.store import InMemoryBudgetStore  # type: ignore


def _month_options(store: InMemoryBudgetStore, today: date) -> List[Period]:
    """Last 24 months plus any older month holding budgets, newest first."""
    options = []
    period = Period.from_date(today)
    for _ in range(24):
        options.append(period)
        period = period.previous()
    for available in store.available_periods():
        if available not in options:
            options.append(available)
    return sorted(options, reverse=True)


def _persist(snapshot: BudgetSnapshot, store: InMemoryBudgetStore) -> None:
    save_snapshot(store.apply_to_snapshot(snapshot), config.SNAPSHOT_PATH)


def _render_monthly(snapshot: BudgetSnapshot, store: InMemoryBudgetStore, period: Period, yellow: float,
                    red: float) -> None:
    category_budgets = store.category_budgets_for(period)
    budget_summaries = spending.build_budget_summaries(
        snapshot.categories, category_budgets, snapshot.transactions, period,
    )
    sector_summaries = spending.build_sector_budget_summaries(
        snapshot.sectors, store.sector_budgets_for(period), category_budgets, snapshot.transactions, period,
    )

    totals = aggregation.aggregate(snapshot.sectors, budget_summaries, sector_summaries)
    cols = st.columns(4)
    cols[0].metric("Total budget", f"{totals.total_budget:,.2f}")
    cols[1].metric("Spent", f"{totals.total_spent:,.2f}")
    cols[2].metric("Remaining", f"{totals.total_remaining:,.2f}")
    cols[3].metric("Used", f"{totals.overall_percentage:.1f}%")

    for sector in hierarchy.sectors_without_budgets(snapshot.sectors, budget_summaries, sector_summaries):
        st.warning(f"{sector.name} has category budgets but no sector budget for {period.label}.")
    orphaned = hierarchy.orphaned_category_budgets(snapshot.sectors, budget_summaries, sector_summaries)
    if orphaned:
        names = ', '.join(b.category_name for b in orphaned)
        st.caption(f"Category budgets without a sector budget: {names}")

    rows = aggregation.build_sector_rows(
        snapshot.sectors, snapshot.categories, budget_summaries, sector_summaries, yellow,
    )
    st.plotly_chart(viz.create_utilization_chart(aggregation.utilization_frame(rows)), use_container_width=True)
    st.dataframe(
        aggregation.budget_table(snapshot.sectors, snapshot.categories, budget_summaries, sector_summaries, yellow,
                                 unassigned_label=config.get_unassigned_label()),
        use_container_width=True,
        hide_index=True,
    )

    labels = config.get_user_labels()
    with st.expander("Per-user shares"):
        for summary in budget_summaries:
            if not summary.has_budget:
                continue
            shares = thresholds.classify_user_shares(summary, yellow, red)
            cols = st.columns(3)
            cols[0].write(summary.category_name)
            for col, user in zip(cols[1:], ("user1", "user2")):
                percentage, tier = shares[user]
                col.write(f"{labels[user]}: {percentage:.0f}% ({tier.value})")
                col.progress(thresholds.progress_percentage(
                    getattr(summary.amount, f"{user}_share"),
                    getattr(summary, f"current_period_{user}_spent"),
                ) / 100)


def _render_yearly(snapshot: BudgetSnapshot, period: Period, yellow: float) -> None:
    window = spending.SpendWindow.YEAR_TO_DATE
    budget_summaries = spending.build_budget_summaries(
        snapshot.categories, snapshot.category_budgets, snapshot.transactions, period, window,
    )
    sector_summaries = spending.build_sector_budget_summaries(
        snapshot.sectors, snapshot.sector_budgets, snapshot.category_budgets, snapshot.transactions, period, window,
    )
    totals = aggregation.aggregate(snapshot.sectors, budget_summaries, sector_summaries)
    st.metric(f"Spent in {period.year} through {period.label}", f"{totals.total_spent:,.2f}",
              f"of {totals.total_budget:,.2f}")
    st.dataframe(
        aggregation.budget_table(snapshot.sectors, snapshot.categories, budget_summaries, sector_summaries, yellow,
                                 unassigned_label=config.get_unassigned_label()),
        use_container_width=True,
        hide_index=True,
    )

    days_in_year = config.get_days_in_year()

    for summary in sector_summaries + budget_summaries:
        result = projection.project_summary(summary, period.month, days_in_year)
        if result is None:
            continue
        name = getattr(summary, 'sector_name', None) or getattr(summary, 'category_name', '')
        with st.expander(f"{name}: {result.status.value.replace('_', ' ')}"):
            st.write(
                f"Daily budget {result.daily_budget:,.2f}, {result.days_elapsed} days elapsed, "
                f"on-track spend {result.should_be_spent_by_now:,.2f}, "
                f"{abs(result.difference):,.2f} {'under' if result.is_on_track else 'over'}."
            )
            frame = projection.projection_frame(result.yearly_budget, result.spent_to_date, period.month, days_in_year)
            st.plotly_chart(viz.create_projection_chart(frame, result.yearly_budget), use_container_width=True)


def main() -> None:
    """Entry point for the Streamlit app."""
    st.set_page_config(page_title="Shared Budget", layout="wide")
    st.title("Shared Budget")

    config.ensure_data_directories()
    try:
        snapshot = load_snapshot(config.SNAPSHOT_PATH)
    except BudgetEngineError as exc:
        st.error(f"Could not read {config.SNAPSHOT_PATH}: {exc}")
        st.stop()

    store = InMemoryBudgetStore.from_snapshot(snapshot)
    limits = config.get_thresholds()
    today = date.today()

    options = _month_options(store, today)
    period = st.sidebar.selectbox("Month", options=options, format_func=lambda p: p.label)

    if store.pending_propagations():
        try:
            propagation.resume_pending_propagations(store)
        except BudgetEngineError as exc:
            st.error(str(exc))
        _persist(snapshot, store)
    try:
        if propagation.carry_forward_if_needed(store, period, today) is not None:
            _persist(snapshot, store)
    except BudgetEngineError as exc:
        st.error(str(exc))

    st.sidebar.header("Copy budgets")
    if st.sidebar.button(f"Carry forward from {period.previous().label}"):
        try:
            propagation.carry_forward(store, period)
            _persist(snapshot, store)
            st.sidebar.success("Budgets carried forward.")
        except BudgetEngineError as exc:
            st.sidebar.error(str(exc))

    sources = [p for p in store.available_periods() if p != period]
    if sources:
        source = st.sidebar.selectbox("Copy from", options=sources, format_func=lambda p: p.label)
        if st.sidebar.button("Copy budgets"):
            try:
                propagation.propagate(store, source, period)
                _persist(snapshot, store)
                st.sidebar.success(f"Copied budgets from {source.label}.")
            except BudgetEngineError as exc:
                st.sidebar.error(str(exc))

    monthly_tab, yearly_tab = st.tabs(["Monthly", "Yearly"])
    with monthly_tab:
        _render_monthly(snapshot, store, period, limits['yellow'], limits['red'])
    with yearly_tab:
        _render_yearly(snapshot, period, limits['yellow'])


if __name__ == "__main__":
    main()
