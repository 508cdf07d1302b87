"""Plotly figures for budget utilisation and yearly projections.

Each function takes a DataFrame produced by :mod:`aggregation` or
:mod:`projection` and returns a `plotly.graph_objects.Figure` that Streamlit
can render via ``st.plotly_chart``.
"""

from __future__ import annotations

from typing import Dict, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .settings import get_config_value

DEFAULT_TIER_COLORS = {'under': '#22c55e', 'warning': '#eab308', 'over': '#ef4444'}


def _tier_colors() -> Dict[str, str]:
    return get_config_value('budgets', 'display', 'tier_colors', default=DEFAULT_TIER_COLORS) or DEFAULT_TIER_COLORS


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_utilization_chart(utilization: pd.DataFrame, title: Optional[str] = None) -> go.Figure:
    """Horizontal bars of percent used, coloured by status tier.

    Parameters
    ----------
    utilization : pandas.DataFrame
        Output of :func:`shared_budget.aggregation.utilization_frame` with
        ``Name``, ``Percent`` and ``Status`` columns.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar chart with a reference line at 100%.
    """
    if utilization.empty:
        return _empty_figure()
    fig = px.bar(
        utilization,
        x='Percent',
        y='Name',
        color='Status',
        orientation='h',
        color_discrete_map=_tier_colors(),
        hover_data=['Budget', 'Spent'] if {'Budget', 'Spent'} <= set(utilization.columns) else None,
    )
    fig.add_vline(x=100, line_dash='dash', line_color='gray')
    fig.update_layout(
        title=title or "Budget used by sector",
        xaxis_title="% used",
        yaxis_title="",
        yaxis={'categoryorder': 'array', 'categoryarray': list(utilization['Name'])[::-1]},
    )
    return fig


def create_projection_chart(projection: pd.DataFrame, yearly_budget: float, title: Optional[str] = None) -> go.Figure:
    """Linear spend target through the year against spend to date.

    Parameters
    ----------
    projection : pandas.DataFrame
        Output of :func:`shared_budget.projection.projection_frame`.
    yearly_budget : float
        Drawn as a horizontal ceiling.
    title : str, optional
        Chart title.
    """
    if projection.empty:
        return _empty_figure()
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=projection['Month'], y=projection['Target'], mode='lines', name='On-track spend'))
    actual = projection.dropna(subset=['Actual'])
    if not actual.empty:
        fig.add_trace(go.Scatter(
            x=actual['Month'], y=actual['Actual'], mode='markers', name='Spent to date', marker={'size': 12},
        ))
    fig.add_hline(y=yearly_budget, line_dash='dot', line_color='gray')
    fig.update_layout(
        title=title or "Yearly budget projection",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return fig
