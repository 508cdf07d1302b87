"""Smoke tests for shared_budget.visualization."""

from __future__ import annotations

import pandas as pd
import plotly.graph_objects as go

from shared_budget import visualization as viz
from shared_budget.projection import projection_frame


def test_utilization_chart() -> None:
    frame = pd.DataFrame({
        'Name': ['Home', 'Food'],
        'Budget': [1500.0, 0.0],
        'Spent': [1100.0, 330.0],
        'Percent': [73.3, 100.0],
        'Status': ['under', 'over'],
    })
    fig = viz.create_utilization_chart(frame, title='March')
    assert isinstance(fig, go.Figure)
    assert len(fig.data) == 2
    assert fig.layout.title.text == 'March'


def test_empty_utilization_chart() -> None:
    fig = viz.create_utilization_chart(pd.DataFrame(columns=['Name', 'Percent', 'Status']))
    assert fig.layout.title.text == 'No data to display'


def test_projection_chart() -> None:
    fig = viz.create_projection_chart(projection_frame(1200, 700, 6), 1200)
    assert [trace.name for trace in fig.data] == ['On-track spend', 'Spent to date']
