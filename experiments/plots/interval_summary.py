"""Ordered interval charts comparing one quantity across variables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go


@dataclass(frozen=True)
class IntervalRow:
    """One variable's estimate and interval for the chart."""

    variable: str
    estimate: float
    lower: float
    upper: float


def plot_interval_summary(
    rows: Sequence[IntervalRow],
    title: str,
    axis_label: str,
    axis_range: Optional[Sequence[float]] = None,
    reference: Optional[float] = None,
) -> Optional[go.Figure]:
    """Plot estimates with horizontal interval bars, sorted by estimate."""
    if not rows:
        return None

    df = pd.DataFrame(
        {
            "variable": [row.variable for row in rows],
            "estimate": [row.estimate for row in rows],
            "lower": [row.lower for row in rows],
            "upper": [row.upper for row in rows],
        }
    ).sort_values("estimate")

    fig = px.scatter(
        df,
        x="estimate",
        y="variable",
        error_x=df["upper"] - df["estimate"],
        error_x_minus=df["estimate"] - df["lower"],
        title=title,
        labels={"estimate": axis_label, "variable": "Variable"},
    )
    fig.update_yaxes(categoryorder="array", categoryarray=list(df["variable"]))
    if axis_range is not None:
        fig.update_xaxes(range=list(axis_range))
    if reference is not None:
        fig.add_vline(x=reference, line_dash="dot", line_color="grey")
    return fig
