"""Speaker-labelled scatter for a single designated variable."""

from __future__ import annotations

import plotly.express as px
import plotly.graph_objects as go

from dialect_loss.pipelines import VariableResult


def plot_annotated_scatter(result: VariableResult, yearmin: int, yearmax: int) -> go.Figure:
    """Plot each speaker's proportion with the speaker id written next to the point."""
    table = result.table.sort_values("year")
    fig = px.scatter(
        table,
        x="year",
        y="prop",
        text="speaker",
        color="gender",
        size="total",
        title=f"{result.name} – speakers",
        labels={"year": "Year of birth", "prop": "Proportion conservative", "gender": "Gender"},
    )
    fig.update_traces(textposition="top center")
    fig.update_xaxes(range=[yearmin, yearmax])
    fig.update_yaxes(range=[-0.05, 1.05])
    return fig
