"""Per-variable plot of speaker proportions, fitted curve and confidence band."""

from __future__ import annotations

import plotly.express as px
import plotly.graph_objects as go

from dialect_loss.pipelines import VariableResult

BAND_COLOR = "rgba(31, 119, 180, 0.2)"
CURVE_COLOR = "rgb(31, 119, 180)"


def plot_variable_fit(result: VariableResult, yearmin: int, yearmax: int) -> go.Figure:
    """Scatter speaker proportions (sized by tokens) over the population curve."""
    table = result.table
    band = result.band.window(yearmin, yearmax)

    fig = px.scatter(
        table,
        x="year",
        y="prop",
        size="total",
        color="gender",
        hover_name="speaker",
        hover_data={"cons": True, "inn": True, "total": True},
        title=f"{result.name} – probability of the conservative variant",
        labels={"year": "Year of birth", "prop": "Proportion conservative", "gender": "Gender"},
    )
    fig.add_trace(
        go.Scatter(
            x=list(band.year) + list(band.year[::-1]),
            y=list(band.upper) + list(band.lower[::-1]),
            fill="toself",
            fillcolor=BAND_COLOR,
            line=dict(width=0),
            hoverinfo="skip",
            name="95% CI",
        )
    )
    fig.add_trace(go.Scatter(x=band.year, y=band.pred, mode="lines", line=dict(color=CURVE_COLOR), name="Fit"))
    fig.add_hline(y=0.5, line_dash="dot", line_color="grey")

    tp = result.turning_point
    if tp.estimate is not None and yearmin <= tp.estimate <= yearmax:
        fig.add_vline(
            x=tp.estimate,
            line_dash="dash",
            line_color="grey",
            annotation_text=f"turning point {tp.estimate:.0f}",
        )

    fig.update_xaxes(range=[yearmin, yearmax])
    fig.update_yaxes(range=[0.0, 1.0])
    return fig
