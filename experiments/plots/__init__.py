"""Plotting utilities for study results."""

from .annotated_scatter import plot_annotated_scatter
from .interval_summary import IntervalRow, plot_interval_summary
from .save_config import PlotSaveConfig, PlotSaveDestinations, emit_figure, figure_slug
from .variable_fit import plot_variable_fit

__all__ = [
    "IntervalRow",
    "PlotSaveConfig",
    "PlotSaveDestinations",
    "emit_figure",
    "figure_slug",
    "plot_annotated_scatter",
    "plot_interval_summary",
    "plot_variable_fit",
]
