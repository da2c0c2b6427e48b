"""Where study figures go on disk, and how they get there."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import plotly.graph_objects as go


def figure_slug(name: str) -> str:
    """File-system friendly figure name: lower case, spaces and separators as underscores."""
    cleaned = "".join(ch if ch.isalnum() else "_" for ch in name.strip().lower())
    return cleaned.strip("_") or "figure"


@dataclass(frozen=True)
class PlotSaveDestinations:
    """Output files for one figure; PNG via kaleido and optionally standalone HTML."""

    directory: Path
    slug: str
    save_static: bool
    save_html: bool

    def paths(self) -> List[Path]:
        targets = []
        if self.save_static:
            targets.append(self.directory / f"{self.slug}.png")
        if self.save_html:
            targets.append(self.directory / f"{self.slug}.html")
        return targets


@dataclass(frozen=True)
class PlotSaveConfig:
    """Figure root shared by a study run; subdirectories group the per-variable fits."""

    base_dir: Path
    save_static: bool = True
    save_html: bool = False

    def for_plot(self, name: str, subdir: Optional[str] = None) -> PlotSaveDestinations:
        directory = self.base_dir / subdir if subdir else self.base_dir
        return PlotSaveDestinations(
            directory=directory,
            slug=figure_slug(name),
            save_static=self.save_static,
            save_html=self.save_html,
        )


def emit_figure(fig: go.Figure, save_to: Optional[PlotSaveDestinations] = None, show: bool = False) -> List[Path]:
    """Write the figure to its destinations, or display it when nothing is saved."""
    if save_to is None:
        if show:
            fig.show()
        return []

    save_to.directory.mkdir(parents=True, exist_ok=True)
    written = []
    for path in save_to.paths():
        if path.suffix == ".png":
            fig.write_image(str(path), engine="kaleido")
        else:
            fig.write_html(str(path), include_plotlyjs="cdn", full_html=True)
        written.append(path)
    return written


__all__ = ["PlotSaveConfig", "PlotSaveDestinations", "emit_figure", "figure_slug"]
