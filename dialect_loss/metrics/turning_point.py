"""Turning point: the first birth year at which the modelled curve drops below 0.5."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .band import ConfidenceBand


@dataclass(frozen=True)
class TurningPointEstimate:
    """First crossing years of the lower bound, the estimate and the upper bound.

    ``None`` means the corresponding curve never falls below 0.5 on the grid.
    """

    lower: Optional[float]
    estimate: Optional[float]
    upper: Optional[float]

    @property
    def found(self) -> bool:
        """True if the point-estimate curve crosses 0.5."""
        return self.estimate is not None

    @property
    def complete(self) -> bool:
        """True if all three curves cross 0.5."""
        return self.lower is not None and self.estimate is not None and self.upper is not None


def first_crossing(years: np.ndarray, values: np.ndarray) -> Optional[float]:
    """Return the first year whose link-scale value is negative, or None."""
    years = np.asarray(years, dtype=float)
    values = np.asarray(values, dtype=float)
    if years.shape != values.shape:
        raise ValueError("years and values must be aligned.")
    if np.any(~np.isfinite(values)):
        raise ValueError("Curve contains non-finite values.")

    below = np.flatnonzero(values < 0)
    if below.size == 0:
        return None
    return float(years[below[0]])


def locate_turning_point(band: ConfidenceBand) -> TurningPointEstimate:
    """Scan the band in ascending year order.

    The lower-bound curve reaches 0.5 no later than the estimate, so its
    crossing is the early end of the interval and the upper-bound curve's the late end.
    """
    if len(band) == 0:
        raise ValueError("Confidence band is empty.")
    return TurningPointEstimate(
        lower=first_crossing(band.year, band.lower_),
        estimate=first_crossing(band.year, band.pred_),
        upper=first_crossing(band.year, band.upper_),
    )
