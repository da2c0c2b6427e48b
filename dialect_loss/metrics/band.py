"""Population-level prediction curve with pointwise Wald confidence bounds."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.special import expit

from dialect_loss.config import GRID_POINTS, ORIGIN_YEAR, Z_975
from dialect_loss.models.glmm import FittedModel


@dataclass(frozen=True)
class ConfidenceBand:
    """Prediction over an ascending year grid on the link and probability scales.

    Trailing underscores mark link-scale values (``pred_``, ``lower_``, ``upper_``).
    """

    year: np.ndarray
    year20: np.ndarray
    pred_: np.ndarray
    lower_: np.ndarray
    upper_: np.ndarray
    pred: np.ndarray
    lower: np.ndarray
    upper: np.ndarray

    def __len__(self) -> int:
        return int(self.year.shape[0])

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "year": self.year,
                "year20": self.year20,
                "pred_": self.pred_,
                "lower_": self.lower_,
                "upper_": self.upper_,
                "pred": self.pred,
                "lower": self.lower,
                "upper": self.upper,
            }
        )

    def window(self, start: float, stop: float) -> "ConfidenceBand":
        """Return the part of the band with ``start <= year <= stop``."""
        mask = (self.year >= start) & (self.year <= stop)
        return ConfidenceBand(
            **{name: getattr(self, name)[mask] for name in self.__dataclass_fields__}
        )


def build_confidence_band(
    model: FittedModel,
    yearmin_band: int = 1800,
    yearmax: int = 2000,
    origin_year: int = ORIGIN_YEAR,
    grid_points: int = GRID_POINTS,
    z: float = Z_975,
) -> ConfidenceBand:
    """Evaluate the fixed-effect curve and its Wald band on a dense grid.

    Random effects are excluded, so the curve describes a typical speaker.
    """
    model.require_converged()
    if grid_points < 2:
        raise ValueError("grid_points must be at least 2.")
    if yearmin_band >= yearmax:
        raise ValueError("yearmin_band must be earlier than yearmax.")

    year = np.linspace(yearmin_band, yearmax, grid_points)
    year20 = year - origin_year
    design = np.column_stack([np.ones_like(year20), year20])

    pred_ = design @ model.coefficients
    sd = np.sqrt(np.einsum("ij,jk,ik->i", design, model.vcov, design))
    lower_ = pred_ - z * sd
    upper_ = pred_ + z * sd

    return ConfidenceBand(
        year=year,
        year20=year20,
        pred_=pred_,
        lower_=lower_,
        upper_=upper_,
        pred=expit(pred_),
        lower=expit(lower_),
        upper=expit(upper_),
    )
