"""Point estimates with profile-likelihood intervals for named coefficients."""

from __future__ import annotations

from dataclasses import dataclass

from scipy.special import expit

from dialect_loss.config import PROFILE_DEVTOL, PROFILE_LEVEL
from dialect_loss.models.glmm import FittedModel
from dialect_loss.models.profile import profile_interval


@dataclass(frozen=True)
class CoefficientEstimate:
    """Estimate and profile interval for one fixed-effect coefficient."""

    name: str
    estimate: float
    lower: float
    upper: float

    def to_probability(self) -> "CoefficientEstimate":
        """Map the estimate and bounds through the logistic function."""
        return CoefficientEstimate(
            name=f"p({self.name})",
            estimate=float(expit(self.estimate)),
            lower=float(expit(self.lower)),
            upper=float(expit(self.upper)),
        )


def extract_coefficient(
    model: FittedModel,
    name: str,
    level: float = PROFILE_LEVEL,
    devtol: float = PROFILE_DEVTOL,
) -> CoefficientEstimate:
    """Return ``name``'s estimate with its profile-likelihood interval.

    Raises:
        KeyError: if ``name`` is not a coefficient of the model.
        ProfileError: if the interval cannot be profiled.
    """
    estimate = model.coef(name)
    lower, upper = profile_interval(model, name, level=level, devtol=devtol)
    return CoefficientEstimate(name=name, estimate=estimate, lower=lower, upper=upper)
