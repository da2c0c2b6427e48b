"""Profile-likelihood confidence intervals for fixed-effect coefficients."""

from __future__ import annotations

from dataclasses import replace
from typing import Tuple

import numpy as np
from scipy.optimize import brentq
from scipy.stats import chi2

from dialect_loss.config import PROFILE_DEVTOL, PROFILE_LEVEL
from dialect_loss.errors import ProfileError

from .glmm import FittedModel, LaplaceDeviance, minimize_deviance


class DevianceProfile:
    """Minimum deviance with one coefficient held fixed at a given value."""

    def __init__(self, model: FittedModel, index: int, devtol: float = PROFILE_DEVTOL) -> None:
        self.model = model
        self.index = index
        self.devtol = devtol
        cfg = model.config
        self.objective = LaplaceDeviance(model.design, cfg.n_agq, cfg.inner_max_iter, cfg.inner_tol)
        self.free = [i for i in range(model.params.size) if i != index]
        self.bounds = [(0.0, None) if i == model.params.size - 1 else (None, None) for i in self.free]
        self._start = model.params[self.free]

    def _assemble(self, value: float, free: np.ndarray) -> np.ndarray:
        params = np.empty(self.model.params.size)
        params[self.index] = value
        params[self.free] = free
        return params

    def __call__(self, value: float) -> float:
        def objective(free: np.ndarray) -> float:
            return self.objective(self._assemble(value, free))

        opt = minimize_deviance(objective, self._start, self.bounds, self.model.config)
        if not opt.success:
            # Retry derivative-free before giving up on this point.
            opt = minimize_deviance(objective, self._start, self.bounds, replace(self.model.config, optimizer="powell"))
        if not opt.success or not np.isfinite(opt.fun):
            raise ProfileError(
                f"Profile refit for {self.model.coef_names[self.index]}={value:.6g} failed: {opt.message}"
            )

        deviance = float(opt.fun)
        if deviance < self.model.deviance - self.devtol:
            raise ProfileError(
                f"Profiling detected a lower deviance ({deviance:.6f} < {self.model.deviance:.6f}); "
                "the original fit is not at the optimum."
            )
        self._start = np.asarray(opt.x, dtype=float)
        return deviance


def profile_interval(
    model: FittedModel,
    name: str,
    level: float = PROFILE_LEVEL,
    devtol: float = PROFILE_DEVTOL,
    max_doublings: int = 10,
) -> Tuple[float, float]:
    """Return the profile-likelihood interval ``(lower, upper)`` for coefficient ``name``."""
    if not 0 < level < 1:
        raise ValueError("level must fall within (0, 1).")
    model.require_converged()
    index = model.coef_index(name)
    estimate = float(model.coefficients[index])
    se = float(model.std_errors[index])
    if not np.isfinite(se) or se <= 0:
        raise ProfileError(f"Cannot profile {name}: standard error is {se}.")

    cutoff = float(chi2.ppf(level, df=1))

    def limit(direction: float) -> float:
        profile = DevianceProfile(model, index, devtol=devtol)

        def excess(value: float) -> float:
            return profile(value) - model.deviance - cutoff

        inner = estimate
        multiplier = 1.0
        for _ in range(max_doublings):
            outer = estimate + direction * multiplier * se
            if excess(outer) > 0:
                return float(brentq(excess, min(inner, outer), max(inner, outer), xtol=1e-10 * max(1.0, abs(estimate)) + 1e-12))
            inner = outer
            multiplier *= 2.0
        raise ProfileError(
            f"Profile for {name} did not reach the {level:.0%} cutoff within {multiplier / 2:g} standard errors."
        )

    return limit(-1.0), limit(1.0)
