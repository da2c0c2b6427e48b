"""Scikit-learn backed logistic regression used to seed the mixed-model fit."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from sklearn.linear_model import LogisticRegression


@dataclass
class StartValueConfig:
    """Hyper-parameters forwarded to scikit-learn's LogisticRegression."""

    # Large C makes the L2 penalty negligible so the estimates match an unpenalised GLM.
    C: float = 1e8
    solver: str = "lbfgs"
    max_iter: int = 1000
    tol: float = 1e-8


def pooled_logistic_start(
    year20: np.ndarray,
    outcome: np.ndarray,
    config: StartValueConfig | None = None,
) -> np.ndarray:
    """Return ``[Intercept, year20]`` from a logistic fit that ignores speakers.

    Falls back to the empirical logit with zero slope when the outcome has a
    single class, where a logistic regression has no finite optimum.
    """
    cfg = config or StartValueConfig()
    y = np.asarray(outcome, dtype=int)
    x = np.asarray(year20, dtype=float).reshape(-1, 1)
    if x.shape[0] != y.shape[0]:
        raise ValueError(f"Predictor rows ({x.shape[0]}) and outcome count ({y.shape[0]}) must match")

    if np.unique(y).size < 2:
        share = np.clip(y.mean(), 0.01, 0.99)
        return np.array([np.log(share / (1.0 - share)), 0.0])

    model = LogisticRegression(C=cfg.C, solver=cfg.solver, max_iter=cfg.max_iter, tol=cfg.tol)
    model.fit(x, y)
    return np.array([float(model.intercept_[0]), float(model.coef_[0, 0])])
