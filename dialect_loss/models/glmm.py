"""Binomial mixed-effects logistic regression with a per-speaker random intercept.

The model is ``cons ~ year20 + (1 | speaker)`` with a logit link. The random
intercept ``b_j = sigma * u_j`` (``u_j ~ N(0, 1)``) is integrated out per speaker
with adaptive Gauss-Hermite quadrature around the conditional mode; one node is
the Laplace approximation. The deviance is minimised over
``(Intercept, year20, sigma)`` with ``sigma >= 0``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from numpy.polynomial.hermite_e import hermegauss
from scipy.optimize import OptimizeResult, minimize
from scipy.special import expit, logsumexp

from dialect_loss.config import OptimizerName
from dialect_loss.datahub.records import ExpandedObservation
from dialect_loss.errors import ConvergenceError, DataError

from .start_values import pooled_logistic_start

COEF_NAMES: Tuple[str, str] = ("Intercept", "year20")
ObservationsLike = Union[Sequence[ExpandedObservation], pd.DataFrame]

_LOG_SQRT_2PI = 0.5 * np.log(2.0 * np.pi)
_SCIPY_METHODS = {"lbfgsb": "L-BFGS-B", "powell": "Powell"}
# Random-intercept SD below which the fit is treated as singular.
SINGULAR_TOL = 1e-4


@dataclass
class GLMMConfig:
    """Optimizer and quadrature settings for :class:`BinomialGLMM`."""

    optimizer: OptimizerName = "lbfgsb"
    # 1 = Laplace approximation; odd values > 1 use adaptive Gauss-Hermite quadrature.
    n_agq: int = 1
    max_iter: int = 5000
    tol: float = 1e-10
    inner_max_iter: int = 100
    inner_tol: float = 1e-10

    def validate(self) -> None:
        if self.optimizer not in _SCIPY_METHODS:
            raise ValueError(f"Unknown optimizer '{self.optimizer}'. Available: {list(_SCIPY_METHODS)}")
        if self.n_agq < 1 or (self.n_agq > 1 and self.n_agq % 2 == 0):
            raise ValueError("n_agq must be 1 or an odd number of quadrature nodes.")
        if self.max_iter < 1 or self.inner_max_iter < 1:
            raise ValueError("Iteration limits must be positive.")


@dataclass(frozen=True)
class GLMMDesign:
    """Arrays describing the expanded observations of one variable."""

    year20: np.ndarray
    outcome: np.ndarray
    groups: np.ndarray
    group_labels: Tuple[str, ...]

    @property
    def n_obs(self) -> int:
        return int(self.outcome.shape[0])

    @property
    def n_groups(self) -> int:
        return len(self.group_labels)

    @classmethod
    def from_observations(cls, observations: ObservationsLike) -> "GLMMDesign":
        if isinstance(observations, pd.DataFrame):
            speakers = observations["speaker"].astype(str).to_numpy()
            year20 = observations["year20"].to_numpy(dtype=float)
            outcome = observations["cons"].to_numpy(dtype=float)
        else:
            obs_list = list(observations)
            speakers = np.asarray([obs.speaker for obs in obs_list], dtype=str)
            year20 = np.asarray([obs.year20 for obs in obs_list], dtype=float)
            outcome = np.asarray([obs.cons for obs in obs_list], dtype=float)

        if outcome.size == 0:
            raise DataError("No observations to fit; every row has zero tokens.")
        if not np.all((outcome == 0) | (outcome == 1)):
            raise DataError("Outcomes must be binary (0 or 1).")

        labels, groups = np.unique(speakers, return_inverse=True)
        return cls(
            year20=year20,
            outcome=outcome,
            groups=groups.astype(np.int64),
            group_labels=tuple(str(label) for label in labels),
        )


class LaplaceDeviance:
    """Deviance of the random-intercept model for fixed ``(beta, sigma)``."""

    def __init__(self, design: GLMMDesign, n_agq: int = 1, inner_max_iter: int = 100, inner_tol: float = 1e-10) -> None:
        self.design = design
        self.inner_max_iter = inner_max_iter
        self.inner_tol = inner_tol
        self.nodes, weights = hermegauss(n_agq)
        self.log_weights = np.log(weights)
        self._modes = np.zeros(design.n_groups)

    def __call__(self, params: np.ndarray) -> float:
        beta = np.asarray(params[:2], dtype=float)
        sigma = float(params[2])
        return self.deviance(beta, sigma)

    def deviance(self, beta: np.ndarray, sigma: float) -> float:
        d = self.design
        eta_fixed = beta[0] + beta[1] * d.year20
        modes, curvature = self.conditional_modes(eta_fixed, sigma)
        scale = 1.0 / np.sqrt(curvature)

        log_terms = np.empty((d.n_groups, self.nodes.size))
        for k, node in enumerate(self.nodes):
            u_k = modes + scale * node
            eta = eta_fixed + sigma * u_k[d.groups]
            loglik = np.bincount(d.groups, weights=d.outcome * eta - np.logaddexp(0.0, eta), minlength=d.n_groups)
            log_terms[:, k] = self.log_weights[k] + loglik - 0.5 * u_k**2 + 0.5 * node**2

        log_marginal = np.log(scale) + logsumexp(log_terms, axis=1) - _LOG_SQRT_2PI
        value = -2.0 * float(np.sum(log_marginal))
        return value if np.isfinite(value) else np.inf

    def conditional_modes(self, eta_fixed: np.ndarray, sigma: float) -> Tuple[np.ndarray, np.ndarray]:
        """Newton iterations for the per-speaker modes of the standardised random effect."""
        d = self.design
        u = self._modes.copy()
        curvature = np.ones(d.n_groups)
        for _ in range(self.inner_max_iter):
            mu = expit(eta_fixed + sigma * u[d.groups])
            gradient = sigma * np.bincount(d.groups, weights=d.outcome - mu, minlength=d.n_groups) - u
            curvature = sigma**2 * np.bincount(d.groups, weights=mu * (1.0 - mu), minlength=d.n_groups) + 1.0
            step = np.clip(gradient / curvature, -2.0, 2.0)
            u = u + step
            if np.max(np.abs(step)) < self.inner_tol:
                break
        mu = expit(eta_fixed + sigma * u[d.groups])
        curvature = sigma**2 * np.bincount(d.groups, weights=mu * (1.0 - mu), minlength=d.n_groups) + 1.0
        self._modes = u
        return u, curvature


def minimize_deviance(
    objective,
    x0: np.ndarray,
    bounds: Sequence[Tuple[Optional[float], Optional[float]]],
    config: GLMMConfig,
) -> OptimizeResult:
    """Run the configured scipy optimizer on ``objective``."""
    method = _SCIPY_METHODS[config.optimizer]
    if method == "Powell":
        options = {"maxiter": config.max_iter, "xtol": 1e-8, "ftol": config.tol}
    else:
        options = {"maxiter": config.max_iter, "ftol": config.tol, "gtol": 1e-6}
    return minimize(objective, x0, method=method, bounds=list(bounds), options=options)


def numerical_hessian(func, x: np.ndarray, steps: np.ndarray) -> np.ndarray:
    """Central-difference Hessian of a scalar function."""
    n = x.size
    hessian = np.zeros((n, n))
    f0 = func(x)
    for i in range(n):
        ei = np.zeros(n)
        ei[i] = steps[i]
        hessian[i, i] = (func(x + ei) - 2.0 * f0 + func(x - ei)) / steps[i] ** 2
        for j in range(i + 1, n):
            ej = np.zeros(n)
            ej[j] = steps[j]
            value = (func(x + ei + ej) - func(x + ei - ej) - func(x - ei + ej) + func(x - ei - ej)) / (
                4.0 * steps[i] * steps[j]
            )
            hessian[i, j] = hessian[j, i] = value
    return hessian


@dataclass(frozen=True)
class FittedModel:
    """Result of fitting :class:`BinomialGLMM` to one variable."""

    coef_names: Tuple[str, ...]
    coefficients: np.ndarray
    vcov: np.ndarray
    sigma: float
    deviance: float
    converged: bool
    message: str
    design: GLMMDesign
    config: GLMMConfig

    @property
    def variance(self) -> float:
        """Variance of the per-speaker random intercept."""
        return self.sigma**2

    @property
    def std_errors(self) -> np.ndarray:
        return np.sqrt(np.diag(self.vcov))

    @property
    def n_obs(self) -> int:
        return self.design.n_obs

    @property
    def n_groups(self) -> int:
        return self.design.n_groups

    @property
    def optimizer(self) -> OptimizerName:
        return self.config.optimizer

    @property
    def params(self) -> np.ndarray:
        """Optimizer parameter vector ``[Intercept, year20, sigma]``."""
        return np.append(self.coefficients, self.sigma)

    def coef_index(self, name: str) -> int:
        try:
            return self.coef_names.index(name)
        except ValueError as exc:
            raise KeyError(f"Unknown coefficient '{name}'. Available: {list(self.coef_names)}") from exc

    def coef(self, name: str) -> float:
        return float(self.coefficients[self.coef_index(name)])

    def require_converged(self) -> "FittedModel":
        if not self.converged:
            raise ConvergenceError(f"Model did not converge: {self.message}")
        return self


class BinomialGLMM:
    """Maximum-likelihood fitter for ``cons ~ year20 + (1 | speaker)``."""

    def __init__(self, config: Optional[GLMMConfig] = None) -> None:
        self.config = config or GLMMConfig()

    def fit(self, observations: ObservationsLike) -> FittedModel:
        cfg = self.config
        cfg.validate()
        design = GLMMDesign.from_observations(observations)
        objective = LaplaceDeviance(design, cfg.n_agq, cfg.inner_max_iter, cfg.inner_tol)

        beta0 = pooled_logistic_start(design.year20, design.outcome)
        x0 = np.append(beta0, 1.0)
        bounds = [(None, None), (None, None), (0.0, None)]
        opt = minimize_deviance(objective, x0, bounds, cfg)

        beta = np.asarray(opt.x[:2], dtype=float)
        sigma = max(float(opt.x[2]), 0.0)
        deviance = float(objective(np.append(beta, sigma)))
        message = str(opt.message)
        converged = bool(np.isfinite(deviance)) and (bool(opt.success) or self._gradient_ok(objective, np.append(beta, sigma)))

        vcov = self._fixed_effect_vcov(objective, beta, sigma, design)
        if not np.all(np.isfinite(vcov)) or np.any(np.linalg.eigvalsh(vcov) <= 0):
            converged = False
            message = f"{message}; fixed-effect covariance is not positive definite"

        return FittedModel(
            coef_names=COEF_NAMES,
            coefficients=beta,
            vcov=vcov,
            sigma=sigma,
            deviance=deviance,
            converged=converged,
            message=message,
            design=design,
            config=cfg,
        )

    @staticmethod
    def _gradient_ok(objective: LaplaceDeviance, params: np.ndarray, tol: float = 2e-3) -> bool:
        """Accept an optimum the optimizer flagged if the projected gradient is negligible."""
        gradient = np.empty(params.size)
        for i in range(params.size):
            step = np.zeros(params.size)
            step[i] = 1e-6 * max(1.0, abs(params[i]))
            if i == params.size - 1 and params[i] - step[i] < 0:
                gradient[i] = (objective(params + step) - objective(params)) / step[i]
                # At the sigma = 0 bound only an increasing deviance counts as stationary.
                gradient[i] = min(gradient[i], 0.0)
            else:
                gradient[i] = (objective(params + step) - objective(params - step)) / (2.0 * step[i])
        return bool(np.max(np.abs(gradient)) < tol)

    @staticmethod
    def _fixed_effect_vcov(objective: LaplaceDeviance, beta: np.ndarray, sigma: float, design: GLMMDesign) -> np.ndarray:
        """Fixed-effect block of the inverse observed information.

        The information covers ``(Intercept, year20, sigma)`` so the uncertainty
        in ``sigma`` widens the fixed-effect errors. A singular fit (``sigma`` on
        the zero bound) or a joint Hessian that is not positive definite falls
        back to the information with ``sigma`` held fixed.
        """
        # Deviance is -2 log L, so the observed information is half its Hessian.
        spread = max(1.0, float(np.sqrt(np.mean(design.year20**2))))
        steps = np.array([1e-3, 1e-3 / spread, 1e-3 * max(1.0, sigma)])
        if sigma > SINGULAR_TOL:
            joint = numerical_hessian(objective, np.append(beta, sigma), steps)
            if np.all(np.isfinite(joint)) and np.all(np.linalg.eigvalsh(joint) > 0):
                return np.linalg.inv(joint / 2.0)[:2, :2]

        hessian = numerical_hessian(lambda b: objective.deviance(b, sigma), beta, steps[:2])
        try:
            return np.linalg.inv(hessian / 2.0)
        except np.linalg.LinAlgError:
            return np.full((2, 2), np.nan)


def fit_glmm(observations: ObservationsLike, optimizer: OptimizerName = "lbfgsb", n_agq: int = 1) -> FittedModel:
    """Fit the random-intercept model in one call."""
    return BinomialGLMM(GLMMConfig(optimizer=optimizer, n_agq=n_agq)).fit(observations)
