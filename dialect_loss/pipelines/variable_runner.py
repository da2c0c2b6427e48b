"""Run the load -> fit -> band -> turning point -> coefficients chain for one variable."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional, TypeVar

import pandas as pd

from dialect_loss.config import StudyConfig, VariableSpec
from dialect_loss.datahub.loader import read_variable_frame
from dialect_loss.datahub.unaggregate import unaggregate_frame
from dialect_loss.errors import ConvergenceError, DataError, ProfileError, StageFailure, VariableFailed
from dialect_loss.metrics.band import build_confidence_band
from dialect_loss.metrics.coefficients import extract_coefficient
from dialect_loss.metrics.turning_point import locate_turning_point
from dialect_loss.models.glmm import BinomialGLMM, GLMMConfig

from .records import VariableResult

T = TypeVar("T")

STAGES = ("load", "unaggregate", "fit", "band", "turning_point", "coefficients")
STAGE_ERRORS = (DataError, ConvergenceError, ProfileError, ValueError, KeyError)


def _stage(variable: str, stage: str, step: Callable[[], T]) -> T:
    try:
        return step()
    except STAGE_ERRORS as exc:
        raise VariableFailed(StageFailure(variable=variable, stage=stage, cause=str(exc))) from exc


def _expand(table: pd.DataFrame) -> pd.DataFrame:
    expanded = unaggregate_frame(table)
    if expanded.empty:
        raise DataError("No observations to fit; every row has zero tokens.")
    return expanded


def _fit(spec: VariableSpec, expanded: pd.DataFrame, fit_config: GLMMConfig):
    model = BinomialGLMM(replace(fit_config, optimizer=spec.optimizer)).fit(expanded)
    return model.require_converged()


def run_variable(
    spec: VariableSpec,
    config: StudyConfig,
    n_agq: int = 1,
    fit_config: Optional[GLMMConfig] = None,
) -> VariableResult:
    """Compute every derived quantity for ``spec``; raises VariableFailed at the first failing stage.

    ``fit_config`` overrides the fitter settings (``n_agq`` is then ignored);
    the optimizer always comes from ``spec``.
    """
    fit_config = fit_config or GLMMConfig(n_agq=n_agq)
    name = spec.name
    table = _stage(name, "load", lambda: read_variable_frame(spec.path, origin_year=config.yearmin))
    print(f"[load] {name}: {len(table)} speaker rows, {int(table['total'].sum())} tokens")

    expanded = _stage(name, "unaggregate", lambda: _expand(table))
    model = _stage(name, "fit", lambda: _fit(spec, expanded, fit_config))
    print(
        f"[fit] {name}: Intercept={model.coef('Intercept'):.4f} year20={model.coef('year20'):.5f} "
        f"sigma={model.sigma:.4f} ({model.optimizer})"
    )

    band = _stage(
        name,
        "band",
        lambda: build_confidence_band(
            model,
            yearmin_band=config.yearmin_band,
            yearmax=config.yearmax,
            origin_year=config.yearmin,
            grid_points=config.grid_points,
        ),
    )
    turning_point = _stage(name, "turning_point", lambda: locate_turning_point(band))
    if not turning_point.found:
        print(f"[fit] {name}: no 0.5 crossing between {config.yearmin_band} and {config.yearmax}")

    intercept = _stage(name, "coefficients", lambda: extract_coefficient(model, "Intercept"))
    slope = _stage(name, "coefficients", lambda: extract_coefficient(model, "year20"))

    return VariableResult(
        spec=spec,
        table=table,
        n_expanded=len(expanded),
        model=model,
        band=band,
        turning_point=turning_point,
        intercept=intercept,
        slope=slope,
    )
