"""Per-variable and per-study result records."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

import pandas as pd

from dialect_loss.config import VariableSpec
from dialect_loss.errors import StageFailure
from dialect_loss.metrics.band import ConfidenceBand
from dialect_loss.metrics.coefficients import CoefficientEstimate
from dialect_loss.metrics.turning_point import TurningPointEstimate
from dialect_loss.models.glmm import FittedModel


@dataclass(frozen=True)
class VariableResult:
    """Everything derived for one variable in a single pass."""

    spec: VariableSpec
    table: pd.DataFrame
    n_expanded: int
    model: FittedModel
    band: ConfidenceBand
    turning_point: TurningPointEstimate
    intercept: CoefficientEstimate
    slope: CoefficientEstimate

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def origin_probability(self) -> CoefficientEstimate:
        return self.intercept.to_probability()


@dataclass(frozen=True)
class StudyResults:
    """Successful variables keyed by name, plus the failures of the rest."""

    results: Mapping[str, VariableResult]
    failures: Tuple[StageFailure, ...]

    @classmethod
    def collect(cls, results: Mapping[str, VariableResult], failures: Tuple[StageFailure, ...]) -> "StudyResults":
        return cls(results=MappingProxyType(dict(results)), failures=tuple(failures))

    def __getitem__(self, name: str) -> VariableResult:
        return self.results[name.upper()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.upper() in self.results

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self.results)
