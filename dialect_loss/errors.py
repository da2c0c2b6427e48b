"""Error types raised by the per-variable pipeline."""

from __future__ import annotations

from dataclasses import dataclass


class DataError(ValueError):
    """Raised when a variable table is missing or malformed."""


class ConvergenceError(RuntimeError):
    """Raised when a fitted model is used before it converged."""


class ProfileError(RuntimeError):
    """Raised when a profile-likelihood interval cannot be computed."""


@dataclass(frozen=True)
class StageFailure:
    """Records which stage of which variable failed and why."""

    variable: str
    stage: str
    cause: str

    def describe(self) -> str:
        return f"{self.variable} [{self.stage}]: {self.cause}"


class VariableFailed(RuntimeError):
    """Raised by the per-variable pipeline at its first failing stage."""

    def __init__(self, failure: StageFailure) -> None:
        super().__init__(failure.describe())
        self.failure = failure


__all__ = ["ConvergenceError", "DataError", "ProfileError", "StageFailure", "VariableFailed"]
