"""Per-variable pipeline and the batch runner over all variables."""

from .records import StudyResults, VariableResult
from .study import run_study
from .variable_runner import STAGES, run_variable

__all__ = [
    "STAGES",
    "StudyResults",
    "VariableResult",
    "run_study",
    "run_variable",
]
