"""Sequential batch over every variable of the study."""

from __future__ import annotations

from typing import Dict, List

from tqdm import tqdm

from dialect_loss.config import StudyConfig
from dialect_loss.errors import StageFailure, VariableFailed

from .records import StudyResults, VariableResult
from .variable_runner import run_variable


def run_study(config: StudyConfig, n_agq: int = 1) -> StudyResults:
    """Process variables in order; a failing variable is reported and skipped."""
    specs = config.variable_specs()
    print(f"[study] Processing {len(specs)} variables from {config.tables_root}.")

    results: Dict[str, VariableResult] = {}
    failures: List[StageFailure] = []
    for spec in tqdm(specs, desc="Variables", leave=False):
        try:
            results[spec.name] = run_variable(spec, config, n_agq=n_agq)
        except VariableFailed as exc:
            failures.append(exc.failure)
            print(f"[study] FAILED {exc.failure.describe()}")

    print(f"[study] Finished: {len(results)} succeeded, {len(failures)} failed.")
    return StudyResults.collect(results, tuple(failures))
