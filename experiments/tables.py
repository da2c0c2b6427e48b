"""Summary tables written alongside the figures."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Optional

import pandas as pd

from dialect_loss.config import SpeakerPair
from dialect_loss.errors import DataError
from dialect_loss.metrics.pairs import compare_speakers
from dialect_loss.pipelines import VariableResult

PAIR_COLUMNS = [
    "variable",
    "speaker_a",
    "cons_a",
    "inn_a",
    "speaker_b",
    "cons_b",
    "inn_b",
    "odds_ratio",
    "p_value",
    "label",
]


def _or_nan(value: Optional[float]) -> float:
    return float("nan") if value is None else float(value)


def build_summary_table(results: Mapping[str, VariableResult], origin_year: int = 1920) -> pd.DataFrame:
    """One row per variable: intercept, origin-year probability, slope, variance and turning point."""
    p = f"p{origin_year}"
    rows = []
    for name, result in results.items():
        prob = result.origin_probability
        tp = result.turning_point
        rows.append(
            {
                "variable": name,
                "intercept": result.intercept.estimate,
                "intercept_lower": result.intercept.lower,
                "intercept_upper": result.intercept.upper,
                p: prob.estimate,
                f"{p}_lower": prob.lower,
                f"{p}_upper": prob.upper,
                "slope": result.slope.estimate,
                "slope_lower": result.slope.lower,
                "slope_upper": result.slope.upper,
                "variance": result.model.variance,
                "sd": result.model.sigma,
                "tp_lower": _or_nan(tp.lower),
                "tp": _or_nan(tp.estimate),
                "tp_upper": _or_nan(tp.upper),
            }
        )
    columns = [
        "variable",
        "intercept",
        "intercept_lower",
        "intercept_upper",
        p,
        f"{p}_lower",
        f"{p}_upper",
        "slope",
        "slope_lower",
        "slope_upper",
        "variance",
        "sd",
        "tp_lower",
        "tp",
        "tp_upper",
    ]
    return pd.DataFrame(rows, columns=columns)


def build_pair_table(results: Mapping[str, VariableResult], pairs: Iterable[SpeakerPair]) -> pd.DataFrame:
    """Fisher's exact test for each configured speaker pair whose variable succeeded."""
    rows = []
    for pair in pairs:
        result = results.get(pair.variable)
        if result is None:
            print(f"[tables] Skipping pair {pair.speaker_a}/{pair.speaker_b}: {pair.variable} has no result.")
            continue
        try:
            comparison = compare_speakers(result.table, pair)
        except DataError as exc:
            print(f"[tables] Skipping pair {pair.speaker_a}/{pair.speaker_b}: {exc}")
            continue
        rows.append({column: getattr(comparison, column) for column in PAIR_COLUMNS})
    return pd.DataFrame(rows, columns=PAIR_COLUMNS)


def save_table(frame: pd.DataFrame, directory: Path, name: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.csv"
    frame.to_csv(path, index=False)
    print(f"[tables] Wrote {path}")
    return path
