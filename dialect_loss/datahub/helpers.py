from __future__ import annotations

from pathlib import Path
from typing import Iterable

import numpy as np
import pandas as pd

from dialect_loss.errors import DataError


def require_columns(frame: pd.DataFrame, columns: Iterable[str], source: Path) -> None:
    """Raise if any of ``columns`` is absent from ``frame``."""
    missing = [column for column in columns if column not in frame.columns]
    if missing:
        raise DataError(f"{source}: missing required column(s) {', '.join(missing)}")


def to_count_array(values: pd.Series, column: str, source: Path) -> np.ndarray:
    """Convert a column to non-negative integer counts."""
    numeric = pd.to_numeric(values, errors="coerce")
    if numeric.isna().any():
        bad = values[numeric.isna()].iloc[0]
        raise DataError(f"{source}: column '{column}' contains non-numeric value {bad!r}")
    arr = numeric.to_numpy(dtype=float)
    if np.any(arr < 0):
        raise DataError(f"{source}: column '{column}' contains negative counts")
    if not np.all(np.equal(np.floor(arr), arr)):
        raise DataError(f"{source}: column '{column}' contains non-integer counts")
    return arr.astype(np.int64)
