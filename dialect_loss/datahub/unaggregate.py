"""Expand aggregated counts into one binary outcome per token."""

from __future__ import annotations

from typing import Iterable, List

import numpy as np
import pandas as pd

from .records import ExpandedObservation, RawObservationRow

EXPANDED_COLUMNS = ["speaker", "year", "year20", "gender", "cons"]


def unaggregate(rows: Iterable[RawObservationRow]) -> List[ExpandedObservation]:
    """Emit ``cons`` successes and ``inn`` failures for every row."""
    expanded: List[ExpandedObservation] = []
    for row in rows:
        for outcome, count in ((1, row.cons), (0, row.inn)):
            expanded.extend(
                ExpandedObservation(
                    speaker=row.speaker,
                    year=row.year,
                    year20=row.year20,
                    gender=row.gender,
                    cons=outcome,
                )
                for _ in range(count)
            )
    return expanded


def unaggregate_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Vectorised counterpart of :func:`unaggregate` for loaded tables."""
    if frame.empty:
        return pd.DataFrame({column: [] for column in EXPANDED_COLUMNS})

    cons = frame["cons"].to_numpy(dtype=np.int64)
    inn = frame["inn"].to_numpy(dtype=np.int64)
    positives = frame.loc[frame.index.repeat(cons), EXPANDED_COLUMNS[:-1]].assign(cons=1)
    negatives = frame.loc[frame.index.repeat(inn), EXPANDED_COLUMNS[:-1]].assign(cons=0)
    return pd.concat([positives, negatives]).sort_index(kind="stable").reset_index(drop=True)
