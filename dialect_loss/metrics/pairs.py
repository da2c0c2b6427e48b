"""Fisher's exact test between two speakers' conservative/innovative counts."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd
from scipy.stats import fisher_exact

from dialect_loss.config import SpeakerPair
from dialect_loss.errors import DataError


@dataclass(frozen=True)
class PairComparison:
    variable: str
    speaker_a: str
    cons_a: int
    inn_a: int
    speaker_b: str
    cons_b: int
    inn_b: int
    odds_ratio: float
    p_value: float
    label: str


def _speaker_counts(frame: pd.DataFrame, speaker: str, variable: str) -> tuple[int, int]:
    rows = frame[frame["speaker"].astype(str) == speaker]
    if rows.empty:
        raise DataError(f"Speaker {speaker!r} has no tokens for variable {variable}.")
    return int(rows["cons"].sum()), int(rows["inn"].sum())


def compare_speakers(frame: pd.DataFrame, pair: SpeakerPair, alpha: float = 0.05) -> PairComparison:
    """Test whether two speakers differ in their share of conservative tokens."""
    if not 0 < alpha < 1:
        raise ValueError("alpha must fall within (0, 1).")
    cons_a, inn_a = _speaker_counts(frame, pair.speaker_a, pair.variable)
    cons_b, inn_b = _speaker_counts(frame, pair.speaker_b, pair.variable)

    odds_ratio, p_value = fisher_exact([[cons_a, inn_a], [cons_b, inn_b]], alternative="two-sided")
    return PairComparison(
        variable=pair.variable,
        speaker_a=pair.speaker_a,
        cons_a=cons_a,
        inn_a=inn_a,
        speaker_b=pair.speaker_b,
        cons_b=cons_b,
        inn_b=inn_b,
        odds_ratio=float(odds_ratio),
        p_value=float(p_value),
        label="significant" if p_value < alpha else "not significant",
    )
