"""Shared fixtures: small variable tables written to a temporary directory."""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

YEARS = list(range(1920, 2001, 10))


def declining_rows(speakers: tuple[str, ...] = ("s1", "s2", "s3")) -> list[dict[str, object]]:
    """Conservative share falls from 9/10 in 1920 to 1/10 in 2000 for every speaker."""
    rows: list[dict[str, object]] = []
    for idx, speaker in enumerate(speakers):
        gender = "f" if idx % 2 == 0 else "m"
        for step, year in enumerate(YEARS):
            rows.append({"speaker": speaker, "year": year, "gender": gender, "cons": 9 - step, "inn": 1 + step})
    return rows


def speaker_effect_rows() -> list[dict[str, object]]:
    """Eight speakers, two per birth year, with opposite baselines on a shared decline."""
    rows: list[dict[str, object]] = []
    for idx, offset in enumerate([1.0, -1.0, -0.9, 1.1, 0.8, -1.2, -1.0, 0.9]):
        year = 1930 + (idx // 2) * 20
        share = 1.0 / (1.0 + np.exp(-(2.0 - 0.05 * (year - 1920) + offset)))
        cons = int(round(60 * share))
        rows.append({"speaker": f"s{idx}", "year": year, "gender": "f", "cons": cons, "inn": 60 - cons})
    return rows


def write_table(directory: Path, name: str, rows: list[dict[str, object]]) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.csv"
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


@pytest.fixture
def declining_frame() -> pd.DataFrame:
    from dialect_loss.datahub.loader import FRAME_COLUMNS

    frame = pd.DataFrame(declining_rows())
    frame["total"] = frame["cons"] + frame["inn"]
    frame["prop"] = frame["cons"] / frame["total"]
    frame["year20"] = frame["year"] - 1920
    return frame[FRAME_COLUMNS]


@pytest.fixture
def tables_root(tmp_path: Path) -> Path:
    root = tmp_path / "tables"
    write_table(root, "ja", declining_rows())
    write_table(
        root,
        "empty",
        [{"speaker": "s1", "year": 1930, "gender": "f", "cons": 0, "inn": 0},
         {"speaker": "s2", "year": 1950, "gender": "m", "cons": 0, "inn": 0}],
    )
    return root
