"""Read aggregated per-speaker counts for one variable."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pandas as pd

from dialect_loss.config import ORIGIN_YEAR
from dialect_loss.errors import DataError

from .helpers import require_columns, to_count_array
from .records import RawObservationRow

REQUIRED_COLUMNS = ("speaker", "year", "cons", "inn")
FRAME_COLUMNS = ["speaker", "year", "gender", "cons", "inn", "total", "prop", "year20"]


def read_variable_frame(path: Path, origin_year: int = ORIGIN_YEAR) -> pd.DataFrame:
    """Load a variable table, drop rows without tokens and add derived columns.

    Rows keep their file order; the index is reset after filtering.
    """
    if not path.is_file():
        raise DataError(f"Table {path} does not exist.")
    try:
        raw = pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise DataError(f"{path}: cannot parse table ({exc})") from exc

    require_columns(raw, REQUIRED_COLUMNS, path)

    frame = pd.DataFrame(
        {
            "speaker": raw["speaker"].astype(str),
            "year": to_count_array(raw["year"], "year", path),
            "gender": raw["gender"].fillna("NA").astype(str) if "gender" in raw.columns else "NA",
            "cons": to_count_array(raw["cons"], "cons", path),
            "inn": to_count_array(raw["inn"], "inn", path),
        }
    )
    frame["total"] = frame["cons"] + frame["inn"]
    frame = frame[frame["total"] > 0].reset_index(drop=True)
    frame["prop"] = frame["cons"] / frame["total"]
    frame["year20"] = frame["year"] - origin_year
    return frame[FRAME_COLUMNS]


def load_variable_rows(path: Path, origin_year: int = ORIGIN_YEAR) -> List[RawObservationRow]:
    """Return the filtered table as typed rows."""
    frame = read_variable_frame(path, origin_year=origin_year)
    return [
        RawObservationRow(
            speaker=str(row.speaker),
            year=int(row.year),
            gender=str(row.gender),
            cons=int(row.cons),
            inn=int(row.inn),
            origin_year=origin_year,
        )
        for row in frame.itertuples(index=False)
    ]
