from .loader import load_variable_rows, read_variable_frame
from .records import ExpandedObservation, RawObservationRow
from .unaggregate import unaggregate, unaggregate_frame

__all__ = [
    "ExpandedObservation",
    "RawObservationRow",
    "load_variable_rows",
    "read_variable_frame",
    "unaggregate",
    "unaggregate_frame",
]
