"""Quantities derived from a fitted model: band, turning point, coefficients."""

from .band import ConfidenceBand, build_confidence_band
from .coefficients import CoefficientEstimate, extract_coefficient
from .pairs import PairComparison, compare_speakers
from .turning_point import TurningPointEstimate, first_crossing, locate_turning_point

__all__ = [
    "CoefficientEstimate",
    "ConfidenceBand",
    "PairComparison",
    "TurningPointEstimate",
    "build_confidence_band",
    "compare_speakers",
    "extract_coefficient",
    "first_crossing",
    "locate_turning_point",
]
