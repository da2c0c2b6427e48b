"""Unit tests for the confidence band, turning point, coefficients and pair test."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dialect_loss.config import SpeakerPair
from dialect_loss.errors import ConvergenceError, DataError
from dialect_loss.metrics.band import build_confidence_band
from dialect_loss.metrics.coefficients import CoefficientEstimate, extract_coefficient
from dialect_loss.metrics.pairs import compare_speakers
from dialect_loss.metrics.turning_point import TurningPointEstimate, first_crossing, locate_turning_point
from dialect_loss.models.glmm import COEF_NAMES, FittedModel, GLMMConfig, GLMMDesign, fit_glmm
from dialect_loss.datahub.unaggregate import unaggregate_frame


def _model(coefficients: list[float], vcov: list[list[float]], converged: bool = True) -> FittedModel:
    """FittedModel with hand-picked coefficients; the design is a placeholder."""
    design = GLMMDesign.from_observations(pd.DataFrame({"speaker": ["a", "b"], "year20": [0, 10], "cons": [1, 0]}))
    return FittedModel(
        coef_names=COEF_NAMES,
        coefficients=np.asarray(coefficients, dtype=float),
        vcov=np.asarray(vcov, dtype=float),
        sigma=0.5,
        deviance=10.0,
        converged=converged,
        message="ok",
        design=design,
        config=GLMMConfig(),
    )


DECLINING = _model([2.0, -0.05], [[0.04, -0.0006], [-0.0006, 0.00002]])


# ---------------------------------------------------------------------------
# Confidence band tests


def test_band_grid_is_ascending_and_spans_range() -> None:
    band = build_confidence_band(DECLINING, yearmin_band=1800, yearmax=2000)
    assert len(band) == 10_000
    assert band.year[0] == 1800
    assert band.year[-1] == 2000
    assert np.all(np.diff(band.year) > 0)
    np.testing.assert_allclose(band.year20, band.year - 1920)


def test_band_bounds_are_ordered_on_both_scales() -> None:
    band = build_confidence_band(DECLINING)
    assert np.all(band.lower_ <= band.pred_)
    assert np.all(band.pred_ <= band.upper_)
    assert np.all(band.lower <= band.pred)
    assert np.all(band.pred <= band.upper)


def test_band_probability_is_logistic_of_link() -> None:
    band = build_confidence_band(DECLINING)
    np.testing.assert_allclose(band.pred, 1.0 / (1.0 + np.exp(-band.pred_)), rtol=1e-12)
    np.testing.assert_allclose(band.lower, 1.0 / (1.0 + np.exp(-band.lower_)), rtol=1e-12)
    np.testing.assert_allclose(band.upper, 1.0 / (1.0 + np.exp(-band.upper_)), rtol=1e-12)


def test_band_uses_wald_half_width() -> None:
    band = build_confidence_band(DECLINING, yearmin_band=1920, yearmax=1960, grid_points=2)
    # At the origin year the design row is [1, 0], so sd is the intercept's standard error.
    assert band.pred_[0] == pytest.approx(2.0)
    assert band.upper_[0] - band.pred_[0] == pytest.approx(1.959964 * 0.2)
    assert band.pred_[1] == pytest.approx(0.0, abs=1e-9)


def test_band_rejects_unconverged_model() -> None:
    with pytest.raises(ConvergenceError):
        build_confidence_band(replace(DECLINING, converged=False))


def test_band_rejects_bad_grid() -> None:
    with pytest.raises(ValueError):
        build_confidence_band(DECLINING, grid_points=1)
    with pytest.raises(ValueError):
        build_confidence_band(DECLINING, yearmin_band=2000, yearmax=1800)


def test_band_window_and_frame() -> None:
    band = build_confidence_band(DECLINING)
    window = band.window(1920, 2000)
    assert window.year.min() >= 1920
    assert window.year.max() <= 2000
    frame = window.to_frame()
    assert list(frame.columns) == ["year", "year20", "pred_", "lower_", "upper_", "pred", "lower", "upper"]
    assert len(frame) == len(window)


# ---------------------------------------------------------------------------
# Turning point tests


def test_first_crossing_returns_first_negative_year() -> None:
    years = np.array([1900.0, 1910.0, 1920.0, 1930.0])
    assert first_crossing(years, np.array([1.0, 0.2, -0.1, -0.5])) == 1920.0
    # A curve that starts below zero crosses at the first grid year.
    assert first_crossing(years, np.array([-1.0, -2.0, -3.0, -4.0])) == 1900.0
    # Zero itself is not below 0.5.
    assert first_crossing(years, np.array([1.0, 0.0, 0.0, -1.0])) == 1930.0


def test_first_crossing_without_crossing_is_none() -> None:
    assert first_crossing(np.array([1900.0, 1950.0]), np.array([0.3, 0.1])) is None


def test_first_crossing_validates_inputs() -> None:
    with pytest.raises(ValueError):
        first_crossing(np.array([1.0, 2.0]), np.array([1.0]))
    with pytest.raises(ValueError):
        first_crossing(np.array([1.0, 2.0]), np.array([1.0, float("nan")]))


def test_turning_point_is_ordered() -> None:
    tp = locate_turning_point(build_confidence_band(DECLINING))
    assert tp.complete
    assert tp.lower <= tp.estimate <= tp.upper
    # pred_ = 2 - 0.05 * year20 is zero at 1960.
    assert tp.estimate == pytest.approx(1960.0, abs=0.05)


def test_turning_point_absent_for_flat_conservative_curve() -> None:
    stable = _model([3.0, -0.001], [[0.01, 0.0], [0.0, 1e-8]])
    tp = locate_turning_point(build_confidence_band(stable))
    assert tp == TurningPointEstimate(lower=None, estimate=None, upper=None)
    assert tp.found is False
    assert tp.complete is False


def test_turning_point_partial_when_bound_stays_above() -> None:
    wide = _model([2.0, -0.05], [[4.0, 0.0], [0.0, 0.0004]])
    tp = locate_turning_point(build_confidence_band(wide))
    assert tp.found
    assert tp.upper is None
    assert tp.complete is False


# ---------------------------------------------------------------------------
# Coefficient tests


def test_coefficient_to_probability() -> None:
    estimate = CoefficientEstimate(name="Intercept", estimate=0.0, lower=-1.0, upper=1.0)
    prob = estimate.to_probability()
    assert prob.estimate == pytest.approx(0.5)
    assert prob.lower == pytest.approx(1.0 / (1.0 + np.e))
    assert prob.upper == pytest.approx(1.0 / (1.0 + np.exp(-1.0)))


def test_extract_coefficient_for_declining_variable(declining_frame: pd.DataFrame) -> None:
    model = fit_glmm(unaggregate_frame(declining_frame))
    slope = extract_coefficient(model, "year20")
    assert slope.name == "year20"
    assert slope.estimate == pytest.approx(model.coef("year20"))
    assert slope.lower < slope.estimate < slope.upper < 0


def test_extract_coefficient_unknown_name() -> None:
    with pytest.raises(KeyError):
        extract_coefficient(DECLINING, "speaker")


# ---------------------------------------------------------------------------
# Speaker pair tests


def _pair_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "speaker": ["old", "young", "mid", "mid"],
            "year": [1925, 1985, 1950, 1950],
            "cons": [10, 0, 3, 2],
            "inn": [0, 10, 2, 3],
        }
    )


def test_fisher_pair_with_opposite_speakers_is_significant() -> None:
    result = compare_speakers(_pair_frame(), SpeakerPair("JA", "old", "young"))
    assert result.p_value < 0.001
    assert result.label == "significant"
    assert (result.cons_a, result.inn_a, result.cons_b, result.inn_b) == (10, 0, 0, 10)


def test_fisher_pair_sums_rows_per_speaker() -> None:
    result = compare_speakers(_pair_frame(), SpeakerPair("JA", "mid", "old"))
    assert (result.cons_a, result.inn_a) == (5, 5)


def test_fisher_pair_similar_speakers_not_significant() -> None:
    frame = pd.DataFrame({"speaker": ["a", "b"], "year": [1950, 1951], "cons": [5, 6], "inn": [5, 4]})
    result = compare_speakers(frame, SpeakerPair("JA", "a", "b"))
    assert result.label == "not significant"


def test_fisher_pair_unknown_speaker() -> None:
    with pytest.raises(DataError):
        compare_speakers(_pair_frame(), SpeakerPair("JA", "old", "nobody"))
