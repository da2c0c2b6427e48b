"""End-to-end tests for the per-variable pipeline, the batch runner and configuration."""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from conftest import declining_rows, speaker_effect_rows, write_table
from dialect_loss.config import SpeakerPair, StudyConfig, VariableSpec, discover_variables
from dialect_loss.errors import VariableFailed
from dialect_loss.models.glmm import GLMMConfig
from dialect_loss.pipelines import run_study, run_variable


# ---------------------------------------------------------------------------
# Configuration tests


def test_speaker_pair_parse() -> None:
    pair = SpeakerPair.parse("ja:IvanP:MariaS")
    assert pair == SpeakerPair(variable="JA", speaker_a="IvanP", speaker_b="MariaS")
    with pytest.raises(ValueError):
        SpeakerPair.parse("JA:only-one")
    with pytest.raises(ValueError):
        SpeakerPair.parse("JA::b")


def test_config_validation_rejects_bad_years() -> None:
    with pytest.raises(ValueError):
        StudyConfig(yearmin_band=1950, yearmin=1920).validate()
    with pytest.raises(ValueError):
        StudyConfig(yearmin=2000, yearmax=2000).validate()
    with pytest.raises(ValueError):
        StudyConfig(grid_points=1).validate()


def test_discover_variables_sorted_and_uppercase(tables_root: Path) -> None:
    specs = discover_variables(tables_root)
    assert [spec.name for spec in specs] == ["EMPTY", "JA"]
    assert all(spec.optimizer == "lbfgsb" for spec in specs)


def test_discover_variables_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        discover_variables(tmp_path / "nowhere")


def test_variable_specs_apply_optimizer_table(tables_root: Path) -> None:
    config = StudyConfig(tables_root=tables_root, alternate_optimizer=frozenset({"ja"}))
    specs = {spec.name: spec for spec in config.variable_specs()}
    assert specs["JA"].optimizer == "powell"
    assert specs["EMPTY"].optimizer == "lbfgsb"


def test_variable_specs_reject_unknown_references(tables_root: Path) -> None:
    with pytest.raises(ValueError, match="TS"):
        StudyConfig(tables_root=tables_root, scatter_variable="TS").variable_specs()
    with pytest.raises(ValueError):
        StudyConfig(tables_root=tables_root, speaker_pairs=(SpeakerPair("XX", "a", "b"),)).variable_specs()


def test_variable_specs_keep_requested_order(tables_root: Path) -> None:
    config = StudyConfig(tables_root=tables_root, variables=("ja", "gone", "empty"))
    specs = config.variable_specs()
    assert [spec.name for spec in specs] == ["JA", "GONE", "EMPTY"]
    assert specs[1].path == tables_root / "gone.csv"


# ---------------------------------------------------------------------------
# Per-variable pipeline tests


def test_run_variable_declining_scenario(tables_root: Path) -> None:
    spec = VariableSpec(name="JA", path=tables_root / "ja.csv")
    result = run_variable(spec, StudyConfig(tables_root=tables_root))

    assert result.name == "JA"
    assert result.n_expanded == int(result.table["total"].sum()) == 270
    assert result.model.converged
    assert result.slope.estimate < 0
    assert result.slope.upper < 0
    assert len(result.band) == 10_000

    tp = result.turning_point
    assert tp.complete
    assert 1920 < tp.estimate < 2000
    assert tp.lower <= tp.estimate <= tp.upper

    prob = result.origin_probability
    assert 0.5 < prob.lower < prob.estimate < prob.upper < 1.0


def test_run_variable_degenerate_table_fails_at_unaggregate(tables_root: Path) -> None:
    spec = VariableSpec(name="EMPTY", path=tables_root / "empty.csv")
    with pytest.raises(VariableFailed) as excinfo:
        run_variable(spec, StudyConfig(tables_root=tables_root))
    failure = excinfo.value.failure
    assert failure.variable == "EMPTY"
    assert failure.stage == "unaggregate"
    assert "zero tokens" in failure.cause


@pytest.mark.parametrize("optimizer", ["lbfgsb", "powell"])
def test_run_variable_unconverged_fit_fails_at_fit(tmp_path: Path, optimizer: str) -> None:
    path = write_table(tmp_path, "speakers", speaker_effect_rows())
    spec = VariableSpec(name="SPEAKERS", path=path, optimizer=optimizer)  # type: ignore[arg-type]
    with pytest.raises(VariableFailed) as excinfo:
        run_variable(spec, StudyConfig(tables_root=tmp_path), fit_config=GLMMConfig(max_iter=1))
    failure = excinfo.value.failure
    assert failure.stage == "fit"
    assert "did not converge" in failure.cause


def test_run_variable_missing_file_fails_at_load(tmp_path: Path) -> None:
    spec = VariableSpec(name="GONE", path=tmp_path / "gone.csv")
    with pytest.raises(VariableFailed) as excinfo:
        run_variable(spec, StudyConfig(tables_root=tmp_path))
    assert excinfo.value.failure.stage == "load"
    assert "GONE [load]" in str(excinfo.value)


# ---------------------------------------------------------------------------
# Batch tests


def test_run_study_keeps_going_after_a_failure(tables_root: Path) -> None:
    write_table(tables_root, "ts", declining_rows(("a", "b", "c", "d")))
    study = run_study(StudyConfig(tables_root=tables_root, grid_points=500))

    assert study.names == ("JA", "TS")
    assert "ja" in study
    assert study["ts"].model.converged
    assert [failure.describe() for failure in study.failures] == [
        "EMPTY [unaggregate]: No observations to fit; every row has zero tokens."
    ]
    with pytest.raises(TypeError):
        study.results["NEW"] = study["JA"]  # type: ignore[index]


def test_run_study_results_match_single_variable_run(tables_root: Path) -> None:
    config = StudyConfig(tables_root=tables_root, variables=("ja",))
    study = run_study(config)
    single = run_variable(VariableSpec(name="JA", path=tables_root / "ja.csv"), config)
    np.testing.assert_allclose(study["JA"].model.coefficients, single.model.coefficients)
    assert study.failures == ()
