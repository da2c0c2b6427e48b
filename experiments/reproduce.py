from __future__ import annotations

from typing import List, Optional

from dialect_loss.config import StudyConfig
from dialect_loss.pipelines import StudyResults, run_study

from .plots import (
    IntervalRow,
    PlotSaveConfig,
    emit_figure,
    plot_annotated_scatter,
    plot_interval_summary,
    plot_variable_fit,
)
from .tables import build_pair_table, build_summary_table, save_table


def _turning_point_rows(study: StudyResults) -> List[IntervalRow]:
    rows: List[IntervalRow] = []
    for name, result in study.results.items():
        tp = result.turning_point
        if tp.lower is None or tp.estimate is None or tp.upper is None:
            print(f"[plots] {name}: turning point interval incomplete; left out of the comparison.")
            continue
        rows.append(IntervalRow(variable=name, estimate=tp.estimate, lower=tp.lower, upper=tp.upper))
    return rows


def render_figures(study: StudyResults, config: StudyConfig) -> None:
    """Per-variable fits, the annotated scatter and the three cross-variable charts."""
    save_config: Optional[PlotSaveConfig] = None
    if config.save_figures:
        save_config = PlotSaveConfig(base_dir=config.figures_root)
        print(f"[plots] Saving figures under {config.figures_root}")

    def emit(fig, slug: str, subdir: Optional[str] = None) -> None:
        if fig is None:
            return
        emit_figure(fig, save_config.for_plot(slug, subdir) if save_config else None, show=config.show_figures)

    for name, result in study.results.items():
        emit(plot_variable_fit(result, config.yearmin, config.yearmax), name.lower(), subdir="fits")

    if config.scatter_variable is not None:
        key = config.scatter_variable.upper()
        if key in study:
            emit(plot_annotated_scatter(study[key], config.yearmin, config.yearmax), f"{key.lower()}_speakers")
        else:
            print(f"[plots] Annotated scatter skipped: {key} has no result.")

    origin_rows = []
    for name, result in study.results.items():
        prob = result.origin_probability
        origin_rows.append(IntervalRow(variable=name, estimate=prob.estimate, lower=prob.lower, upper=prob.upper))
    slope_rows = [
        IntervalRow(variable=name, estimate=r.slope.estimate, lower=r.slope.lower, upper=r.slope.upper)
        for name, r in study.results.items()
    ]
    emit(
        plot_interval_summary(
            origin_rows,
            title=f"Probability of the conservative variant in {config.yearmin}",
            axis_label=f"P(conservative) in {config.yearmin}",
            axis_range=(0.0, 1.0),
            reference=0.5,
        ),
        "origin_probability",
    )
    emit(
        plot_interval_summary(
            slope_rows,
            title="Change per year of birth (log-odds)",
            axis_label="Slope (year20)",
            reference=0.0,
        ),
        "slope",
    )
    emit(
        plot_interval_summary(
            _turning_point_rows(study),
            title="Turning point: year the conservative variant drops below 50%",
            axis_label="Year of birth",
            axis_range=(config.yearmin_band, config.yearmax),
        ),
        "turning_point",
    )


def write_tables(study: StudyResults, config: StudyConfig) -> None:
    summary = build_summary_table(study.results, origin_year=config.yearmin)
    save_table(summary, config.output_root, "summary")
    pairs = build_pair_table(study.results, config.speaker_pairs)
    save_table(pairs, config.output_root, "speaker_pairs")


def reproduce(config: StudyConfig, n_agq: int = 1) -> StudyResults:
    """Run every variable, then render figures and tables for the successful ones."""
    study = run_study(config, n_agq=n_agq)

    if config.save_figures or config.show_figures:
        render_figures(study, config)
    if config.save_tables:
        write_tables(study, config)

    if study.failures:
        print("[study] Failure report:")
        for failure in study.failures:
            print(f"  - {failure.describe()}")
    return study
