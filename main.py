from pathlib import Path
from typing import List, Optional

import pandas as pd
import typer

from dialect_loss.config import (
    DEFAULT_FIGURES_ROOT,
    DEFAULT_OUTPUT_ROOT,
    DEFAULT_TABLES_ROOT,
    SpeakerPair,
    StudyConfig,
)
from experiments.reproduce import reproduce
from experiments.tables import build_summary_table

app = typer.Typer()


def _build_config(
    *,
    save_figures: bool,
    save_tables: bool,
    show: bool,
    yearmin_band: int,
    yearmin: int,
    yearmax: int,
    tables_root: Path,
    figures_root: Path,
    output_root: Path,
    alternate_optimizer: List[str],
    scatter_variable: Optional[str],
    pair: List[str],
    variable: List[str],
) -> StudyConfig:
    try:
        config = StudyConfig(
            save_figures=save_figures,
            save_tables=save_tables,
            show_figures=show,
            yearmin_band=yearmin_band,
            yearmin=yearmin,
            yearmax=yearmax,
            tables_root=tables_root,
            figures_root=figures_root,
            output_root=output_root,
            alternate_optimizer=frozenset(name.upper() for name in alternate_optimizer),
            scatter_variable=scatter_variable.upper() if scatter_variable else None,
            speaker_pairs=tuple(SpeakerPair.parse(raw) for raw in pair),
            variables=tuple(variable) if variable else None,
        )
        config.variable_specs()
    except (ValueError, FileNotFoundError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    return config


@app.command("reproduce")
def reproduce_study(
    save_figures: bool = typer.Option(False, "--save-figures", help="Write PNG figures under --figures-root."),
    save_tables: bool = typer.Option(False, "--save-tables", help="Write CSV tables under --output-root."),
    show: bool = typer.Option(False, "--show", help="Open figures in the browser instead of saving them."),
    yearmin_band: int = typer.Option(1800, "--yearmin-band", help="First year of the turning-point grid."),
    yearmin: int = typer.Option(1920, "--yearmin", help="First plotted year; also the centring origin."),
    yearmax: int = typer.Option(2000, "--yearmax", help="Last year of the grid and the plots."),
    tables_root: Path = typer.Option(
        DEFAULT_TABLES_ROOT,
        "--tables-root",
        file_okay=False,
        dir_okay=True,
        help="Directory with one <variable>.csv per variable.",
    ),
    figures_root: Path = typer.Option(DEFAULT_FIGURES_ROOT, "--figures-root", help="Where figures are saved."),
    output_root: Path = typer.Option(DEFAULT_OUTPUT_ROOT, "--output-root", help="Where CSV tables are saved."),
    alternate_optimizer: List[str] = typer.Option(
        [],
        "--alternate-optimizer",
        help="Variable fitted with the derivative-free bounded optimizer (repeatable).",
    ),
    scatter_variable: Optional[str] = typer.Option(
        None,
        "--scatter-variable",
        help="Variable drawn as a speaker-labelled scatter.",
    ),
    pair: List[str] = typer.Option(
        [],
        "--pair",
        help="Speaker pair for Fisher's exact test as VAR:SPEAKER_A:SPEAKER_B (repeatable).",
    ),
    variable: List[str] = typer.Option(
        [],
        "--variable",
        help="Restrict to these variables, in this order (repeatable).",
    ),
    n_agq: int = typer.Option(1, "--n-agq", help="Quadrature nodes per speaker (1 = Laplace)."),
) -> None:
    """
    Fit every variable and write the figures and tables of the paper.
    """
    config = _build_config(
        save_figures=save_figures,
        save_tables=save_tables,
        show=show,
        yearmin_band=yearmin_band,
        yearmin=yearmin,
        yearmax=yearmax,
        tables_root=tables_root,
        figures_root=figures_root,
        output_root=output_root,
        alternate_optimizer=alternate_optimizer,
        scatter_variable=scatter_variable,
        pair=pair,
        variable=variable,
    )
    study = reproduce(config, n_agq=n_agq)
    if study.failures:
        raise typer.Exit(code=1)


@app.command()
def summary(
    tables_root: Path = typer.Option(DEFAULT_TABLES_ROOT, "--tables-root", help="Directory with the variable tables."),
    alternate_optimizer: List[str] = typer.Option([], "--alternate-optimizer", help="See the reproduce command."),
    variable: List[str] = typer.Option([], "--variable", help="Restrict to these variables (repeatable)."),
) -> None:
    """Print the per-variable summary table without writing files."""
    config = _build_config(
        save_figures=False,
        save_tables=False,
        show=False,
        yearmin_band=1800,
        yearmin=1920,
        yearmax=2000,
        tables_root=tables_root,
        figures_root=DEFAULT_FIGURES_ROOT,
        output_root=DEFAULT_OUTPUT_ROOT,
        alternate_optimizer=alternate_optimizer,
        scatter_variable=None,
        pair=[],
        variable=variable,
    )
    study = reproduce(config)
    with pd.option_context("display.max_columns", None, "display.width", 200):
        print(build_summary_table(study.results, origin_year=config.yearmin))


if __name__ == "__main__":
    app()
