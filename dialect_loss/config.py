"""Static configuration for the study: paths, grid constants and run options."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Literal, Optional, Tuple

OptimizerName = Literal["lbfgsb", "powell"]

# Default directories used by the Typer CLI; callers may override these.
DEFAULT_TABLES_ROOT = Path("tables")
DEFAULT_FIGURES_ROOT = Path("figures")
DEFAULT_OUTPUT_ROOT = Path("output")

# ---------------------------------------------------------------------------
# Model and band constants.

ORIGIN_YEAR = 1920
GRID_POINTS = 10_000
Z_975 = 1.959964
PROFILE_LEVEL = 0.95
PROFILE_DEVTOL = 1e-6


@dataclass(frozen=True)
class VariableSpec:
    """A single linguistic variable and the table it is read from."""

    name: str
    path: Path
    optimizer: OptimizerName = "lbfgsb"


@dataclass(frozen=True)
class SpeakerPair:
    """Two speakers of one variable compared with Fisher's exact test."""

    variable: str
    speaker_a: str
    speaker_b: str

    @classmethod
    def parse(cls, raw: str) -> "SpeakerPair":
        """Parse ``VAR:SPEAKER_A:SPEAKER_B``."""
        parts = raw.split(":")
        if len(parts) != 3 or not all(part.strip() for part in parts):
            raise ValueError(f"Speaker pair must look like VAR:SPEAKER_A:SPEAKER_B, got {raw!r}")
        variable, speaker_a, speaker_b = (part.strip() for part in parts)
        return cls(variable=variable.upper(), speaker_a=speaker_a, speaker_b=speaker_b)


def variable_key(name: str) -> str:
    """Normalise a variable identifier to the uppercase key used everywhere."""
    return name.strip().upper()


def discover_variables(tables_root: Path) -> Tuple[VariableSpec, ...]:
    """Return one spec per ``*.csv`` file under ``tables_root``, sorted by name."""
    if not tables_root.is_dir():
        raise FileNotFoundError(f"Tables directory {tables_root} does not exist.")
    paths = sorted(tables_root.glob("*.csv"), key=lambda path: path.stem.upper())
    return tuple(VariableSpec(name=variable_key(path.stem), path=path) for path in paths)


@dataclass(frozen=True)
class StudyConfig:
    """Options for one reproduction run."""

    save_figures: bool = False
    save_tables: bool = False
    yearmin_band: int = 1800
    yearmin: int = ORIGIN_YEAR
    yearmax: int = 2000
    grid_points: int = GRID_POINTS
    tables_root: Path = DEFAULT_TABLES_ROOT
    figures_root: Path = DEFAULT_FIGURES_ROOT
    output_root: Path = DEFAULT_OUTPUT_ROOT
    alternate_optimizer: FrozenSet[str] = field(default_factory=frozenset)
    scatter_variable: Optional[str] = None
    speaker_pairs: Tuple[SpeakerPair, ...] = ()
    variables: Optional[Tuple[str, ...]] = None
    show_figures: bool = False

    def validate(self) -> None:
        if self.yearmin_band > self.yearmin:
            raise ValueError("yearmin_band cannot be later than yearmin.")
        if self.yearmin >= self.yearmax:
            raise ValueError("yearmin must be earlier than yearmax.")
        if self.grid_points < 2:
            raise ValueError("grid_points must be at least 2.")

    def variable_specs(self) -> Tuple[VariableSpec, ...]:
        """Resolve the ordered variables for this run and apply the optimizer table."""
        self.validate()
        discovered = {spec.name: spec for spec in discover_variables(self.tables_root)}

        if self.variables is None:
            names = list(discovered)
        else:
            names = [variable_key(name) for name in self.variables]
            # Explicitly requested variables keep their slot even without a file
            # so the loader can report the missing table for that variable.
            for name in names:
                if name not in discovered:
                    discovered[name] = VariableSpec(name=name, path=self.tables_root / f"{name.lower()}.csv")

        known = set(names)
        referenced = {variable_key(name) for name in self.alternate_optimizer}
        referenced.update(pair.variable for pair in self.speaker_pairs)
        if self.scatter_variable is not None:
            referenced.add(variable_key(self.scatter_variable))
        unknown = sorted(referenced - known)
        if unknown:
            raise ValueError(f"Unknown variable(s) referenced in configuration: {', '.join(unknown)}")

        alternate = {variable_key(name) for name in self.alternate_optimizer}
        specs = []
        for name in names:
            spec = discovered[name]
            optimizer: OptimizerName = "powell" if name in alternate else "lbfgsb"
            specs.append(VariableSpec(name=spec.name, path=spec.path, optimizer=optimizer))
        return tuple(specs)


__all__ = [
    "DEFAULT_FIGURES_ROOT",
    "DEFAULT_OUTPUT_ROOT",
    "DEFAULT_TABLES_ROOT",
    "GRID_POINTS",
    "ORIGIN_YEAR",
    "OptimizerName",
    "PROFILE_DEVTOL",
    "PROFILE_LEVEL",
    "SpeakerPair",
    "StudyConfig",
    "VariableSpec",
    "Z_975",
    "discover_variables",
    "variable_key",
]
