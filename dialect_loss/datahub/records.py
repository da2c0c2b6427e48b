"""Typed rows shared by the loader, the unaggregator and the model fitter."""

from __future__ import annotations

from dataclasses import dataclass, field

from dialect_loss.config import ORIGIN_YEAR


@dataclass(frozen=True)
class RawObservationRow:
    """Aggregated counts for one speaker of one variable."""

    speaker: str
    year: int
    gender: str
    cons: int
    inn: int
    origin_year: int = ORIGIN_YEAR
    total: int = field(init=False)
    prop: float = field(init=False)
    year20: int = field(init=False)

    def __post_init__(self) -> None:
        if self.cons < 0 or self.inn < 0:
            raise ValueError(f"Counts must be non-negative for speaker {self.speaker!r}.")
        total = self.cons + self.inn
        object.__setattr__(self, "total", total)
        object.__setattr__(self, "prop", self.cons / total if total else float("nan"))
        object.__setattr__(self, "year20", self.year - self.origin_year)


@dataclass(frozen=True)
class ExpandedObservation:
    """One token realisation: ``cons`` is 1 for the conservative variant."""

    speaker: str
    year: int
    year20: int
    gender: str
    cons: int
