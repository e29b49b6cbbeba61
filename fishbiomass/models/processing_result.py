from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import pandas as pd

"""Result model of one pipeline run.

Carries the final table together with the counters rendered on the SUMMARY line.
"""


@dataclass(frozen=True)
class PipelineResult:
    """Final table + run metrics.

    table columns: survey_no, species, diet, observer, abundance, biomass_kg_per_ha
    """
    table: pd.DataFrame
    surveys: int  # survey blocks found in the counts sheet
    species_slots: int  # species rows of the normalized grid
    observations: int  # long-format rows before biomass filtering
    dropped_rows: int  # rows removed for missing metadata or non-positive biomass
    output_rows: int
    flagged_cells: int  # colour-flagged cells zeroed
    malformed_cells: int  # non-numeric cells zeroed
    missing_species: list[str] = field(default_factory=list)
    missing_surveys: list[int | str] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None
    elapsed_seconds: float = 0.0
    output_path: Path | None = None

    @property
    def missing_references(self) -> int:
        return len(self.missing_species) + len(self.missing_surveys)
