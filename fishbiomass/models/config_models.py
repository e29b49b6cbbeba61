from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

"""Config dataclasses for the fish survey biomass pipeline.

The loader in fishbiomass/config/loader.py builds these from YAML. Every object
is frozen: the pipeline receives one PipelineConfig at its entry point and no
step mutates it.
"""

DEFAULT_SIZE_BANDS: tuple[float, ...] = (1.25, 3.75, 6.25, 8.75, 12.5, 17.5, 25.0, 35.0, 45.0, 75.0)

DEFAULT_COUNTS_SHEET = "INPUT Sheet"
DEFAULT_METADATA_SHEET = "Data"


@dataclass(frozen=True)
class InputSource:
    """One workbook + sheet. sheet=None means the first sheet."""
    path: Path
    sheet: str | None = None


@dataclass(frozen=True)
class GridLayout:
    """Positional layout of the raw counts sheet (1-based rows/columns)."""
    header_rows: int = 2  # survey-number row + size-class row
    survey_header_row: int = 1  # row carrying the survey number of each block
    label_column: int = 1  # species label column
    first_data_column: int = 2  # columns before this are row labels
    label_separator: str = "_"  # leading character stripped from species labels


@dataclass(frozen=True)
class SurveyColumns:
    """Column names in the survey metadata sheet.

    survey_no=None binds the survey number to the first column.
    """
    survey_no: str | None = None
    transect: str = "Transect"
    observer: str = "Observer"
    area: str = "Area"
    date: str = "Date"


@dataclass(frozen=True)
class SpeciesColumns:
    """Column names in the species reference sheet.

    species=None binds the species name to the first column.
    """
    species: str | None = None
    diet: str = "Diet"
    a: str = "a"
    b: str = "b"


@dataclass(frozen=True)
class PipelineConfig:
    """Root configuration object for one batch run."""
    survey_counts: InputSource
    survey_metadata: InputSource
    species_reference: InputSource
    output_path: Path
    layout: GridLayout = field(default_factory=GridLayout)
    size_bands: tuple[float, ...] = DEFAULT_SIZE_BANDS
    survey_columns: SurveyColumns = field(default_factory=SurveyColumns)
    species_columns: SpeciesColumns = field(default_factory=SpeciesColumns)
    require_survey_date: bool = True  # surveys without a recorded date are excluded
    logs_directory: Path = Path("./logs")
