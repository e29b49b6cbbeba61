from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

import pandas as pd

from ..logging.error_log import DataQualityLog
from ..models.config_models import DEFAULT_SIZE_BANDS
from ..models.error_record import MISSING_SURVEY_NUMBER, DataQualityRecord
from ..models.observation import LongObservation
from .errors import SchemaMismatch
from .grid import NormalizedGrid

"""Schema reshaper: wide survey blocks -> long observations.

The normalized grid is a repetition of fixed-width survey blocks. With the
default ten size bands a block is 12 columns wide:

    offset 0..9   abundance per size band (1.25 ... 75 cm)
    offset 10     large_abundance (fish above the largest band)
    offset 11     large_size (representative size of those fish)

SurveyBlockSchema describes that layout explicitly and is validated against the
grid's column count before anything is unpivoted.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "BlockField",
    "SurveyBlockSchema",
    "LongObservations",
    "resolve_survey_numbers",
    "survey_key",
    "LARGE_ABUNDANCE",
    "LARGE_SIZE",
]

LARGE_ABUNDANCE = "large_abundance"
LARGE_SIZE = "large_size"

OBSERVATION_COLUMNS = ["survey_no", "species_slot", "size_band", "abundance", LARGE_ABUNDANCE, LARGE_SIZE]


@dataclass(frozen=True)
class BlockField:
    offset: int  # 0-based position inside the block
    name: str
    size_band: float | None = None  # set for numeric band columns only


@dataclass(frozen=True)
class SurveyBlockSchema:
    """Ordered (offset, field) descriptor of one survey block."""
    fields: tuple[BlockField, ...]

    def __post_init__(self) -> None:
        offsets = [f.offset for f in self.fields]
        if offsets != list(range(len(self.fields))):
            raise ValueError(f"block offsets must be contiguous from 0, got {offsets}")
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate block field names: {names}")
        for required in (LARGE_ABUNDANCE, LARGE_SIZE):
            if names.count(required) != 1:
                raise ValueError(f"block schema needs exactly one '{required}' field")
        if not self.band_fields:
            raise ValueError("block schema needs at least one size band field")

    @classmethod
    def from_size_bands(cls, size_bands: Sequence[float] = DEFAULT_SIZE_BANDS) -> SurveyBlockSchema:
        fields = [BlockField(i, f"band_{band:g}", float(band)) for i, band in enumerate(size_bands)]
        n = len(fields)
        fields.append(BlockField(n, LARGE_ABUNDANCE))
        fields.append(BlockField(n + 1, LARGE_SIZE))
        return cls(tuple(fields))

    @property
    def width(self) -> int:
        return len(self.fields)

    @property
    def band_fields(self) -> tuple[BlockField, ...]:
        return tuple(f for f in self.fields if f.size_band is not None)

    @property
    def size_bands(self) -> tuple[float, ...]:
        return tuple(f.size_band for f in self.band_fields)  # type: ignore[misc]

    @property
    def smallest_band(self) -> float:
        return min(self.size_bands)

    def offset_of(self, name: str) -> int:
        for f in self.fields:
            if f.name == name:
                return f.offset
        raise KeyError(name)

    def survey_count(self, total_columns: int) -> int:
        """Number of survey blocks in a grid of total_columns columns.

        Raises:
            SchemaMismatch: If total_columns is 0 or not a multiple of the width.
        """
        if total_columns <= 0 or total_columns % self.width != 0:
            raise SchemaMismatch(
                f"grid has {total_columns} count columns, expected a non-zero multiple of {self.width} "
                f"({len(self.band_fields)} size bands + large abundance + large size)"
            )
        return total_columns // self.width


def survey_key(value: Any) -> int | str:
    """Join key of a survey number: integral numbers (or numeric text) -> int."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value  # type: ignore[return-value]
    text = str(value).strip()
    try:
        number = float(text)
    except ValueError:
        return text
    return int(number) if number.is_integer() else text


def resolve_survey_numbers(
    grid: NormalizedGrid,
    schema: SurveyBlockSchema,
    quality_log: DataQualityLog | None = None,
    source: str = "",
    sheet: str = "",
) -> list[int | str]:
    """Survey number of each block, taken from the survey header row.

    The first non-empty header value within a block wins. A block without one
    gets the text key "block-<ordinal>", which never matches a metadata row, so
    its observations are reported as missing reference data instead of being
    joined to another survey.

    Raises:
        SchemaMismatch: If the column count does not fit the schema, or two
            blocks share a survey number.
    """
    count = schema.survey_count(grid.n_columns)
    numbers: list[int | str] = []
    for block in range(count):
        first = block * schema.width + 1
        header = [grid.survey_header.get(col) for col in range(first, first + schema.width)]
        value = next((v for v in header if v is not None), None)
        if value is None:
            number: int | str = f"block-{block + 1}"
            logger.warning(f"survey block {block + 1} has no survey number; using key '{number}'")
            if quality_log is not None:
                quality_log.append(
                    DataQualityRecord.create(
                        source=source,
                        sheet=sheet,
                        location=f"block={block + 1}",
                        issue_type=MISSING_SURVEY_NUMBER,
                        message=f"no survey number in header row; key {number!r} used, block not joined to metadata",
                    )
                )
        else:
            number = survey_key(value)
        numbers.append(number)
    if len(set(numbers)) != len(numbers):
        dupes = sorted({str(n) for n in numbers if numbers.count(n) > 1})
        raise SchemaMismatch(f"duplicate survey numbers in header row: {dupes}")
    return numbers


class LongObservations:
    """Lazy, restartable sequence of LongObservation rows.

    Each iteration walks the grid again: for every survey block and species
    slot it yields one row per size band, all carrying the block's large-band
    values.
    """

    def __init__(
        self,
        grid: NormalizedGrid,
        schema: SurveyBlockSchema,
        survey_numbers: Sequence[int | str],
    ) -> None:
        count = schema.survey_count(grid.n_columns)
        if len(survey_numbers) != count:
            raise SchemaMismatch(f"{len(survey_numbers)} survey numbers for {count} survey blocks")
        self.grid = grid
        self.schema = schema
        self.survey_numbers = list(survey_numbers)

    def __len__(self) -> int:
        return self.grid.n_rows * len(self.survey_numbers) * len(self.schema.band_fields)

    def __iter__(self) -> Iterator[LongObservation]:
        matrix = self.grid.values.to_numpy()
        width = self.schema.width
        large_abundance_at = self.schema.offset_of(LARGE_ABUNDANCE)
        large_size_at = self.schema.offset_of(LARGE_SIZE)
        bands = self.schema.band_fields
        for block, survey_no in enumerate(self.survey_numbers):
            base = block * width
            for i in range(self.grid.n_rows):
                row = matrix[i]
                large_abundance = float(row[base + large_abundance_at])
                large_size = float(row[base + large_size_at])
                for band in bands:
                    yield LongObservation(
                        survey_no=survey_no,
                        species_slot=i + 1,
                        size_band=band.size_band,  # type: ignore[arg-type]
                        abundance=float(row[base + band.offset]),
                        large_abundance=large_abundance,
                        large_size=large_size,
                    )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame.from_records(
            [
                (o.survey_no, o.species_slot, o.size_band, o.abundance, o.large_abundance, o.large_size)
                for o in self
            ],
            columns=OBSERVATION_COLUMNS,
        )
