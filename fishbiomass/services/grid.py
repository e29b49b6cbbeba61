from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from ..logging.error_log import DataQualityLog
from ..models.cell import Cell, StyleTable
from ..models.config_models import GridLayout
from ..models.error_record import MALFORMED_CELL, DataQualityRecord
from .errors import SchemaMismatch
from .flags import resolve_flagged_addresses

"""Grid normalizer.

Turns the raw cells of the counts sheet into a dense numeric matrix:

1. colour-flagged cells are zeroed (non-instantaneous counts discarded)
2. header rows (survey number, size class) are dropped, rows renumbered from 1
3. row-label / species-label columns are dropped, columns renumbered from 1
4. empty cells become 0; text that is not a number is a malformed cell and also
   becomes 0 (recorded in the data-quality log)

The species labels and the survey-number header row are kept on the side for
the species binder and the schema reshaper.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "NormalizedGrid",
    "normalize_grid",
]


@dataclass(frozen=True)
class NormalizedGrid:
    """Dense count matrix of the counts sheet.

    values: index = species slot (1..n_rows), columns = flattened
    survey x band position (1..n_columns).
    """
    values: pd.DataFrame
    species_labels: list[str]  # raw labels in row order, blanks removed
    survey_header: dict[int, Any] = field(default_factory=dict)  # grid column -> survey header value
    flagged_cells: int = 0
    malformed_cells: int = 0

    @property
    def n_rows(self) -> int:
        return int(self.values.shape[0])

    @property
    def n_columns(self) -> int:
        return int(self.values.shape[1])


def _to_number(value: Any) -> float | None:
    """Numeric value of a count cell; None when the cell is malformed."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return 0.0 if math.isnan(value) else float(value)
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return None
        return 0.0 if math.isnan(number) else number
    # dates, times, error values
    return None


def normalize_grid(
    cells: Iterable[Cell],
    styles: StyleTable | None,
    layout: GridLayout | None = None,
    quality_log: DataQualityLog | None = None,
    source: str = "",
) -> NormalizedGrid:
    """Build the normalized grid from raw cells.

    Args:
        cells: every populated (or filled) cell of the counts sheet
        styles: style id -> has fill table; None treats every cell as unflagged
        layout: positional layout of the sheet (defaults to GridLayout())
        quality_log: receives one MALFORMED_CELL record per non-numeric count
        source: workbook name used in data-quality records

    Raises:
        SchemaMismatch: If the sheet holds no populated cell at all.
    """
    layout = layout or GridLayout()
    cells = list(cells)
    flagged = resolve_flagged_addresses(cells, styles)

    populated = [c for c in cells if not c.is_empty]
    if not populated:
        raise SchemaMismatch("counts sheet has no populated cells")
    # extent includes header rows so an all-empty trailing column still counts
    max_row = max(c.row for c in populated)
    max_col = max(c.column for c in populated)

    data_columns = [
        col for col in range(layout.first_data_column, max_col + 1) if col != layout.label_column
    ]
    col_index = {col: j for j, col in enumerate(data_columns, start=1)}
    n_rows = max(max_row - layout.header_rows, 0)

    matrix = np.zeros((n_rows, len(data_columns)), dtype=float)
    labels_by_row: dict[int, str] = {}
    survey_header: dict[int, Any] = {}
    flagged_count = 0
    malformed: list[Cell] = []

    for c in cells:
        if c.row == layout.survey_header_row and c.column in col_index and not c.is_empty:
            survey_header[col_index[c.column]] = c.value
        if c.row <= layout.header_rows or c.row > max_row:
            continue
        if c.column == layout.label_column:
            if not c.is_empty:
                labels_by_row[c.row] = str(c.value)
            continue
        j = col_index.get(c.column)
        if j is None:
            continue
        if c.address in flagged:
            if not c.is_empty:
                flagged_count += 1
            continue  # stays 0
        number = _to_number(c.value)
        if number is None:
            malformed.append(c)
            continue
        matrix[c.row - layout.header_rows - 1, j - 1] = number

    for c in malformed:
        logger.debug(f"malformed count cell R{c.row}C{c.column}: {c.value!r} -> 0")
        if quality_log is not None:
            quality_log.append(
                DataQualityRecord.create(
                    source=source,
                    sheet=c.sheet,
                    location=f"R{c.row}C{c.column}",
                    issue_type=MALFORMED_CELL,
                    message=f"non-numeric count {c.value!r} treated as 0",
                )
            )
    if malformed:
        logger.warning(f"{len(malformed)} non-numeric count cell(s) treated as 0")

    values = pd.DataFrame(
        matrix,
        index=pd.RangeIndex(1, n_rows + 1, name="species_slot"),
        columns=pd.RangeIndex(1, len(data_columns) + 1, name="column"),
    )
    labels = [labels_by_row[r] for r in sorted(labels_by_row)]
    logger.debug(
        f"grid normalized rows={n_rows} columns={len(data_columns)} "
        f"flagged={flagged_count} malformed={len(malformed)}"
    )
    return NormalizedGrid(
        values=values,
        species_labels=labels,
        survey_header=survey_header,
        flagged_cells=flagged_count,
        malformed_cells=len(malformed),
    )
