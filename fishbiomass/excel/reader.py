from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

import pandas as pd
from openpyxl import load_workbook
from openpyxl.styles.colors import Color
from openpyxl.utils.exceptions import InvalidFileException

from ..models.cell import Cell, StyleTable
from ..services.errors import PipelineError

"""Workbook readers.

- read_cells: openpyxl cell-level reader for the raw counts sheet. Yields typed
  cells with their style id and a StyleTable telling which style ids carry a
  fill colour (colour-flagged counts are non-instantaneous observations).
- read_sheet_frame: pandas reader for the tabular metadata sheets.
"""

# openpyxl default / system foreground colours; these do not count as a fill
_DEFAULT_RGB = {"00000000"}
_SYSTEM_FOREGROUND_INDEX = 64


class WorkbookNotFoundError(FileNotFoundError):
    """Raised when an input workbook does not exist."""

class SheetNotFoundError(Exception):
    """Raised when a requested sheet is absent from the workbook."""

class MissingColumnsError(Exception):
    """Raised when expected columns are missing in a metadata sheet header."""

class WorkbookReadError(PipelineError):
    """Raised when a workbook exists but cannot be opened (corrupt, not xlsx, unreadable)."""


# failures of openpyxl / zipfile / the OS while opening or parsing a workbook
_READ_ERRORS = (InvalidFileException, BadZipFile, OSError)


def _color_present(color: Color | None) -> bool:
    if color is None:
        return False
    ctype = getattr(color, "type", None)
    if ctype == "rgb":
        rgb = getattr(color, "rgb", None)
        return isinstance(rgb, str) and rgb.upper() not in _DEFAULT_RGB
    if ctype == "indexed":
        return getattr(color, "indexed", None) not in (None, _SYSTEM_FOREGROUND_INDEX)
    if ctype == "theme":
        return getattr(color, "theme", None) is not None
    return False


def has_fill_colour(fill: Any) -> bool:
    """True when an openpyxl fill sets a (non-default) colour.

    Pattern fills need a pattern type and a foreground colour; gradient fills
    always count.
    """
    if fill is None:
        return False
    if getattr(fill, "tagname", None) == "gradientFill":
        return True
    pattern = getattr(fill, "fill_type", None)
    if pattern in (None, "none"):
        return False
    return _color_present(getattr(fill, "fgColor", None))


def _check_workbook(path: Path) -> None:
    if not path.exists():
        raise WorkbookNotFoundError(f"workbook not found: {path}")


def read_cells(path: Path, sheet_name: str) -> tuple[list[Cell], StyleTable]:
    """Read every populated or filled cell of one sheet.

    Parameters
    ----------
    path: workbook path
    sheet_name: sheet to read (e.g. "INPUT Sheet")

    Returns
    -------
    (cells, styles): cells in row-major order, and the style id -> has fill
    table covering every style id referenced by those cells.

    Raises
    ------
    WorkbookNotFoundError: path does not exist
    WorkbookReadError: the file cannot be opened as an xlsx workbook
    SheetNotFoundError: sheet_name is not in the workbook
    """
    _check_workbook(path)
    try:
        # data_only: formula cells yield their cached values
        wb = load_workbook(path, data_only=True)
    except _READ_ERRORS as e:
        raise WorkbookReadError(f"cannot read workbook {path}: {e}") from e
    try:
        if sheet_name not in wb.sheetnames:
            raise SheetNotFoundError(f"sheet '{sheet_name}' not found in {path.name} (sheets: {wb.sheetnames})")
        ws = wb[sheet_name]
        cells: list[Cell] = []
        fills: dict[int, bool] = {}
        for row in ws.iter_rows():
            for c in row:
                style_id = c.style_id
                if style_id not in fills:
                    fills[style_id] = has_fill_colour(c.fill)
                if c.value is None and not fills[style_id]:
                    continue
                cells.append(
                    Cell(
                        sheet=sheet_name,
                        row=c.row,
                        column=c.column,
                        value=c.value,
                        value_type=c.data_type,
                        style_id=style_id,
                    )
                )
    finally:
        wb.close()
    return cells, StyleTable(fills)


def read_sheet_frame(path: Path, sheet_name: str | None = None) -> pd.DataFrame:
    """Read a header-row table (metadata / species reference) as a DataFrame.

    sheet_name=None reads the first sheet.

    Raises:
        WorkbookNotFoundError: If path does not exist.
        WorkbookReadError: If the file cannot be opened as an xlsx workbook.
        SheetNotFoundError: If sheet_name is not in the workbook.
    """
    _check_workbook(path)
    try:
        with pd.ExcelFile(path, engine="openpyxl") as xls:
            sheet_names = [str(s) for s in xls.sheet_names]
            if sheet_name is None:
                sheet_name = sheet_names[0]
            elif sheet_name not in sheet_names:
                raise SheetNotFoundError(f"sheet '{sheet_name}' not found in {path.name} (sheets: {sheet_names})")
            df = xls.parse(sheet_name)
    except _READ_ERRORS as e:
        raise WorkbookReadError(f"cannot read workbook {path}: {e}") from e
    # fully empty rows are formatting leftovers
    df = df.dropna(how="all")
    df.columns = [str(c).strip() for c in df.columns]
    return df


def require_columns(df: pd.DataFrame, columns: Iterable[str], sheet_name: str) -> None:
    missing = set(columns) - set(df.columns)
    if missing:
        raise MissingColumnsError(f"sheet '{sheet_name}' missing columns: {sorted(missing)}")
