from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest
from openpyxl import Workbook
from openpyxl.styles import GradientFill, PatternFill

from fishbiomass.excel.reader import (
    MissingColumnsError,
    SheetNotFoundError,
    WorkbookNotFoundError,
    WorkbookReadError,
    has_fill_colour,
    read_cells,
    read_sheet_frame,
    require_columns,
)


def _workbook(path: Path) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = "INPUT Sheet"
    ws["A3"] = "_Chromis viridis"
    ws["B3"] = 4
    ws["C3"] = 2
    ws["C3"].fill = PatternFill("solid", fgColor="FFFF00")
    ws["D4"].fill = PatternFill("solid", fgColor="FF0000")  # filled, no value
    ws["E5"].number_format = "0.00"  # styled, no fill, no value
    other = wb.create_sheet("Data")
    other.append(["Survey", "Observer"])
    other.append([1, "AB"])
    other.append([None, None])
    wb.save(path)
    return path


def test_has_fill_colour_pattern_fills():
    assert has_fill_colour(PatternFill("solid", fgColor="FFFF00")) is True
    assert has_fill_colour(PatternFill()) is False
    assert has_fill_colour(PatternFill(fill_type="solid", fgColor="00000000")) is False
    assert has_fill_colour(None) is False


def test_has_fill_colour_gradient_fill():
    assert has_fill_colour(GradientFill(stop=("FFFFFF", "99CCFF"))) is True


def test_read_cells_values_and_flags(tmp_path):
    cells, styles = read_cells(_workbook(tmp_path / "counts.xlsx"), "INPUT Sheet")
    by_address = {c.address: c for c in cells}
    assert by_address[(3, 1)].value == "_Chromis viridis"
    assert by_address[(3, 2)].value == 4
    assert styles.is_flagged(by_address[(3, 3)].style_id) is True
    assert styles.is_flagged(by_address[(3, 2)].style_id) is False


def test_read_cells_keeps_filled_empty_cells_only(tmp_path):
    cells, styles = read_cells(_workbook(tmp_path / "counts.xlsx"), "INPUT Sheet")
    addresses = {c.address for c in cells}
    assert (4, 4) in addresses
    assert (5, 5) not in addresses
    assert all(c.sheet == "INPUT Sheet" for c in cells)


def test_read_cells_missing_sheet(tmp_path):
    with pytest.raises(SheetNotFoundError):
        read_cells(_workbook(tmp_path / "counts.xlsx"), "Nope")


def test_read_cells_missing_workbook(tmp_path):
    with pytest.raises(WorkbookNotFoundError):
        read_cells(tmp_path / "missing.xlsx", "INPUT Sheet")


def test_corrupt_workbook_raises_read_error(tmp_path):
    path = tmp_path / "counts.xlsx"
    path.write_bytes(b"not an xlsx file")
    with pytest.raises(WorkbookReadError):
        read_cells(path, "INPUT Sheet")
    with pytest.raises(WorkbookReadError):
        read_sheet_frame(path)


def test_read_sheet_frame_named_sheet_drops_empty_rows(tmp_path):
    df = read_sheet_frame(_workbook(tmp_path / "counts.xlsx"), "Data")
    assert list(df.columns) == ["Survey", "Observer"]
    assert len(df) == 1


def test_read_sheet_frame_defaults_to_first_sheet(tmp_path):
    path = tmp_path / "species.xlsx"
    pd.DataFrame({" Species ": ["A"], "Diet": ["H"]}).to_excel(path, sheet_name="Sheet1", index=False)
    df = read_sheet_frame(path)
    assert list(df.columns) == ["Species", "Diet"]


def test_read_sheet_frame_missing_sheet(tmp_path):
    with pytest.raises(SheetNotFoundError):
        read_sheet_frame(_workbook(tmp_path / "counts.xlsx"), "Species")


def test_require_columns():
    df = pd.DataFrame(columns=["Survey", "Area"])
    require_columns(df, ["Survey"], "Data")
    with pytest.raises(MissingColumnsError, match="Observer"):
        require_columns(df, ["Survey", "Observer"], "Data")
