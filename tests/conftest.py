# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook
from openpyxl.styles import PatternFill

SIZE_BANDS = [1.25, 3.75, 6.25, 8.75, 12.5, 17.5, 25, 35, 45, 75]
SIZE_HEADER = SIZE_BANDS + ["Large", "Size"]
BLOCK_WIDTH = len(SIZE_HEADER)
YELLOW = PatternFill("solid", fgColor="FFFF00")


def block(bands: dict[float, float] | None = None, large: float | None = None, large_size: float | None = None) -> list[object]:
    """12 cells of one survey block: band -> count, then large abundance / size."""
    bands = bands or {}
    values: list[object] = [bands.get(b) for b in SIZE_BANDS]
    values += [large, large_size]
    return values


def make_counts_workbook(
    path: Path,
    survey_numbers: Sequence[object],
    species_rows: Sequence[tuple[str | None, list[object]]],
    *,
    sheet: str = "INPUT Sheet",
    flagged: Iterable[tuple[int, int]] = (),
) -> Path:
    """Counts sheet: label column A, survey row 1, size-class row 2, species from row 3.

    flagged: (row, column) addresses that get a yellow fill.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet
    ws.cell(row=1, column=1, value="Survey No.")
    ws.cell(row=2, column=1, value="Species")
    for b, number in enumerate(survey_numbers):
        base = 2 + b * BLOCK_WIDTH
        if number is not None:
            ws.cell(row=1, column=base, value=number)
        for k, label in enumerate(SIZE_HEADER):
            ws.cell(row=2, column=base + k, value=label)
    for r, (label, values) in enumerate(species_rows, start=3):
        if label is not None:
            ws.cell(row=r, column=1, value=label)
        for c, v in enumerate(values, start=2):
            if v is not None:
                ws.cell(row=r, column=c, value=v)
    for row, col in flagged:
        ws.cell(row=row, column=col).fill = YELLOW
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


def make_table_workbook(path: Path, sheet: str, header: list[str], rows: list[list[object]]) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet
    ws.append(header)
    for row in rows:
        ws.append(row)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("FISHBIOMASS_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """inputs:
  survey_counts:
    path: ./data/counts.xlsx
  survey_metadata:
    path: ./data/survey_metadata.xlsx
  species_reference:
    path: ./data/species.xlsx
output:
  path: ./output/biomass.xlsx
logs_directory: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "pipeline.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def survey_workbooks(temp_workdir: Path) -> dict[str, Path]:
    """Two surveys x three species, one flagged cell, one unknown species.

    survey 1: area 100, observer AB; survey 2: area 50, observer CD;
    survey 3 has no date and is not in the counts sheet.
    """
    data = temp_workdir / "data"
    counts = make_counts_workbook(
        data / "counts.xlsx",
        survey_numbers=[1, 2],
        species_rows=[
            ("_Chromis viridis", block({1.25: 4, 3.75: 2}) + block()),
            ("_Scarus ghobban", block({12.5: 1}, large=2, large_size=60) + block({25: 3})),
            ("_Unknown fish", block({1.25: 5}) + block()),
        ],
        # Scarus, survey 1, 12.5 cm band: column 2 + 4
        flagged=[(4, 6)],
    )
    metadata = make_table_workbook(
        data / "survey_metadata.xlsx",
        "Data",
        ["Survey", "Transect", "Observer", "Area", "Date"],
        [
            [1, "T1", "AB", 100, datetime(2023, 3, 1)],
            [2, "T2", "CD", 50, datetime(2023, 3, 2)],
            [3, "T3", "EF", 100, None],
        ],
    )
    species = make_table_workbook(
        data / "species.xlsx",
        "Species",
        ["Species", "Diet", "a", "b"],
        [
            ["Chromis viridis", "Planktivore", 0.02, 3.0],
            ["Scarus ghobban", "Herbivore", 0.015, 3.1],
        ],
    )
    return {"counts": counts, "metadata": metadata, "species": species}
