from __future__ import annotations

from fishbiomass.models.cell import Cell, StyleTable
from fishbiomass.services.flags import is_flagged, resolve_flagged_addresses


def _cell(row: int, col: int, value, style_id: int | None = 0) -> Cell:
    return Cell(sheet="INPUT Sheet", row=row, column=col, value=value, value_type="n", style_id=style_id)


def test_is_flagged_true_for_style_with_fill():
    styles = StyleTable({0: False, 3: True})
    assert is_flagged(3, styles) is True
    assert is_flagged(0, styles) is False


def test_missing_style_metadata_is_not_flagged():
    styles = StyleTable({3: True})
    assert is_flagged(None, styles) is False
    assert is_flagged(99, styles) is False  # unknown id
    assert is_flagged(3, None) is False


def test_resolve_flagged_addresses_returns_row_col_pairs():
    styles = StyleTable({0: False, 7: True})
    cells = [_cell(3, 2, 4), _cell(3, 3, 1, style_id=7), _cell(5, 9, None, style_id=7)]
    assert resolve_flagged_addresses(cells, styles) == {(3, 3), (5, 9)}


def test_resolve_flagged_addresses_without_style_table():
    cells = [_cell(3, 2, 4, style_id=7)]
    assert resolve_flagged_addresses(cells, None) == set()
