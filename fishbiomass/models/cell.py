from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

"""Cell and StyleTable models produced by the cell reader.

A Cell is one populated (or styled) worksheet cell; the StyleTable maps each
style id seen in the sheet to whether that style carries a fill colour.
"""

__all__ = [
    "Cell",
    "StyleTable",
]


@dataclass(frozen=True)
class Cell:
    """One worksheet cell as yielded by the reader.

    row and column are 1-based, matching the spreadsheet address.
    """
    sheet: str
    row: int
    column: int
    value: Any
    value_type: str  # openpyxl data_type code: n, s, b, d, e, f
    style_id: int | None = None

    @property
    def address(self) -> tuple[int, int]:
        return (self.row, self.column)

    @property
    def is_empty(self) -> bool:
        if self.value is None:
            return True
        return isinstance(self.value, str) and self.value.strip() == ""


@dataclass(frozen=True)
class StyleTable:
    """style_id -> has a non-default fill colour."""
    fills: Mapping[int, bool] = field(default_factory=dict)

    def is_flagged(self, style_id: int | None) -> bool:
        # unknown ids resolve to "not flagged"
        if style_id is None:
            return False
        return bool(self.fills.get(style_id, False))

    def __len__(self) -> int:
        return len(self.fills)
