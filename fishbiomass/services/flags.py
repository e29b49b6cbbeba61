from __future__ import annotations

from collections.abc import Iterable

from ..models.cell import Cell, StyleTable

"""Flag resolver: which cell addresses carry a fill colour.

A coloured count cell marks a non-instantaneous observation; the grid
normalizer zeroes it. The flag is not carried further downstream.
"""

__all__ = [
    "is_flagged",
    "resolve_flagged_addresses",
]


def is_flagged(style_id: int | None, styles: StyleTable | None) -> bool:
    """True iff the style resolves to a present, non-null fill colour.

    Missing style metadata (no table, unknown id) resolves to False.
    """
    if styles is None:
        return False
    return styles.is_flagged(style_id)


def resolve_flagged_addresses(cells: Iterable[Cell], styles: StyleTable | None) -> set[tuple[int, int]]:
    return {c.address for c in cells if is_flagged(c.style_id, styles)}
