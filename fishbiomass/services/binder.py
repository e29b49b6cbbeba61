from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from .errors import SchemaMismatch

"""Species binder.

Species identity is positional: the n-th non-empty label of the label column
belongs to species slot n of the grid. The association is built once as an
explicit slot -> species index, after checking both sides have the same length.
"""

__all__ = [
    "clean_species_label",
    "build_species_index",
    "bind_species",
]


def clean_species_label(label: str, separator: str = "_") -> str:
    """Strip one leading separator character and surrounding whitespace."""
    text = str(label).strip()
    if separator and text.startswith(separator):
        text = text[len(separator):]
    return text.strip()


def build_species_index(labels: Sequence[str], slot_count: int, separator: str = "_") -> dict[int, str]:
    """Map species slot (1-based) -> cleaned species name.

    Raises:
        SchemaMismatch: If the label count differs from the grid row count.
    """
    if len(labels) != slot_count:
        raise SchemaMismatch(
            f"{len(labels)} species labels for {slot_count} grid rows; "
            "label column and count rows are out of step"
        )
    return {slot: clean_species_label(label, separator) for slot, label in enumerate(labels, start=1)}


def bind_species(frame: pd.DataFrame, index: dict[int, str]) -> pd.DataFrame:
    """Add a `species` column resolved from `species_slot`."""
    unknown = set(frame["species_slot"].unique()) - set(index)
    if unknown:
        raise SchemaMismatch(f"species slots without a label: {sorted(unknown)}")
    out = frame.copy()
    out["species"] = out["species_slot"].map(index)
    return out
