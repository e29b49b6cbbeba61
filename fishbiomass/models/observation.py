from __future__ import annotations

from dataclasses import dataclass

"""LongObservation model: one (survey, species slot, size band) row after unpivoting.

Every row of the same (survey, species slot) carries the block's shared
large-band abundance and size; the biomass step deduplicates them.
"""

__all__ = [
    "LongObservation",
]


@dataclass(frozen=True)
class LongObservation:
    survey_no: int | str
    species_slot: int  # 1-based row of the normalized grid
    size_band: float  # size-class midpoint in cm
    abundance: float
    large_abundance: float
    large_size: float
