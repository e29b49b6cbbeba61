from __future__ import annotations

import logging

import numpy as np
import pandas as pd

"""Biomass calculator.

Length-weight relationship W = a * L^b (grams), scaled by abundance and
normalized by the surveyed area (m^2) to kilograms per hectare:

    biomass_ha = a * L**b * abundance / area / 1000 * 10000

The large band is stored once per (survey, species slot) but repeated on all
size-band rows by the reshaper, so it is kept on the smallest band row only.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "biomass_per_ha",
    "deduplicate_large_band",
    "compute_biomass",
]

GRAMS_PER_KG = 1000.0
M2_PER_HA = 10000.0


def biomass_per_ha(a, b, length, abundance, area):
    """kg/ha for `abundance` fish of `length` cm over `area` m^2.

    Works on scalars and on aligned pandas Series / numpy arrays.
    """
    return a * np.power(length, b) * abundance / area / GRAMS_PER_KG * M2_PER_HA


def deduplicate_large_band(df: pd.DataFrame, smallest_band: float) -> pd.DataFrame:
    """Zero `large_abundance` on every row except the smallest size band row."""
    out = df.copy()
    out.loc[~np.isclose(out["size_band"], smallest_band), "large_abundance"] = 0.0
    return out


def compute_biomass(enriched: pd.DataFrame, smallest_band: float) -> pd.DataFrame:
    """Add biomass columns and drop rows without a usable biomass.

    Rows whose total biomass cannot be computed (missing a, b or area) or is
    not positive are removed.

    Args:
        enriched: long observations joined with survey area and species a, b
        smallest_band: size band whose row keeps the large-fish count

    Returns:
        A copy with biomass_ha, biomass_ha_large, total_biomass and
        total_abundance added, index reset.
    """
    df = deduplicate_large_band(enriched, smallest_band)

    df["biomass_ha"] = biomass_per_ha(df["a"], df["b"], df["size_band"], df["abundance"], df["area"])
    large = biomass_per_ha(df["a"], df["b"], df["large_size"], df["large_abundance"], df["area"])
    # rows without large fish contribute 0 even if the large size cell is empty
    df["biomass_ha_large"] = large.where(df["large_abundance"] != 0, 0.0)

    df["total_biomass"] = df["biomass_ha"] + df["biomass_ha_large"]
    df["total_abundance"] = df["abundance"] + df["large_abundance"]

    computable = np.isfinite(df["total_biomass"].astype(float))
    positive = computable & (df["total_biomass"] > 0)
    logger.debug(
        f"biomass rows={len(df)} not_computable={int((~computable).sum())} "
        f"non_positive={int((computable & ~positive).sum())}"
    )
    return df[positive].reset_index(drop=True)
