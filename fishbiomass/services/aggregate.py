from __future__ import annotations

import pandas as pd

"""Aggregator: sum abundance and biomass over size bands."""

__all__ = [
    "GROUP_KEYS",
    "RESULT_COLUMNS",
    "aggregate_results",
    "to_result_table",
]

GROUP_KEYS = ["survey_no", "species", "diet", "observer"]
VALUE_COLUMNS = ["total_abundance", "total_biomass"]
RESULT_COLUMNS = GROUP_KEYS + ["abundance", "biomass_kg_per_ha"]


def aggregate_results(records: pd.DataFrame) -> pd.DataFrame:
    """One row per (survey_no, species, diet, observer) with summed values.

    Null keys (e.g. a species with coefficients but no diet) form their own
    group instead of being dropped. Applying this to its own output returns
    the same rows.

    Args:
        records: output of compute_biomass

    Returns:
        GROUP_KEYS + total_abundance, total_biomass; an empty frame with those
        columns when there are no records.
    """
    if records.empty:
        return pd.DataFrame(columns=GROUP_KEYS + VALUE_COLUMNS)
    grouped = records.groupby(GROUP_KEYS, dropna=False, sort=False)[VALUE_COLUMNS].sum()
    return grouped.reset_index()


def to_result_table(aggregated: pd.DataFrame) -> pd.DataFrame:
    """Rename to the output schema and order rows by survey then species."""
    table = aggregated.rename(
        columns={"total_abundance": "abundance", "total_biomass": "biomass_kg_per_ha"}
    )[RESULT_COLUMNS]
    if table.empty:
        return table.reset_index(drop=True)
    # numeric survey numbers first (by value), then text ones
    is_text = table["survey_no"].map(lambda v: isinstance(v, str)).astype(bool)
    order_keys = {
        "_text": is_text,
        "_num": pd.to_numeric(table["survey_no"].where(~is_text), errors="coerce"),
        "_str": table["survey_no"].astype(str),
    }
    table = (
        table.assign(**order_keys)
        .sort_values(["_text", "_num", "_str", "species"], kind="stable")
        .drop(columns=list(order_keys))
    )
    return table.reset_index(drop=True)
