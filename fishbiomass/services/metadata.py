from __future__ import annotations

import logging
from dataclasses import dataclass, field

import pandas as pd

from ..excel.reader import MissingColumnsError, require_columns
from ..logging.error_log import DataQualityLog
from ..models.config_models import SpeciesColumns, SurveyColumns
from ..models.error_record import DUPLICATE_REFERENCE_KEY, MISSING_REFERENCE_DATA, DataQualityRecord
from .reshape import survey_key

"""Metadata merger.

Prepares the survey metadata sheet (transect, observer, sampled area) and the
species reference sheet (diet, length-weight coefficients a and b), then
left-joins both onto the long observations. Unmatched keys keep null metadata;
the biomass step drops those rows later. Each distinct unmatched key is a
MISSING_REFERENCE_DATA record, never an exception.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "MergedObservations",
    "prepare_survey_meta",
    "prepare_species_meta",
    "merge_metadata",
]

SURVEY_META_COLUMNS = ["survey_no", "transect", "observer", "area"]
SPECIES_META_COLUMNS = ["species", "diet", "a", "b"]


@dataclass(frozen=True)
class MergedObservations:
    frame: pd.DataFrame
    missing_species: list[str] = field(default_factory=list)
    missing_surveys: list[int | str] = field(default_factory=list)


def _key_column(df: pd.DataFrame, name: str | None, sheet: str) -> str:
    if name is not None:
        return name
    if len(df.columns) == 0:
        raise MissingColumnsError(f"sheet '{sheet}' has no columns")
    return str(df.columns[0])


def _blank_to_na(s: pd.Series) -> pd.Series:
    return s.mask(s.astype(str).str.strip() == "")


def _drop_duplicate_keys(
    df: pd.DataFrame,
    key: str,
    quality_log: DataQualityLog | None,
    source: str,
    sheet: str,
) -> pd.DataFrame:
    dupes = df[df.duplicated(key, keep="first")]
    for value in dupes[key].unique():
        logger.warning(f"duplicate {key}={value} in '{sheet}'; first row kept")
        if quality_log is not None:
            quality_log.append(
                DataQualityRecord.create(
                    source=source,
                    sheet=sheet,
                    location=f"{key}={value}",
                    issue_type=DUPLICATE_REFERENCE_KEY,
                    message=f"{key} {value!r} appears more than once; first row kept",
                )
            )
    return df.drop_duplicates(subset=key, keep="first")


def prepare_survey_meta(
    df: pd.DataFrame,
    columns: SurveyColumns | None = None,
    require_date: bool = True,
    quality_log: DataQualityLog | None = None,
    source: str = "",
    sheet: str = "Data",
) -> pd.DataFrame:
    """Survey metadata -> survey_no, transect, observer, area.

    Surveys without a recorded date are excluded when require_date is set.

    Raises:
        MissingColumnsError: If a configured column is absent.
    """
    columns = columns or SurveyColumns()
    key = _key_column(df, columns.survey_no, sheet)
    needed = [key, columns.transect, columns.observer, columns.area]
    if require_date:
        needed.append(columns.date)
    require_columns(df, needed, sheet)

    df = df.copy()
    df[key] = _blank_to_na(df[key])
    df = df[df[key].notna()]
    if require_date:
        dated = _blank_to_na(df[columns.date]).notna()
        if (~dated).any():
            logger.info(f"{int((~dated).sum())} survey row(s) without a date excluded")
        df = df[dated]

    out = pd.DataFrame(
        {
            "survey_no": df[key].map(survey_key).astype(object),
            "transect": df[columns.transect],
            "observer": df[columns.observer],
            "area": pd.to_numeric(df[columns.area], errors="coerce"),
        }
    )
    out = _drop_duplicate_keys(out, "survey_no", quality_log, source, sheet)
    return out.reset_index(drop=True)


def prepare_species_meta(
    df: pd.DataFrame,
    columns: SpeciesColumns | None = None,
    quality_log: DataQualityLog | None = None,
    source: str = "",
    sheet: str = "",
) -> pd.DataFrame:
    """Species reference -> species, diet, a, b.

    Raises:
        MissingColumnsError: If a configured column is absent.
    """
    columns = columns or SpeciesColumns()
    key = _key_column(df, columns.species, sheet)
    require_columns(df, [key, columns.diet, columns.a, columns.b], sheet)

    df = df.copy()
    df[key] = _blank_to_na(df[key])
    df = df[df[key].notna()]
    out = pd.DataFrame(
        {
            "species": df[key].astype(str).str.strip(),
            "diet": df[columns.diet],
            "a": pd.to_numeric(df[columns.a], errors="coerce"),
            "b": pd.to_numeric(df[columns.b], errors="coerce"),
        }
    )
    out = _drop_duplicate_keys(out, "species", quality_log, source, sheet)
    return out.reset_index(drop=True)


def _record_missing(
    kind: str,
    values: list,
    quality_log: DataQualityLog | None,
    source: str,
    sheet: str,
) -> None:
    if not values:
        return
    logger.warning(f"{len(values)} {kind} value(s) without reference data: {values[:10]}")
    if quality_log is None:
        return
    for value in values:
        quality_log.append(
            DataQualityRecord.create(
                source=source,
                sheet=sheet,
                location=f"{kind}={value}",
                issue_type=MISSING_REFERENCE_DATA,
                message=f"no reference row for {kind} {value!r}; its rows are excluded",
            )
        )


def merge_metadata(
    observations: pd.DataFrame,
    survey_meta: pd.DataFrame,
    species_meta: pd.DataFrame,
    quality_log: DataQualityLog | None = None,
    *,
    survey_source: str = "",
    survey_sheet: str = "",
    species_source: str = "",
    species_sheet: str = "",
) -> MergedObservations:
    """Left-join survey and species metadata onto the long observations."""
    obs = observations.copy()
    obs["survey_no"] = obs["survey_no"].astype(object)
    surveys = survey_meta[SURVEY_META_COLUMNS].copy()
    surveys["survey_no"] = surveys["survey_no"].astype(object)

    merged = obs.merge(surveys, on="survey_no", how="left", validate="many_to_one")
    merged = merged.merge(species_meta[SPECIES_META_COLUMNS], on="species", how="left", validate="many_to_one")

    known_surveys = set(surveys["survey_no"])
    missing_surveys = [s for s in pd.unique(obs["survey_no"]) if s not in known_surveys]
    known_species = set(species_meta["species"])
    missing_species = [s for s in pd.unique(obs["species"]) if s not in known_species]

    _record_missing("survey_no", missing_surveys, quality_log, survey_source, survey_sheet)
    _record_missing("species", missing_species, quality_log, species_source, species_sheet)

    return MergedObservations(
        frame=merged,
        missing_species=[str(s) for s in missing_species],
        missing_surveys=list(missing_surveys),
    )
