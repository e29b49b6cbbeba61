from __future__ import annotations

from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from fishbiomass.excel.reader import MissingColumnsError
from fishbiomass.logging.error_log import DataQualityLog
from fishbiomass.models.config_models import SpeciesColumns, SurveyColumns
from fishbiomass.models.error_record import DUPLICATE_REFERENCE_KEY, MISSING_REFERENCE_DATA
from fishbiomass.services.metadata import merge_metadata, prepare_species_meta, prepare_survey_meta


def _survey_sheet() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Survey": [1, 2, 3],
            "Transect": ["T1", "T2", "T3"],
            "Observer": ["AB", "CD", "EF"],
            "Area": [100, 50, 100],
            "Date": [datetime(2023, 3, 1), datetime(2023, 3, 2), pd.NaT],
        }
    )


def _species_sheet() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Species": ["Chromis viridis", "Scarus ghobban"],
            "Diet": ["Planktivore", "Herbivore"],
            "a": [0.02, 0.015],
            "b": [3.0, 3.1],
        }
    )


def test_survey_meta_excludes_rows_without_date():
    out = prepare_survey_meta(_survey_sheet())
    assert list(out.columns) == ["survey_no", "transect", "observer", "area"]
    assert out["survey_no"].tolist() == [1, 2]


def test_survey_meta_keeps_undated_rows_when_not_required():
    out = prepare_survey_meta(_survey_sheet(), require_date=False)
    assert out["survey_no"].tolist() == [1, 2, 3]


def test_survey_meta_binds_key_to_first_column_by_default():
    df = _survey_sheet().rename(columns={"Survey": "Survey No."})
    assert prepare_survey_meta(df)["survey_no"].tolist() == [1, 2]


def test_survey_meta_named_key_column():
    df = _survey_sheet()[["Transect", "Observer", "Area", "Date", "Survey"]]
    out = prepare_survey_meta(df, SurveyColumns(survey_no="Survey"))
    assert out["survey_no"].tolist() == [1, 2]


def test_survey_meta_missing_column_raises():
    df = _survey_sheet().drop(columns=["Area"])
    with pytest.raises(MissingColumnsError):
        prepare_survey_meta(df)


def test_survey_meta_float_keys_normalized():
    df = _survey_sheet()
    df["Survey"] = [1.0, 2.0, np.nan]
    out = prepare_survey_meta(df, require_date=False)
    assert out["survey_no"].tolist() == [1, 2]
    assert all(type(v) is int for v in out["survey_no"])


def test_duplicate_survey_keeps_first_and_records(tmp_path):
    log = DataQualityLog(tmp_path)
    df = _survey_sheet()
    df.loc[1, "Survey"] = 1
    out = prepare_survey_meta(df, quality_log=log, source="meta.xlsx")
    assert out["survey_no"].tolist() == [1]
    assert out["observer"].tolist() == ["AB"]
    assert log.count(DUPLICATE_REFERENCE_KEY) == 1


def test_species_meta_columns_and_numeric_coefficients():
    df = _species_sheet()
    df["a"] = ["0.02", "oops"]
    out = prepare_species_meta(df)
    assert list(out.columns) == ["species", "diet", "a", "b"]
    assert out.loc[0, "a"] == pytest.approx(0.02)
    assert np.isnan(out.loc[1, "a"])


def test_species_meta_custom_columns():
    df = _species_sheet().rename(columns={"Diet": "Trophic group", "a": "LW_a"})
    out = prepare_species_meta(df, SpeciesColumns(diet="Trophic group", a="LW_a"))
    assert out["diet"].tolist() == ["Planktivore", "Herbivore"]


def _observations() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "survey_no": [1, 1, 9],
            "species_slot": [1, 2, 1],
            "size_band": [1.25, 1.25, 1.25],
            "abundance": [4.0, 1.0, 2.0],
            "large_abundance": [0.0, 0.0, 0.0],
            "large_size": [0.0, 0.0, 0.0],
            "species": ["Chromis viridis", "Unknown fish", "Chromis viridis"],
        }
    )


def test_merge_is_left_join_and_keeps_unmatched_rows():
    merged = merge_metadata(_observations(), prepare_survey_meta(_survey_sheet()), prepare_species_meta(_species_sheet()))
    df = merged.frame
    assert len(df) == 3
    assert df.loc[0, "area"] == 100
    assert df.loc[0, "diet"] == "Planktivore"
    assert pd.isna(df.loc[1, "a"])
    assert pd.isna(df.loc[2, "area"])
    assert merged.missing_species == ["Unknown fish"]
    assert merged.missing_surveys == [9]


def test_merge_records_each_missing_key(tmp_path):
    log = DataQualityLog(tmp_path)
    merge_metadata(
        _observations(),
        prepare_survey_meta(_survey_sheet()),
        prepare_species_meta(_species_sheet()),
        log,
        survey_source="meta.xlsx",
        survey_sheet="Data",
        species_source="species.xlsx",
        species_sheet="Species",
    )
    assert log.count(MISSING_REFERENCE_DATA) == 2
    locations = {r.location for r in log.records}
    assert locations == {"survey_no=9", "species=Unknown fish"}


def test_merge_matches_text_and_numeric_survey_numbers():
    obs = _observations().assign(survey_no=[2, 2, 2])
    sheet = _survey_sheet()
    sheet["Survey"] = ["1", "2", "3"]
    merged = merge_metadata(obs, prepare_survey_meta(sheet), prepare_species_meta(_species_sheet()))
    assert merged.frame["observer"].tolist() == ["CD", "CD", "CD"]
    assert merged.missing_surveys == []
