from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..services.errors import PipelineError

"""Result table writer (.xlsx via openpyxl, or .csv)."""

RESULT_SHEET = "Biomass"


class UnsupportedOutputError(Exception):
    """Raised when the output path has a suffix other than .xlsx / .csv."""


class OutputWriteError(PipelineError):
    """Raised when the result table cannot be written (locked file, directory, permissions)."""


def write_result_table(df: pd.DataFrame, path: Path) -> Path:
    """Write the result table; the format follows the path suffix.

    Args:
        df: result table (survey_no, species, diet, observer, abundance, biomass_kg_per_ha)
        path: .xlsx (sheet "Biomass") or .csv target; parent directories are created

    Returns:
        The written path.

    Raises:
        UnsupportedOutputError: If the suffix is neither .xlsx nor .csv.
        OutputWriteError: If the file system refuses the write.
    """
    suffix = path.suffix.lower()
    if suffix not in (".xlsx", ".csv"):
        raise UnsupportedOutputError(f"unsupported output format '{path.suffix}': {path}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if suffix == ".xlsx":
            with pd.ExcelWriter(path, engine="openpyxl") as writer:
                df.to_excel(writer, sheet_name=RESULT_SHEET, index=False)
        else:
            df.to_csv(path, index=False)
    except OSError as e:
        raise OutputWriteError(f"cannot write output {path}: {e}") from e
    return path
