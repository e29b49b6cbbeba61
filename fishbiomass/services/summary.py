from __future__ import annotations

from ..models.processing_result import PipelineResult

"""SUMMARY line rendering."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return f"{value:.3f}".rstrip('0').rstrip('.')


def render_summary_line(result: PipelineResult) -> str:
    """Render the SUMMARY line of a pipeline run.

    Format:
    SUMMARY surveys={n} species={n} observations={n} dropped={n} rows={n}
    flagged_cells={n} missing_refs={n} elapsed_sec={x}

    Examples:
        >>> import pandas as pd
        >>> result = PipelineResult(
        ...     table=pd.DataFrame(), surveys=2, species_slots=3, observations=60,
        ...     dropped_rows=55, output_rows=4, flagged_cells=1, malformed_cells=0,
        ...     elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY surveys=2 species=3 observations=60 dropped=55 rows=4 flagged_cells=1 missing_refs=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY surveys={result.surveys} "
        f"species={result.species_slots} "
        f"observations={result.observations} "
        f"dropped={result.dropped_rows} "
        f"rows={result.output_rows} "
        f"flagged_cells={result.flagged_cells} "
        f"missing_refs={result.missing_references} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
