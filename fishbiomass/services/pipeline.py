from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..excel.reader import read_cells, read_sheet_frame
from ..excel.writer import write_result_table
from ..logging.error_log import DataQualityLog
from ..models.cell import Cell, StyleTable
from ..models.config_models import DEFAULT_COUNTS_SHEET, DEFAULT_SIZE_BANDS, GridLayout, PipelineConfig
from ..models.processing_result import PipelineResult
from .aggregate import aggregate_results, to_result_table
from .binder import bind_species, build_species_index
from .biomass import compute_biomass
from .grid import normalize_grid
from .metadata import merge_metadata, prepare_species_meta, prepare_survey_meta
from .progress import StageProgress
from .reshape import LongObservations, SurveyBlockSchema, resolve_survey_numbers

"""Pipeline orchestration.

build_biomass_table runs the in-memory transformation over already-read inputs:

    flags -> grid -> reshape -> species binding -> metadata merge
          -> biomass -> aggregation

run_pipeline adds the I/O around it: read the three workbooks, build the table,
write it out and flush the data-quality log. Single pass, single thread.
"""

logger = logging.getLogger(__name__)

STAGES = ("grid", "reshape", "species", "metadata", "biomass", "aggregate")


def _source_names(path: Path, sheet: str | None) -> tuple[str, str]:
    """(workbook file name, sheet name) used in data-quality records."""
    return (path.name, sheet or "")


def build_biomass_table(
    cells: Iterable[Cell],
    styles: StyleTable | None,
    survey_meta: pd.DataFrame,
    species_meta: pd.DataFrame,
    config: PipelineConfig | None = None,
    quality_log: DataQualityLog | None = None,
) -> PipelineResult:
    """Transform raw count cells + metadata sheets into the result table.

    Args:
        cells: cells of the counts sheet
        styles: style id -> has fill table of the counts sheet
        survey_meta: survey metadata sheet as read (header row = column names)
        species_meta: species reference sheet as read
        config: layout, size bands, column names; defaults apply when None
        quality_log: receives data-quality records

    Raises:
        SchemaMismatch: If the counts sheet does not fit the survey block schema.
        MissingColumnsError: If a metadata sheet lacks a configured column.
    """
    start = datetime.now(UTC)
    if config is None:
        layout, size_bands = GridLayout(), DEFAULT_SIZE_BANDS
        survey_columns, species_columns, require_date = None, None, True
        counts_src = survey_src = species_src = ("", "")
    else:
        layout, size_bands = config.layout, config.size_bands
        survey_columns, species_columns = config.survey_columns, config.species_columns
        require_date = config.require_survey_date
        counts_src = _source_names(config.survey_counts.path, config.survey_counts.sheet or DEFAULT_COUNTS_SHEET)
        survey_src = _source_names(config.survey_metadata.path, config.survey_metadata.sheet)
        species_src = _source_names(config.species_reference.path, config.species_reference.sheet)
    schema = SurveyBlockSchema.from_size_bands(size_bands)

    with StageProgress(len(STAGES)) as progress:
        grid = normalize_grid(cells, styles, layout, quality_log, source=counts_src[0])
        progress.advance("grid")

        survey_numbers = resolve_survey_numbers(grid, schema, quality_log, *counts_src)
        observations = LongObservations(grid, schema, survey_numbers)
        long_df = observations.to_frame()
        logger.info(
            f"reshaped {len(survey_numbers)} survey(s) x {grid.n_rows} species slot(s) "
            f"-> {len(long_df)} observation rows"
        )
        progress.advance("reshape")

        species_index = build_species_index(grid.species_labels, grid.n_rows, layout.label_separator)
        long_df = bind_species(long_df, species_index)
        progress.advance("species")

        surveys = prepare_survey_meta(
            survey_meta,
            survey_columns,
            require_date=require_date,
            quality_log=quality_log,
            source=survey_src[0],
            sheet=survey_src[1],
        )
        species = prepare_species_meta(
            species_meta,
            species_columns,
            quality_log=quality_log,
            source=species_src[0],
            sheet=species_src[1],
        )
        merged = merge_metadata(
            long_df,
            surveys,
            species,
            quality_log,
            survey_source=survey_src[0],
            survey_sheet=survey_src[1],
            species_source=species_src[0],
            species_sheet=species_src[1],
        )
        progress.advance("metadata")

        records = compute_biomass(merged.frame, schema.smallest_band)
        progress.advance("biomass")

        table = to_result_table(aggregate_results(records))
        progress.advance("aggregate")

    end = datetime.now(UTC)
    return PipelineResult(
        table=table,
        surveys=len(survey_numbers),
        species_slots=grid.n_rows,
        observations=len(long_df),
        dropped_rows=len(long_df) - len(records),
        output_rows=len(table),
        flagged_cells=grid.flagged_cells,
        malformed_cells=grid.malformed_cells,
        missing_species=merged.missing_species,
        missing_surveys=merged.missing_surveys,
        start_time=start,
        end_time=end,
        elapsed_seconds=(end - start).total_seconds(),
    )


def _flush_quality_log(quality_log: DataQualityLog) -> None:
    if not len(quality_log):
        return
    try:
        log_path = quality_log.flush()
        logger.info(f"data-quality records: {quality_log.total} -> {log_path}")
    except OSError as e:
        logger.warning(f"failed to write data-quality log: {e}")


def run_pipeline(config: PipelineConfig, quality_log: DataQualityLog | None = None) -> PipelineResult:
    """Read inputs, build the biomass table, write it and flush the data-quality log.

    Records collected before a fatal error are still flushed.

    Raises:
        WorkbookNotFoundError, WorkbookReadError, SheetNotFoundError: unreadable input
        SchemaMismatch, MissingColumnsError: inputs that do not fit the expected layout
        UnsupportedOutputError, OutputWriteError: the result table cannot be written
    """
    start = datetime.now(UTC)
    if quality_log is None:
        quality_log = DataQualityLog(config.logs_directory)

    try:
        counts = config.survey_counts
        counts_sheet = counts.sheet or DEFAULT_COUNTS_SHEET
        logger.info(f"reading counts: {counts.path} [{counts_sheet}]")
        cells, styles = read_cells(counts.path, counts_sheet)
        logger.info(f"reading survey metadata: {config.survey_metadata.path}")
        survey_meta = read_sheet_frame(config.survey_metadata.path, config.survey_metadata.sheet)
        logger.info(f"reading species reference: {config.species_reference.path}")
        species_meta = read_sheet_frame(config.species_reference.path, config.species_reference.sheet)

        result = build_biomass_table(cells, styles, survey_meta, species_meta, config, quality_log)

        output_path = write_result_table(result.table, config.output_path)
        logger.info(f"wrote {result.output_rows} row(s) to {output_path}")
    finally:
        _flush_quality_log(quality_log)

    end = datetime.now(UTC)
    return replace(
        result,
        start_time=start,
        end_time=end,
        elapsed_seconds=(end - start).total_seconds(),
        output_path=output_path,
    )


def inspect_counts(config: PipelineConfig) -> dict[str, Any]:
    """Describe the normalized counts sheet without computing biomass."""
    counts = config.survey_counts
    counts_sheet = counts.sheet or DEFAULT_COUNTS_SHEET
    cells, styles = read_cells(counts.path, counts_sheet)
    grid = normalize_grid(cells, styles, config.layout, source=counts.path.name)
    schema = SurveyBlockSchema.from_size_bands(config.size_bands)
    info: dict[str, Any] = {
        "sheet": counts_sheet,
        "rows": grid.n_rows,
        "columns": grid.n_columns,
        "block_width": schema.width,
        "species_labels": len(grid.species_labels),
        "first_labels": grid.species_labels[:5],
        "flagged_cells": grid.flagged_cells,
        "malformed_cells": grid.malformed_cells,
    }
    if grid.n_columns and grid.n_columns % schema.width == 0:
        info["survey_numbers"] = resolve_survey_numbers(grid, schema)
    else:
        info["survey_numbers"] = None
    return info
