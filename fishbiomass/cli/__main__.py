from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from fishbiomass.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from fishbiomass.excel.reader import MissingColumnsError, SheetNotFoundError, WorkbookNotFoundError
from fishbiomass.excel.writer import UnsupportedOutputError
from fishbiomass.logging.error_log import DataQualityLog
from fishbiomass.logging.init import log_summary, set_debug, setup_logging
from fishbiomass.models.config_models import PipelineConfig
from fishbiomass.services.errors import PipelineError
from fishbiomass.services.pipeline import inspect_counts, run_pipeline
from fishbiomass.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- load .env (may set FISHBIOMASS_CONFIG)
- load and validate the YAML config
- run the pipeline (or --inspect-data: describe the counts sheet and exit)
- emit the SUMMARY line, return the exit code
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

CONFIG_ENV_VAR = "FISHBIOMASS_CONFIG"

# input/structure/output problems that end a run
# (WorkbookReadError and OutputWriteError are PipelineErrors)
FATAL_ERRORS = (
    PipelineError,
    WorkbookNotFoundError,
    SheetNotFoundError,
    MissingColumnsError,
    UnsupportedOutputError,
)


def _load_env_file(path: Path) -> None:
    """Load .env using python-dotenv; existing environment variables win."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fish survey counts -> per-survey, per-species biomass table")
    p.add_argument("--config", type=Path, default=None, help=f"Config YAML (default: ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print the normalized counts grid layout then exit")
    return p.parse_args(argv)


def _config_path(args: argparse.Namespace) -> Path:
    if args.config is not None:
        return args.config
    env = os.getenv(CONFIG_ENV_VAR)
    return Path(env) if env else DEFAULT_CONFIG_PATH


def _inspect_data(cfg: PipelineConfig) -> int:
    """Print the normalized counts grid layout.

    Returns:
        EXIT_SUCCESS; fatal read errors propagate to main().
    """
    info = inspect_counts(cfg)
    print(f"FILE: {cfg.survey_counts.path.name}")
    print(f"  SHEET: {info['sheet']} rows={info['rows']} columns={info['columns']} block_width={info['block_width']}")
    if info["survey_numbers"] is None:
        print(f"  surveys: column count {info['columns']} is not a multiple of {info['block_width']}")
    else:
        print(f"  surveys={len(info['survey_numbers'])} numbers={info['survey_numbers']}")
    print(f"  species_labels={info['species_labels']} first={info['first_labels']}")
    print(f"  flagged_cells={info['flagged_cells']} malformed_cells={info['malformed_cells']}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not fall back to sys.argv (pytest args)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    config_path = _config_path(args)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        try:
            return _inspect_data(cfg)
        except FATAL_ERRORS as e:
            logger.error(f"inspect: {e}")
            return EXIT_FATAL

    logger.info(f"config: {config_path}")
    quality_log = DataQualityLog(cfg.logs_directory)
    try:
        result = run_pipeline(cfg, quality_log)
    except FATAL_ERRORS as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_FATAL

    if result.missing_references:
        logger.warning(
            f"rows excluded for missing reference data: species={len(result.missing_species)} "
            f"surveys={len(result.missing_surveys)}"
        )

    # render_summary_line includes the "SUMMARY " label; log_summary adds it again
    log_summary(render_summary_line(result)[len("SUMMARY "):])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
