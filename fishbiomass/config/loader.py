from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_COUNTS_SHEET,
    DEFAULT_METADATA_SHEET,
    DEFAULT_SIZE_BANDS,
    GridLayout,
    InputSource,
    PipelineConfig,
    SpeciesColumns,
    SurveyColumns,
)

"""Config loader.

Responsibilities:
- Load the YAML pipeline config (default config/pipeline.yml)
- Validate it against the packaged JSON schema (config_schema.json)
- Apply defaults and build the frozen PipelineConfig tree
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/pipeline.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails schema validation.
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _source(raw: dict[str, Any], default_sheet: str | None) -> InputSource:
    sheet = raw["sheet"] if "sheet" in raw else default_sheet
    return InputSource(path=Path(raw["path"]), sheet=sheet)


def _layout(raw: dict[str, Any]) -> GridLayout:
    layout = GridLayout(**raw)
    if layout.survey_header_row > layout.header_rows:
        raise ConfigError(
            f"layout.survey_header_row ({layout.survey_header_row}) must be within "
            f"the header rows (1..{layout.header_rows})"
        )
    return layout


def _size_bands(raw: list[float] | None) -> tuple[float, ...]:
    if raw is None:
        return DEFAULT_SIZE_BANDS
    bands = tuple(float(b) for b in raw)
    if len(set(bands)) != len(bands):
        raise ConfigError(f"size_bands contains duplicates: {list(bands)}")
    return bands


def load_config(path: Path) -> PipelineConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    inputs = data["inputs"]
    return PipelineConfig(
        survey_counts=_source(inputs["survey_counts"], DEFAULT_COUNTS_SHEET),
        survey_metadata=_source(inputs["survey_metadata"], DEFAULT_METADATA_SHEET),
        species_reference=_source(inputs["species_reference"], None),  # first sheet
        output_path=Path(data["output"]["path"]),
        layout=_layout(data.get("layout", {})),
        size_bands=_size_bands(data.get("size_bands")),
        survey_columns=SurveyColumns(**data.get("survey_columns", {})),
        species_columns=SpeciesColumns(**data.get("species_columns", {})),
        require_survey_date=data.get("require_survey_date", True),
        logs_directory=Path(data.get("logs_directory", "./logs")),
    )
