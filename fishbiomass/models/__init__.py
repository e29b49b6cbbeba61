"""Domain models for the fish survey biomass pipeline."""

from .cell import Cell, StyleTable
from .config_models import GridLayout, InputSource, PipelineConfig, SpeciesColumns, SurveyColumns
from .error_record import DataQualityRecord
from .observation import LongObservation
from .processing_result import PipelineResult

__all__ = [
    # Configuration models
    "GridLayout",
    "InputSource",
    "PipelineConfig",
    "SpeciesColumns",
    "SurveyColumns",
    # Processing models
    "Cell",
    "StyleTable",
    "LongObservation",
    "DataQualityRecord",
    "PipelineResult",
]
