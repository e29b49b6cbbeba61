from __future__ import annotations

"""Exceptions shared across pipeline services.

Only structural problems are fatal. Data-quality gaps go to the data-quality
log instead of being raised.
"""

__all__ = [
    "PipelineError",
    "SchemaMismatch",
]


class PipelineError(Exception):
    """Base exception for fatal pipeline errors."""
    pass


class SchemaMismatch(PipelineError):
    """Raised when the counts sheet does not fit the survey block schema.

    Covers a column count not divisible by the block width, a species label
    count different from the grid row count, and duplicate survey numbers.
    """
