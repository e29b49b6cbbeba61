from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""DataQualityRecord model for the data-quality log.

Data-quality gaps (stale reference data, text in count cells, ...) never stop a
run; each one is captured as a DataQualityRecord and written as one JSON Lines
entry with a fixed set of keys.
"""

__all__ = [
    "DataQualityRecord",
    "MISSING_REFERENCE_DATA",
    "MALFORMED_CELL",
    "MISSING_SURVEY_NUMBER",
    "DUPLICATE_REFERENCE_KEY",
]

MISSING_REFERENCE_DATA = "MISSING_REFERENCE_DATA"
MALFORMED_CELL = "MALFORMED_CELL"
MISSING_SURVEY_NUMBER = "MISSING_SURVEY_NUMBER"
DUPLICATE_REFERENCE_KEY = "DUPLICATE_REFERENCE_KEY"


@dataclass(frozen=True)
class DataQualityRecord:
    """Structured data-quality record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: workbook file name the issue was found in
        sheet: sheet name within the workbook
        location: cell address ("R5C14") or key ("species=Chromis viridis")
        issue_type: classification in UPPER_SNAKE_CASE format
        message: human readable description
    """
    timestamp: str  # ISO8601 UTC
    source: str
    sheet: str
    location: str
    issue_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(source: str, sheet: str, location: str, issue_type: str, message: str) -> DataQualityRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return DataQualityRecord(
            timestamp=ts,
            source=source,
            sheet=sheet,
            location=location,
            issue_type=issue_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
