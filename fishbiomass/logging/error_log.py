from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import DataQualityRecord

"""Data-quality log buffering.

- JSON Lines with a fixed key set (see DataQualityRecord)
- one file per run: `<logs_dir>/data-quality-YYYYMMDD-HHMMSS.log` (UTC)
- records are buffered in memory and appended on flush()
"""

__all__ = [
    "DataQualityRecord",
    "DataQualityLog",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class DataQualityLog:
    """In-memory buffer of data-quality records. flush() writes JSON Lines.

    The file path is fixed on first flush; later flushes append to it.
    Not thread safe (the pipeline is single threaded).
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[DataQualityRecord] = []
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._file_path: Path | None = None
        self._total = 0

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"data-quality-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[DataQualityRecord]:
        return list(self._records)

    @property
    def total(self) -> int:
        """Records appended over the buffer's lifetime, flushed or not."""
        return self._total

    def append(self, record: DataQualityRecord) -> None:
        self._records.append(record)
        self._total += 1

    def count(self, issue_type: str) -> int:
        return sum(1 for r in self._records if r.issue_type == issue_type)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file.

        Returns:
            The log file path, or None when nothing was ever recorded
            (no empty file is created).
        """
        if not self._records:
            return self._file_path
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
