from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Stage progress display with tqdm (TTY only).

One bar over the pipeline stages; disabled when stdout is not a TTY so CI logs
stay free of control sequences.
"""

__all__ = [
    "StageProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class StageProgress:
    """Progress bar over named pipeline stages."""

    def __init__(self, total_stages: int, *, description: str = "Building biomass table") -> None:
        self.total_stages = total_stages
        self.description = description
        self.current_stage = 0
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_stages,
                desc=description,
                unit="stage",
                leave=False,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, stage: str) -> None:
        """Mark `stage` as done."""
        self.current_stage += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({stage})")
            self.pbar.update(1)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> StageProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
