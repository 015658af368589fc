from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

if TYPE_CHECKING:
    from ..models.import_result import ImportResult

"""Row progress display with tqdm (TTY only).

A single bar advanced once per reconciled row, with created/updated/failed
counters as postfix. Disabled when stdout is not a TTY so CI logs stay free
of ANSI control sequences.
"""

__all__ = [
    "RowProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class RowProgressTracker:
    """Progress bar over the rows of one import run."""

    def __init__(self, total_rows: int, *, description: str = "Importing rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.current_row = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, result: ImportResult) -> None:
        """Count one finished row and refresh the counters."""
        self.current_row += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(created=result.created, updated=result.updated, failed=result.failed)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
