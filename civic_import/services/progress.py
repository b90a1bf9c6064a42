from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.commit_result import RowUpdate
from ..models.row import RowStatus

"""Progress display service with tqdm (TTY only).

Fed by the commit engine's RowUpdate stream. In non-TTY environments (CI,
piped output) no bar is created to avoid ANSI control sequence spam; the
tracker still records the latest progress so callers can query it.
"""

__all__ = [
    "CommitProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled."""
    return sys.stdout.isatty()


class CommitProgress:
    """Progress bar over the rows of one commit run."""

    def __init__(self, total_rows: int, *, description: str = "Committing rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.processed = 0
        self.counts = {"success": 0, "error": 0}

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

    @property
    def fraction(self) -> float:
        return self.processed / self.total_rows if self.total_rows else 0.0

    def update(self, update: RowUpdate) -> None:
        """Consume one RowUpdate (use as the controller's on_update callback)."""
        status = update.row.status
        if status is RowStatus.SUCCESS:
            self.counts["success"] += 1
        elif status is RowStatus.ERROR and not update.skipped:
            self.counts["error"] += 1

        advance = update.processed - self.processed
        self.processed = update.processed
        if self.enabled and self.pbar is not None:
            if status is RowStatus.PROCESSING:
                self.pbar.set_description(f"{self.description} (row {update.row.index})")
            else:
                self.pbar.set_description(self.description)
            if advance > 0:
                self.pbar.update(advance)
            self.pbar.set_postfix(**self.counts)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> CommitProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
