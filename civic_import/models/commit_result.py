from __future__ import annotations

from dataclasses import dataclass

from .row import Row

"""Commit run result models.

RowUpdate is streamed by the commit engine after every status change;
CommitSummary aggregates the terminal state of a run.
"""

__all__ = [
    "RowUpdate",
    "CommitSummary",
]


@dataclass(frozen=True)
class RowUpdate:
    """One status change published by the commit engine."""
    row: Row
    processed: int  # rows finished so far (attempted or skipped)
    total: int
    skipped: bool = False  # row was already `error` and not attempted

    @property
    def progress(self) -> float:
        """Fraction in [0, 1]."""
        if self.total == 0:
            return 0.0
        return self.processed / self.total


@dataclass(frozen=True)
class CommitSummary:
    """Aggregate counts after a commit run.

    success + error + skipped + pending == total always holds.
    """
    total: int
    success: int  # rows in `success`
    error: int  # rows whose create call failed in this or a previous run
    warning: int  # successful rows that carried default substitutions
    skipped: int  # rows already in validation `error` at commit time
    pending: int  # rows left unattempted (cancelled run)
    elapsed_seconds: float = 0.0

    @property
    def is_partial(self) -> bool:
        return self.success > 0 and (self.error > 0 or self.skipped > 0 or self.pending > 0)
