from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .candidates import Candidate

"""Row model: the unit of work of a bulk import.

A Row is created by the parser (status=pending), recomputed by the validator,
re-validated after operator edits, and moved through processing -> success/error
exclusively by the commit engine. Rows are immutable; every transition returns a
new Row via dataclasses.replace.
"""

__all__ = [
    "RowStatus",
    "Row",
]


class RowStatus(Enum):
    """Row lifecycle status.

    State transitions: pending/warning -> processing -> (success | error)
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Row:
    """One file-derived candidate awaiting validation/commit.

    Invariant: `final_data` is None if and only if status is ERROR.
    """
    index: int  # 1-based position among data rows; stable across edits/deletes
    raw: dict[str, str | None]  # schema field -> untouched cell text (None = column absent)
    status: RowStatus = RowStatus.PENDING
    error: str | None = None
    warnings: tuple[str, ...] = ()
    final_data: Candidate | None = None
    commit_failed: bool = False  # error came from the persistence collaborator

    @property
    def is_locked(self) -> bool:
        """True once the commit engine owns the row."""
        return self.status in (RowStatus.PROCESSING, RowStatus.SUCCESS)

    def text_values(self) -> list[str]:
        """Every textual value an operator may search on (raw cells + error)."""
        values = [v for v in self.raw.values() if v]
        if self.error:
            values.append(self.error)
        return values
