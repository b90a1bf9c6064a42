from __future__ import annotations

from dataclasses import dataclass, replace

from .candidates import EntityKind
from .errors import RowNotFoundError
from .row import Row, RowStatus

"""PipelineState: the single explicit value describing an import in progress.

Owned by ImportController. Every operation (parse, validate, edit, delete,
commit step) is a transition returning a new PipelineState; nothing mutates it
in place.
"""

__all__ = [
    "PipelineState",
]


@dataclass(frozen=True)
class PipelineState:
    kind: EntityKind
    source_name: str | None = None  # file name of the current working set
    rows: tuple[Row, ...] = ()  # working set, ordered by index
    is_processing: bool = False  # commit in flight; edits/deletes rejected
    progress: float = 0.0  # processed / total of the current or last commit run
    completed: bool = False  # a commit run has finished on this working set

    def row(self, index: int) -> Row:
        for r in self.rows:
            if r.index == index:
                return r
        raise RowNotFoundError(index)

    def with_rows(self, rows: tuple[Row, ...]) -> PipelineState:
        return replace(self, rows=tuple(rows))

    def with_row(self, row: Row) -> PipelineState:
        """Replace the row sharing `row.index`."""
        self.row(row.index)
        return replace(self, rows=tuple(row if r.index == row.index else r for r in self.rows))

    def without_row(self, index: int) -> PipelineState:
        self.row(index)
        return replace(self, rows=tuple(r for r in self.rows if r.index != index))

    def count(self, status: RowStatus) -> int:
        return sum(1 for r in self.rows if r.status is status)

    def stats(self) -> dict[str, int]:
        return {s.value: self.count(s) for s in RowStatus}

    def reset(self) -> PipelineState:
        return PipelineState(kind=self.kind)
