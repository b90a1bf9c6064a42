from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .row import Row

"""Request/response messages passed through the controller.

The engine never calls back into a UI: edits arrive as EditRequest and answer
with EditResult; the warning confirmation is an explicit ConfirmBatch value.
"""

__all__ = [
    "EditRequest",
    "EditResult",
    "ConfirmBatch",
]


@dataclass(frozen=True)
class EditRequest:
    row_index: int
    fields: Mapping[str, str | None] = field(default_factory=dict)  # raw field -> new cell text


@dataclass(frozen=True)
class EditResult:
    row_index: int
    accepted: bool
    row: Row | None = None  # row after global re-validation (accepted only)
    reason: str | None = None  # rejection reason


@dataclass(frozen=True)
class ConfirmBatch:
    """Single operator confirmation covering every row currently in `warning`.

    Bound to the exact set of warning rows it was issued for; if that set changes
    (edit, delete, reload) the confirmation is stale and a new one is required.
    """
    warning_rows: frozenset[int]
