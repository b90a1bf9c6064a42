from __future__ import annotations

from dataclasses import dataclass

"""Exception taxonomy shared by the import pipeline.

File-level failures (ParseError) live next to the reader; gate refusals live next
to the commit engine. The types here are the ones several layers need to see.
"""

__all__ = [
    "ImportPipelineError",
    "ValidationError",
    "ValidationWarning",
    "CommitError",
    "RowNotFoundError",
    "PipelineBusyError",
]


class ImportPipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class ValidationError(ImportPipelineError):
    """Hard per-field defect. The row becomes `error` and is excluded from commit."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


@dataclass(frozen=True)
class ValidationWarning:
    """Soft per-field default substitution (recorded, never raised).

    `original` is None when the cell was blank.
    """
    field: str
    original: str | None
    substitute: str

    @property
    def message(self) -> str:
        if self.original is None:
            return f'{self.field} is empty, using "{self.substitute}"'
        return f'{self.field} "{self.original}" is not valid, using "{self.substitute}"'


class CommitError(ImportPipelineError):
    """Raised by a persistence adapter when one record cannot be created."""


class RowNotFoundError(ImportPipelineError, KeyError):
    def __init__(self, index: int) -> None:
        super().__init__(f"row {index} is not in the working set")
        self.index = index

    def __str__(self) -> str:
        return str(self.args[0])


class PipelineBusyError(ImportPipelineError):
    """Raised when the working set is changed while a commit is in flight."""
