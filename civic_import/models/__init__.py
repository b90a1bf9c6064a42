"""Domain models for the civic bulk import pipeline.

This package contains the immutable value types shared by the parser, validator,
row editor, commit engine and controller.
"""

from .candidates import CategoryCandidate, EntityKind, Priority, ReportCandidate, StateCandidate
from .commit_result import CommitSummary, RowUpdate
from .entities import CATEGORY_SCHEMA, REPORT_SCHEMA, STATE_SCHEMA, get_schema
from .errors import (
    CommitError,
    ImportPipelineError,
    PipelineBusyError,
    RowNotFoundError,
    ValidationError,
    ValidationWarning,
)
from .lookups import LookupEntry, LookupTable
from .messages import ConfirmBatch, EditRequest, EditResult
from .pipeline_state import PipelineState
from .row import Row, RowStatus
from .schema import EntitySchema, ValidationContext

__all__ = [
    # Entities / schemas
    "EntityKind",
    "Priority",
    "ReportCandidate",
    "StateCandidate",
    "CategoryCandidate",
    "EntitySchema",
    "ValidationContext",
    "REPORT_SCHEMA",
    "STATE_SCHEMA",
    "CATEGORY_SCHEMA",
    "get_schema",
    "LookupEntry",
    "LookupTable",
    # Working set
    "Row",
    "RowStatus",
    "PipelineState",
    # Messages / results
    "EditRequest",
    "EditResult",
    "ConfirmBatch",
    "RowUpdate",
    "CommitSummary",
    # Errors
    "ImportPipelineError",
    "ValidationError",
    "ValidationWarning",
    "CommitError",
    "RowNotFoundError",
    "PipelineBusyError",
]
