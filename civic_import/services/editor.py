from __future__ import annotations

import logging
from dataclasses import replace

from ..models.errors import PipelineBusyError
from ..models.messages import EditRequest, EditResult
from ..models.pipeline_state import PipelineState
from ..models.row import RowStatus
from ..models.schema import EntitySchema, ValidationContext
from .validator import validate_rows

"""Row editor: operator corrections and deletions as state transitions.

An accepted edit replaces the named raw fields, discards every previous
diagnostic of that row and re-validates the whole working set, so changes in the
shared defaulting context are reflected everywhere.
"""

__all__ = [
    "apply_edit",
    "delete_row",
]

logger = logging.getLogger(__name__)


def apply_edit(
    state: PipelineState,
    request: EditRequest,
    schema: EntitySchema,
    context: ValidationContext,
) -> tuple[PipelineState, EditResult]:
    """Apply one EditRequest.

    Raises:
        RowNotFoundError: request.row_index is not in the working set
        ValueError: request names a field the schema does not declare
    """
    if state.is_processing:
        return state, EditResult(request.row_index, accepted=False, reason="a commit is in progress")
    row = state.row(request.row_index)
    if row.is_locked:
        return state, EditResult(
            request.row_index,
            accepted=False,
            reason=f"row {row.index} is {row.status.value} and owned by the commit engine",
        )

    unknown = set(request.fields) - set(schema.field_names)
    if unknown:
        raise ValueError(f"unknown fields for {schema.kind.value}: {sorted(unknown)}")

    raw = dict(row.raw)
    raw.update(request.fields)
    edited = replace(
        row,
        raw=raw,
        status=RowStatus.PENDING,
        error=None,
        warnings=(),
        final_data=None,
        commit_failed=False,
    )
    new_state = state.with_row(edited)
    new_state = new_state.with_rows(validate_rows(new_state.rows, schema, context))
    updated = new_state.row(request.row_index)
    logger.debug("row %d edited -> %s", updated.index, updated.status.value)
    return new_state, EditResult(request.row_index, accepted=True, row=updated)


def delete_row(
    state: PipelineState,
    index: int,
    schema: EntitySchema,
    context: ValidationContext,
) -> PipelineState:
    """Remove one row without renumbering survivors.

    Deleting the last row resets the pipeline. Raises PipelineBusyError while a
    commit is in flight and RowNotFoundError for an unknown index.
    """
    if state.is_processing:
        raise PipelineBusyError("cannot delete rows while a commit is in progress")
    new_state = state.without_row(index)
    if not new_state.rows:
        logger.info("last row deleted, resetting pipeline")
        return state.reset()
    return new_state.with_rows(validate_rows(new_state.rows, schema, context))
