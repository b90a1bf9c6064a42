from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from ..logging.error_log import ErrorLogBuffer
from ..models.commit_result import CommitSummary, RowUpdate
from ..models.errors import PipelineBusyError
from ..models.messages import ConfirmBatch, EditRequest, EditResult
from ..models.pipeline_state import PipelineState
from ..models.row import Row, RowStatus
from ..models.schema import EntitySchema, ValidationContext
from ..tabular.reader import parse_content, parse_file
from ..tabular.writer import export_rows
from .commit import CancellationToken, CommitEngine, CreateEntity, GateResult, Sleep, check_gate, require_gate
from .editor import apply_edit, delete_row
from .search import search_rows
from .validator import validate_rows

"""Import controller: owner of the single PipelineState value.

Every operator action goes through here and becomes one transition:

    load_file / load_content  parse -> validate, replaces the working set
    edit / delete             row editor transitions (global re-validation)
    set_context               new lookup context -> global re-validation
    gate / confirmation       commit gate inspection
    commit                    sequential commit run, state updated per RowUpdate
    search / export           read-only views of the working set
    reset                     back to an empty pipeline

While a commit is in flight `state.is_processing` is set and every mutating
request is rejected.
"""

__all__ = [
    "ImportController",
]

logger = logging.getLogger(__name__)


class ImportController:
    """Pipeline controller for one entity kind."""

    def __init__(
        self,
        schema: EntitySchema,
        context: ValidationContext,
        create_entity: CreateEntity,
        *,
        delay_seconds: float = 0.0,
        sleep: Sleep = asyncio.sleep,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.schema = schema
        self._context = context
        self.error_log = error_log if error_log is not None else ErrorLogBuffer()
        self._engine = CommitEngine(
            create_entity,
            delay_seconds=delay_seconds,
            sleep=sleep,
            error_log=self.error_log,
            entity=schema.kind.value,
        )
        self._state = PipelineState(kind=schema.kind)

    # ── State access ───────────────────────────────────────────────────

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def context(self) -> ValidationContext:
        return self._context

    def _ensure_idle(self, action: str) -> None:
        if self._state.is_processing:
            raise PipelineBusyError(f"cannot {action} while a commit is in progress")

    # ── Parse / validate ───────────────────────────────────────────────

    def _load(self, rows: tuple[Row, ...], source_name: str) -> PipelineState:
        validated = validate_rows(rows, self.schema, self._context)
        self._state = PipelineState(kind=self.schema.kind, source_name=source_name, rows=validated)
        stats = self._state.stats()
        logger.info(
            "loaded %s: %d rows (%d error, %d warning)",
            source_name,
            len(validated),
            stats["error"],
            stats["warning"],
        )
        return self._state

    def load_file(self, path: Path) -> PipelineState:
        """Parse + validate a file; replaces the working set. ParseError leaves state untouched."""
        self._ensure_idle("load a file")
        rows = parse_file(path, self.schema)
        return self._load(rows, path.name)

    def load_content(self, content: str | bytes, source_name: str = "<upload>") -> PipelineState:
        self._ensure_idle("load a file")
        rows = parse_content(content, self.schema)
        return self._load(rows, source_name)

    def set_context(self, context: ValidationContext) -> PipelineState:
        """Swap the defaulting context (e.g. refreshed categories) and re-validate everything."""
        self._ensure_idle("change the lookup context")
        self._context = context
        self._state = self._state.with_rows(validate_rows(self._state.rows, self.schema, context))
        return self._state

    # ── Row editor ─────────────────────────────────────────────────────

    def edit(self, request: EditRequest) -> EditResult:
        self._state, result = apply_edit(self._state, request, self.schema, self._context)
        if not result.accepted:
            logger.warning("edit of row %d rejected: %s", request.row_index, result.reason)
        return result

    def delete(self, index: int) -> PipelineState:
        self._state = delete_row(self._state, index, self.schema, self._context)
        return self._state

    # ── Review ─────────────────────────────────────────────────────────

    def search(self, query: str | None) -> tuple[Row, ...]:
        return search_rows(self._state.rows, query)

    def export(self, path: Path, query: str | None = None, *, include_status: bool = False) -> Path:
        rows = self.search(query)
        out = export_rows(rows, self.schema, path, include_status=include_status)
        logger.info("exported %d rows to %s", len(rows), out)
        return out

    # ── Commit ─────────────────────────────────────────────────────────

    def gate(self) -> GateResult:
        return check_gate(self._state.rows)

    def request_confirmation(self) -> ConfirmBatch | None:
        """ConfirmBatch for the current warning rows, or None when none is needed."""
        gate = self.gate()
        return gate.confirmation() if gate.warning_rows else None

    async def commit(
        self,
        confirmation: ConfirmBatch | None = None,
        *,
        cancel_token: CancellationToken | None = None,
        on_update: Callable[[RowUpdate], None] | None = None,
    ) -> CommitSummary:
        """Gate-check then commit the working set row by row.

        Raises:
            PipelineBusyError: a commit is already running
            CommitBlockedError: empty working set or rows in `error`
            ConfirmationRequiredError: warnings present without a matching ConfirmBatch
        """
        self._ensure_idle("start another commit")
        rows = self._state.rows
        require_gate(rows, confirmation)

        self._engine.source_name = self._state.source_name or ""
        before = {r.index: r for r in rows}
        self._state = replace(self._state, is_processing=True, progress=0.0, completed=False)
        logger.info("committing %d %s rows", len(rows), self.schema.kind.value)

        def _apply(update: RowUpdate) -> None:
            self._state = replace(self._state.with_row(update.row), progress=update.progress)
            if on_update is not None:
                on_update(update)

        try:
            _, summary = await self._engine.commit(rows, cancel_token=cancel_token, on_update=_apply)
        finally:
            # 中断時: processing のまま残った行は commit 前の状態へ戻す
            restored = tuple(
                before[r.index] if r.status is RowStatus.PROCESSING else r for r in self._state.rows
            )
            self._state = replace(
                self._state.with_rows(restored), is_processing=False, completed=True
            )
            log_path = self.error_log.flush()
            if log_path is not None:
                logger.info("commit errors written to %s", log_path)
        return summary

    def reset(self) -> PipelineState:
        self._ensure_idle("reset")
        self._state = self._state.reset()
        return self._state
