from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.candidates import Candidate
from ..models.commit_result import CommitSummary, RowUpdate
from ..models.errors import CommitError, ImportPipelineError
from ..models.messages import ConfirmBatch
from ..models.row import Row, RowStatus

"""Commit engine: gate check + sequential asynchronous execution.

Gate:
- blocked while the working set is empty or any row is `error`
- one ConfirmBatch required while any row is `warning`

Execution:
- rows strictly in index order, one create call awaited at a time
- `error` rows and already `success` rows are never sent to the collaborator
- a failing row is recorded (status=error, message, commit_failed) and the loop
  continues; no row's outcome depends on another's
- a RowUpdate is yielded after every status change so progress is exact
- optional pacing delay after each attempted row (injectable sleep)
- optional CancellationToken checked before each row
"""

__all__ = [
    "CreateEntity",
    "Sleep",
    "CommitBlockedError",
    "ConfirmationRequiredError",
    "CancellationToken",
    "GateStatus",
    "GateResult",
    "check_gate",
    "require_gate",
    "summarize_rows",
    "CommitEngine",
]

logger = logging.getLogger(__name__)

CreateEntity = Callable[[Candidate], Any]  # sync value or awaitable
Sleep = Callable[[float], Awaitable[Any]]

UNKNOWN_ERROR = "Unknown error"


class CommitBlockedError(ImportPipelineError):
    """Commit refused: empty working set or rows still in `error`."""

    def __init__(self, message: str, error_rows: Sequence[int] = ()) -> None:
        super().__init__(message)
        self.error_rows = tuple(error_rows)


class ConfirmationRequiredError(ImportPipelineError):
    """Rows in `warning` exist and no (or a stale) ConfirmBatch was given."""

    def __init__(self, warning_rows: frozenset[int]) -> None:
        super().__init__(
            f"{len(warning_rows)} rows have default substitutions; confirm the batch to proceed"
        )
        self.warning_rows = warning_rows


class CancellationToken:
    """Cooperative cancellation flag checked by the commit loop between rows."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class GateStatus(Enum):
    READY = "ready"
    NEEDS_CONFIRMATION = "needs_confirmation"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class GateResult:
    status: GateStatus
    error_rows: tuple[int, ...] = ()
    warning_rows: frozenset[int] = frozenset()

    @property
    def can_commit(self) -> bool:
        return self.status is not GateStatus.BLOCKED

    def confirmation(self) -> ConfirmBatch:
        return ConfirmBatch(warning_rows=self.warning_rows)


def check_gate(rows: Sequence[Row]) -> GateResult:
    """canCommit = rows non-empty and no row in `error`."""
    error_rows = tuple(r.index for r in rows if r.status is RowStatus.ERROR)
    warning_rows = frozenset(r.index for r in rows if r.status is RowStatus.WARNING)
    if not rows or error_rows:
        return GateResult(GateStatus.BLOCKED, error_rows, warning_rows)
    if warning_rows:
        return GateResult(GateStatus.NEEDS_CONFIRMATION, (), warning_rows)
    return GateResult(GateStatus.READY)


def require_gate(rows: Sequence[Row], confirmation: ConfirmBatch | None) -> GateResult:
    """check_gate() that raises on refusal."""
    gate = check_gate(rows)
    if gate.status is GateStatus.BLOCKED:
        if not rows:
            raise CommitBlockedError("nothing to commit: the working set is empty")
        raise CommitBlockedError(
            f"{len(gate.error_rows)} rows have errors and must be fixed or removed before commit",
            gate.error_rows,
        )
    if gate.status is GateStatus.NEEDS_CONFIRMATION:
        if confirmation is None or confirmation.warning_rows != gate.warning_rows:
            raise ConfirmationRequiredError(gate.warning_rows)
    return gate


def summarize_rows(
    rows: Iterable[Row], elapsed_seconds: float = 0.0, skipped_rows: Iterable[int] = ()
) -> CommitSummary:
    """Aggregate counts for a finished (or cancelled) run.

    skipped_rows: indices that were already `error` when the run started.
    """
    rows = list(rows)
    skipped_set = set(skipped_rows)
    success = sum(1 for r in rows if r.status is RowStatus.SUCCESS)
    warning = sum(1 for r in rows if r.status is RowStatus.SUCCESS and r.warnings)
    skipped = sum(1 for r in rows if r.status is RowStatus.ERROR and r.index in skipped_set)
    error = sum(1 for r in rows if r.status is RowStatus.ERROR and r.index not in skipped_set)
    pending = len(rows) - success - error - skipped
    return CommitSummary(
        total=len(rows),
        success=success,
        error=error,
        warning=warning,
        skipped=skipped,
        pending=pending,
        elapsed_seconds=elapsed_seconds,
    )


def _error_type(exc: BaseException) -> str:
    if isinstance(exc, CommitError):
        return "COMMIT_ERROR"
    return "UNEXPECTED_ERROR"


class CommitEngine:
    """Sequential committer around one persistence collaborator.

    Args:
        create_entity: called once per eligible row with its candidate record;
            may be sync or async; any exception marks that row as failed
        delay_seconds: pacing delay awaited after each attempted row
        sleep: awaitable sleep used for pacing (tests inject a no-op)
        error_log: buffer receiving one ErrorRecord per failed row
    """

    def __init__(
        self,
        create_entity: CreateEntity,
        *,
        delay_seconds: float = 0.0,
        sleep: Sleep = asyncio.sleep,
        error_log: ErrorLogBuffer | None = None,
        source_name: str = "",
        entity: str = "",
    ) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self._create_entity = create_entity
        self.delay_seconds = delay_seconds
        self._sleep = sleep
        self.error_log = error_log
        self.source_name = source_name
        self.entity = entity

    async def _create(self, row: Row) -> None:
        result = self._create_entity(row.final_data)
        if inspect.isawaitable(result):
            await result

    async def _commit_row(self, row: Row) -> Row:
        try:
            await self._create(row)
        except Exception as e:  # 行単位で隔離: 失敗しても次の行へ続行
            message = str(e) or UNKNOWN_ERROR
            logger.warning("row %d failed: %s", row.index, message)
            if self.error_log is not None:
                self.error_log.append(
                    ErrorRecord.create(
                        file=self.source_name,
                        entity=self.entity,
                        row=row.index,
                        error_type=_error_type(e),
                        message=message,
                    )
                )
            return replace(
                row, status=RowStatus.ERROR, error=message, final_data=None, commit_failed=True
            )
        return replace(row, status=RowStatus.SUCCESS, error=None, commit_failed=False)

    async def stream(
        self, rows: Sequence[Row], *, cancel_token: CancellationToken | None = None
    ) -> AsyncIterator[RowUpdate]:
        """Commit eligible rows in index order, yielding every status change."""
        ordered = sorted(rows, key=lambda r: r.index)
        total = len(ordered)
        for i, row in enumerate(ordered):
            if cancel_token is not None and cancel_token.cancelled:
                logger.info("commit cancelled after %d/%d rows", i, total)
                return
            if row.status is RowStatus.ERROR:
                yield RowUpdate(row=row, processed=i + 1, total=total, skipped=True)
                continue
            if row.status is RowStatus.SUCCESS:
                # 前回の実行で作成済み: 再送しない
                yield RowUpdate(row=row, processed=i + 1, total=total)
                continue

            processing = replace(row, status=RowStatus.PROCESSING)
            yield RowUpdate(row=processing, processed=i, total=total)

            finished = await self._commit_row(processing)
            yield RowUpdate(row=finished, processed=i + 1, total=total)

            if self.delay_seconds > 0:
                await self._sleep(self.delay_seconds)

    async def commit(
        self,
        rows: Sequence[Row],
        *,
        cancel_token: CancellationToken | None = None,
        on_update: Callable[[RowUpdate], None] | None = None,
    ) -> tuple[tuple[Row, ...], CommitSummary]:
        """Run stream() to completion and return (final rows, summary).

        Gate checks are the caller's responsibility (see require_gate).
        """
        skipped = [r.index for r in rows if r.status is RowStatus.ERROR]
        latest = {r.index: r for r in rows}
        loop = asyncio.get_running_loop()
        start = loop.time()
        async for update in self.stream(rows, cancel_token=cancel_token):
            latest[update.row.index] = update.row
            if on_update is not None:
                on_update(update)
        final_rows = tuple(latest[r.index] for r in rows)
        return final_rows, summarize_rows(final_rows, loop.time() - start, skipped)
