from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from ..models.errors import ValidationError
from ..models.row import Row, RowStatus
from ..models.schema import EntitySchema, ValidationContext

"""Validator / defaulter.

validate_rows() is pure and idempotent: the outcome of a row depends only on its
`raw`, its `index` and the ValidationContext.

Status precedence: error > warning > pending.

Rows the commit engine owns or has finished (processing / success) and rows
whose error came from a failed create call pass through untouched; only an
edit (which resets them) brings them back under validation.
"""

__all__ = [
    "validate_row",
    "validate_rows",
]

logger = logging.getLogger(__name__)


def _is_frozen(row: Row) -> bool:
    return row.is_locked or (row.status is RowStatus.ERROR and row.commit_failed)


def validate_row(row: Row, schema: EntitySchema, context: ValidationContext) -> Row:
    if _is_frozen(row):
        return row

    errors: list[str] = []
    warnings: list[str] = []
    resolved: dict[str, Any] = {}
    for spec in schema.fields:
        try:
            outcome = spec.rule.resolve(spec.name, row.raw.get(spec.name), row.index, context)
        except ValidationError as e:
            errors.append(e.message)
            continue
        resolved[spec.attribute] = outcome.value
        if outcome.warning is not None:
            warnings.append(outcome.warning.message)

    if errors:
        return replace(
            row,
            status=RowStatus.ERROR,
            error="; ".join(errors),
            warnings=tuple(warnings),
            final_data=None,
            commit_failed=False,
        )

    return replace(
        row,
        status=RowStatus.WARNING if warnings else RowStatus.PENDING,
        error=None,
        warnings=tuple(warnings),
        final_data=schema.build(**resolved),
        commit_failed=False,
    )


def validate_rows(
    rows: Iterable[Row], schema: EntitySchema, context: ValidationContext
) -> tuple[Row, ...]:
    """Validate the whole working set (order preserved)."""
    result = tuple(validate_row(r, schema, context) for r in rows)
    logger.debug(
        "validated %d %s rows: %d error, %d warning",
        len(result),
        schema.kind.value,
        sum(1 for r in result if r.status is RowStatus.ERROR),
        sum(1 for r in result if r.status is RowStatus.WARNING),
    )
    return result
