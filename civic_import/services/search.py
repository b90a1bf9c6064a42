from __future__ import annotations

from collections.abc import Iterable

from ..models.row import Row

"""Review/search surface: case-insensitive substring filter over the working set."""

__all__ = [
    "search_rows",
]


def search_rows(rows: Iterable[Row], query: str | None) -> tuple[Row, ...]:
    """Rows whose raw text values or error message contain `query`.

    A blank query matches every row. The input is never modified.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return tuple(rows)
    return tuple(r for r in rows if any(needle in v.lower() for v in r.text_values()))
