from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

import pandas as pd

from ..models.row import Row
from ..models.schema import EntitySchema

"""Tabular writers: working-set export and downloadable templates.

Output uses the same header layout the reader accepts, so an exported file can
be corrected offline and imported again. `.xlsx` targets are written as a
workbook, anything else as UTF-8 CSV.
"""

__all__ = [
    "rows_to_frame",
    "export_rows",
    "write_template",
]

STATUS_COLUMNS = ["status", "error"]


def rows_to_frame(rows: Iterable[Row], schema: EntitySchema, include_status: bool = False) -> pd.DataFrame:
    columns = schema.columns + (STATUS_COLUMNS if include_status else [])
    records = []
    for row in rows:
        rec: dict[str, str | None] = {col: row.raw.get(col) for col in schema.columns}
        if include_status:
            rec["status"] = row.status.value
            rec["error"] = row.error
        records.append(rec)
    return pd.DataFrame.from_records(records, columns=columns)


def _write_frame(df: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".xlsx":
        df.to_excel(path, index=False)
    else:
        df.to_csv(path, index=False, encoding="utf-8")
    return path


def export_rows(
    rows: Iterable[Row], schema: EntitySchema, path: Path, *, include_status: bool = False
) -> Path:
    """Serialize rows (raw values) back to the import format.

    With include_status=True two trailing columns (status, error) are appended;
    the reader ignores them on re-import.
    """
    return _write_frame(rows_to_frame(rows, schema, include_status=include_status), path)


def write_template(schema: EntitySchema, path: Path, rows: Iterable[Mapping[str, str]] | None = None) -> Path:
    """Write the downloadable template (header + example rows) for an entity kind."""
    examples = list(rows) if rows is not None else list(schema.template_rows)
    df = pd.DataFrame.from_records(examples, columns=schema.columns)
    return _write_frame(df, path)
