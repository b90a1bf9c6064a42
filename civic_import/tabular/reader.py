from __future__ import annotations

import io
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.errors import ImportPipelineError
from ..models.row import Row, RowStatus
from ..models.schema import EntitySchema

"""Tabular file reader (parser stage).

First line is the header; every following non-empty line becomes one Row whose
`raw` is keyed by the schema's field names. Header cells are stripped and
matched case-insensitively; unknown columns are ignored and schema columns
missing from the file are recorded as None. A line holding only separators is
still a Row (its cells are empty strings); only truly empty lines are skipped.

pandas does the tokenizing for both delimited text and .xlsx workbooks. All cells
are read as text (dtype=str, no NA conversion) so that `raw` stays untouched.
"""

__all__ = [
    "ParseError",
    "parse_file",
    "parse_content",
    "rows_from_frame",
]

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
DELIMITERS = (",", ";", "\t", "|")


class ParseError(ImportPipelineError):
    """Raised when the file cannot be read as the expected tabular format.

    Fatal and file-level: no Row exists when this is raised.
    """


def parse_file(path: Path, schema: EntitySchema) -> tuple[Row, ...]:
    """Parse a .csv or .xlsx file into pending Rows indexed 1..N."""
    if not path.exists():
        raise ParseError(f"file not found: {path}")
    if path.suffix.lower() in EXCEL_SUFFIXES:
        try:
            df = pd.read_excel(path, sheet_name=0, header=0, dtype=str, keep_default_na=False)
        except Exception as e:
            raise ParseError(f"cannot read workbook {path.name}: {e}") from e
        return rows_from_frame(df, schema)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise ParseError(f"cannot read {path.name}: {e}") from e
    return parse_content(content, schema)


def _infer_delimiter(text: str) -> str:
    """Pick the separator that occurs most often in the header line (comma on ties)."""
    header = text.lstrip("\r\n").splitlines()[0] if text.strip() else ""
    ranked = [(sep, header.count(sep)) for sep in DELIMITERS]
    ranked.sort(key=lambda item: item[1], reverse=True)
    if ranked[0][1] <= 0:
        return ","
    return ranked[0][0]


def parse_content(content: str | bytes, schema: EntitySchema) -> tuple[Row, ...]:
    """Parse delimited text (bytes are decoded as UTF-8, BOM tolerated).

    The separator is inferred from the header line: comma, semicolon, tab or pipe.
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"file is not valid UTF-8: {e}") from e
    else:
        text = content.removeprefix("\ufeff")
    if not text.strip():
        raise ParseError("file is empty")
    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=_infer_delimiter(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ParseError(f"cannot tokenize file: {e}") from e
    return rows_from_frame(df, schema)


def _cell(val: Any) -> str | None:
    if val is None or (not isinstance(val, str) and pd.isna(val)):
        return None
    return str(val)


def rows_from_frame(df: pd.DataFrame, schema: EntitySchema) -> tuple[Row, ...]:
    """Map a header-applied DataFrame onto the schema's fields.

    Raises ParseError when the header shares no column with the schema.
    """
    wanted = set(schema.field_names)
    column_map: dict[Any, str] = {}
    for col in df.columns:
        key = str(col).strip().lower()
        # 重複ヘッダは最初の列を採用
        if key in wanted and key not in column_map.values():
            column_map[col] = key
    if not column_map:
        raise ParseError(
            f"no recognised columns for {schema.kind.value}; expected: {', '.join(schema.columns)}"
        )

    rows: list[Row] = []
    for record in df.to_dict(orient="records"):
        values = [record.get(col) for col in column_map]
        raw = schema.empty_raw()
        for col, val in zip(column_map, values, strict=True):
            raw[column_map[col]] = _cell(val)
        rows.append(Row(index=len(rows) + 1, raw=raw, status=RowStatus.PENDING))
    return tuple(rows)
