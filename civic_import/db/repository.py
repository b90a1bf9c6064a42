from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import psycopg2
from psycopg2 import sql

from ..models.candidates import Candidate
from ..models.errors import CommitError
from ..models.lookups import LookupTable

"""Persistence collaborators for the commit engine.

Both repositories expose `create(candidate) -> id`, raising CommitError when the
record cannot be stored. The commit engine calls `create` once per eligible row.

- InMemoryRepository: dry-run / test double, keeps created records in a list
- PostgresRepository: one INSERT ... RETURNING id per row, committed on its own
  so that one failing row never rolls back the others
"""

__all__ = [
    "InMemoryRepository",
    "PostgresRepository",
]

logger = logging.getLogger(__name__)


class InMemoryRepository:
    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []

    def create(self, candidate: Candidate) -> str:
        record = candidate.to_record()
        record["id"] = str(len(self.records) + 1)
        record["kind"] = candidate.kind.value
        self.records.append(record)
        return record["id"]


class PostgresRepository:
    """Row-at-a-time writer over a psycopg2 connection (autocommit off).

    Args:
        connection: psycopg2 connection
        tables: entity kind value -> table name (e.g. {"report": "reportes"})
    """

    def __init__(self, connection: Any, tables: Mapping[str, str]) -> None:
        self._connection = connection
        self._tables = dict(tables)

    def _table(self, kind: str) -> str:
        try:
            return self._tables[kind]
        except KeyError as e:
            raise CommitError(f"no table configured for {kind}") from e

    def create(self, candidate: Candidate) -> Any:
        record = candidate.to_record()
        columns = list(record)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING id").format(
            sql.Identifier(self._table(candidate.kind.value)),
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )
        try:
            with self._connection.cursor() as cur:
                cur.execute(query, [record[c] for c in columns])
                created = cur.fetchone()
            self._connection.commit()
        except psycopg2.Error as e:
            self._connection.rollback()
            message = (e.pgerror or str(e)).strip() or type(e).__name__
            raise CommitError(message) from e
        return created[0] if created else None

    def load_lookup(self, kind: str) -> LookupTable:
        """Read `id, nombre` pairs of a lookup table (categories / states)."""
        query = sql.SQL("SELECT id, nombre FROM {} ORDER BY id").format(
            sql.Identifier(self._table(kind))
        )
        with self._connection.cursor() as cur:
            cur.execute(query)
            rows = cur.fetchall()
        # 読み取りのみ: トランザクションを閉じておく
        self._connection.rollback()
        logger.debug("loaded %d %s lookup entries", len(rows), kind)
        return LookupTable.from_records({"id": r[0], "nombre": r[1]} for r in rows)
