from __future__ import annotations

from unittest.mock import MagicMock

import psycopg2
from psycopg2 import sql
import pytest

from civic_import.config.loader import DatabaseConfig
from civic_import.db.connection import build_dsn
from civic_import.db.repository import InMemoryRepository, PostgresRepository
from civic_import.models.candidates import StateCandidate
from civic_import.models.errors import CommitError

TABLES = {"report": "reportes", "state": "estados", "category": "categories"}


def _candidate(name: str = "Nuevo") -> StateCandidate:
    return StateCandidate(name=name, description="d", color="#000000", icon="Plus")


def _connection(fetchone=(42,), fetchall=()):
    conn = MagicMock()
    cur = conn.cursor.return_value.__enter__.return_value
    cur.fetchone.return_value = fetchone
    cur.fetchall.return_value = list(fetchall)
    return conn, cur


def test_in_memory_repository_assigns_ids():
    repo = InMemoryRepository()
    assert repo.create(_candidate("A")) == "1"
    assert repo.create(_candidate("B")) == "2"
    assert repo.records[1]["nombre"] == "B"
    assert repo.records[1]["kind"] == "state"
    assert repo.records[1]["activo"] is True


def test_postgres_create_commits_each_row():
    conn, cur = _connection()
    repo = PostgresRepository(conn, TABLES)
    assert repo.create(_candidate()) == 42
    query, params = cur.execute.call_args.args
    assert params == ["Nuevo", "d", "#000000", "Plus", True]
    assert isinstance(query, sql.Composed)
    conn.commit.assert_called_once()
    conn.rollback.assert_not_called()


def test_postgres_failure_rolls_back_and_raises_commit_error():
    conn, cur = _connection()
    err = psycopg2.IntegrityError("duplicate key value violates unique constraint")
    cur.execute.side_effect = err
    repo = PostgresRepository(conn, TABLES)
    with pytest.raises(CommitError, match="duplicate key") as exc:
        repo.create(_candidate())
    assert exc.value.__cause__ is err
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()


def test_postgres_unknown_table():
    conn, _ = _connection()
    with pytest.raises(CommitError, match="no table configured"):
        PostgresRepository(conn, {}).create(_candidate())


def test_load_lookup():
    conn, cur = _connection(fetchall=[(2, "Nuevo"), (1, "Sin estado")])
    table = PostgresRepository(conn, TABLES).load_lookup("state")
    assert [(e.id, e.name) for e in table.entries] == [("2", "Nuevo"), ("1", "Sin estado")]
    conn.rollback.assert_called_once()


def test_load_lookup_keeps_store_order():
    conn, cur = _connection(fetchall=[(1, "Nuevo"), (2, "Abierto")])
    table = PostgresRepository(conn, TABLES).load_lookup("state")
    (query,) = cur.execute.call_args.args
    literals = [part.string for part in query.seq if isinstance(part, sql.SQL)]
    assert literals[-1].strip() == "ORDER BY id"
    # 既定名が無いときは最初の登録行
    assert table.default("Sin estado").name == "Nuevo"


def test_build_dsn_precedence(monkeypatch):
    for var in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(var, raising=False)
    cfg = DatabaseConfig(host="db", port=6543, user="app", password="pw", database="civic")
    assert build_dsn(cfg) == "host=db port=6543 user=app dbname=civic password=pw"

    monkeypatch.setenv("PGHOST", "envhost")
    assert build_dsn(cfg).startswith("host=envhost port=6543")

    monkeypatch.setenv("DATABASE_URL", "postgresql://u@h/d")
    assert build_dsn(cfg) == "postgresql://u@h/d"


def test_build_dsn_defaults(monkeypatch):
    for var in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(var, raising=False)
    assert build_dsn(DatabaseConfig()) == "host=localhost port=5432 user=postgres dbname=postgres"
