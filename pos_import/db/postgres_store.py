from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2 import sql

from .store import KINDS, SCOPED_KINDS, ImportStore, Record, StoreError

"""PostgreSQL-backed ImportStore over a psycopg2 cursor.

Table names equal the record kind; tenant column is organization_id.
Every statement, lookups included, runs inside its own SAVEPOINT: a failing
SELECT or a constraint violation is rolled back alone and the surrounding
transaction stays usable for the next row. Commit is the caller's
responsibility.
"""

__all__ = [
    "PostgresStore",
]

logger = logging.getLogger(__name__)

SCOPE_COLUMN = "organization_id"
SAVEPOINT = sql.Identifier("pos_import_row")


def _table(kind: str) -> sql.Identifier:
    if kind not in KINDS:
        raise StoreError(f"unknown record kind: {kind}")
    return sql.Identifier(kind)


class PostgresStore(ImportStore):
    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor

    def _fetch(self) -> list[Record]:
        try:
            rows = self.cursor.fetchall()
        except psycopg2.Error as e:
            raise StoreError(str(e).strip()) from e
        cols = [d[0] for d in (self.cursor.description or [])]
        return [dict(zip(cols, r)) for r in rows]

    def _execute(self, query: sql.Composable, params: list[Any]) -> None:
        try:
            self.cursor.execute(query, params)
        except psycopg2.Error as e:
            raise StoreError(str(e).strip()) from e

    @contextmanager
    def _savepoint(self):
        self._execute(sql.SQL("SAVEPOINT {}").format(SAVEPOINT), [])
        try:
            yield
        except Exception:
            self._execute(sql.SQL("ROLLBACK TO SAVEPOINT {}").format(SAVEPOINT), [])
            raise
        self._execute(sql.SQL("RELEASE SAVEPOINT {}").format(SAVEPOINT), [])

    def _where(self, kind: str, scope_id: str, key: Mapping[str, Any]) -> tuple[sql.Composable, list[Any]]:
        clauses: list[sql.Composable] = []
        params: list[Any] = []
        if kind in SCOPED_KINDS:
            clauses.append(sql.SQL("{} = %s").format(sql.Identifier(SCOPE_COLUMN)))
            params.append(scope_id)
        for col, value in key.items():
            ident = sql.Identifier(col)
            if value is None:
                clauses.append(sql.SQL("{} IS NULL").format(ident))
            elif col == "name":
                clauses.append(sql.SQL("lower({}) = lower(%s)").format(ident))
                params.append(str(value).strip())
            else:
                clauses.append(sql.SQL("{} = %s").format(ident))
                params.append(value)
        if not clauses:
            return sql.SQL("TRUE"), params
        return sql.SQL(" AND ").join(clauses), params

    def list_all(self, kind: str, scope_id: str) -> list[Record]:
        where, params = self._where(kind, scope_id, {})
        query = sql.SQL("SELECT * FROM {} WHERE {}").format(_table(kind), where)
        with self._savepoint():
            self._execute(query, params)
            rows = self._fetch()
        return rows

    def find_by_natural_key(self, kind: str, scope_id: str, key: Mapping[str, Any]) -> Record | None:
        where, params = self._where(kind, scope_id, key)
        query = sql.SQL("SELECT * FROM {} WHERE {} LIMIT 1").format(_table(kind), where)
        with self._savepoint():
            self._execute(query, params)
            rows = self._fetch()
        return rows[0] if rows else None

    def create_record(self, kind: str, scope_id: str, values: Mapping[str, Any]) -> Record:
        payload = dict(values)
        if kind in SCOPED_KINDS:
            payload[SCOPE_COLUMN] = scope_id
        cols = list(payload.keys())
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            _table(kind),
            sql.SQL(", ").join(sql.Identifier(c) for c in cols),
            sql.SQL(", ").join(sql.Placeholder() for _ in cols),
        )
        with self._savepoint():
            self._execute(query, [payload[c] for c in cols])
            rows = self._fetch()
        logger.debug("created kind=%s id=%s", kind, rows[0].get("id") if rows else None)
        if not rows:
            raise StoreError(f"insert into {kind} returned no row")
        return rows[0]

    def update_record(self, kind: str, record_id: Any, values: Mapping[str, Any]) -> Record:
        payload = {k: v for k, v in values.items() if k != "id"}
        if not payload:
            raise StoreError(f"nothing to update for {kind} {record_id}")
        query = sql.SQL("UPDATE {} SET {} WHERE {} = %s RETURNING *").format(
            _table(kind),
            sql.SQL(", ").join(sql.SQL("{} = %s").format(sql.Identifier(c)) for c in payload),
            sql.Identifier("id"),
        )
        with self._savepoint():
            self._execute(query, [*payload.values(), record_id])
            rows = self._fetch()
        if not rows:
            raise StoreError(f"{kind} record not found: {record_id}")
        return rows[0]
