from __future__ import annotations

import json
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Generator, List, Optional

from .models import (
    CREATED_AT_FIELD,
    ID_FIELD,
    OWNER_FIELD,
    PROTECTED_FIELDS,
    UPDATED_AT_FIELD,
    TodoEntity,
    new_identifier,
    parse_identifier,
    validate_document,
)
from .repositories import Repository, pending_changes, utcnow


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    owner: str = "owner"
    fields: str = "fields"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()


class SQLiteRepository(Repository):
    """
    SQLite-backed document store. Caller-supplied fields are kept as one JSON
    object per row; id, owner and timestamps get their own columns.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.owner} TEXT NOT NULL,
                    {_COLS.fields} TEXT NOT NULL,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_owner ON {_COLS.table}({_COLS.owner})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        entity: TodoEntity = json.loads(row[_COLS.fields])
        entity.update(
            {
                ID_FIELD: str(row[_COLS.id]),
                OWNER_FIELD: str(row[_COLS.owner]),
                CREATED_AT_FIELD: datetime.fromisoformat(row[_COLS.created_at]),
                UPDATED_AT_FIELD: datetime.fromisoformat(row[_COLS.updated_at]),
            }
        )
        return entity

    @staticmethod
    def _fields_json(document: Dict[str, Any]) -> str:
        return json.dumps({k: v for k, v in document.items() if k not in PROTECTED_FIELDS})

    def _select(self, conn: sqlite3.Connection, todo_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)
        ).fetchone()

    def find_all(self) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT * FROM {_COLS.table} ORDER BY rowid").fetchall()
            return [self._row_to_entity(r) for r in rows]

    def find_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        key = parse_identifier(todo_id)
        with self._conn() as conn:
            row = self._select(conn, key)
            return self._row_to_entity(row) if row else None

    def create(self, fields: Dict[str, Any]) -> TodoEntity:
        validate_document(fields)
        new_id = new_identifier()
        now = utcnow().isoformat()
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.owner}, {_COLS.fields},
                    {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, ?)
                """,
                (new_id, fields[OWNER_FIELD], self._fields_json(fields), now, now),
            )
            row = self._select(conn, new_id)
            assert row is not None
            return self._row_to_entity(row)

    def update(self, record: TodoEntity, changes: Dict[str, Any]) -> TodoEntity:
        with self._conn() as conn:
            row = self._select(conn, record[ID_FIELD])
            if not row:
                return dict(record)
            current = self._row_to_entity(row)

            diff = pending_changes(current, changes)
            if not diff:
                return current

            merged = {**current, **diff}
            validate_document(merged)
            conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.fields} = ?, {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ?
                """,
                (self._fields_json(merged), utcnow().isoformat(), record[ID_FIELD]),
            )
            row2 = self._select(conn, record[ID_FIELD])
            assert row2 is not None
            return self._row_to_entity(row2)

    def delete(self, record: TodoEntity) -> None:
        with self._conn() as conn:
            conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (record[ID_FIELD],))
