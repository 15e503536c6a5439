from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Generator, Iterator, List, Mapping, Optional, Tuple

from .errors import NotFoundError, StoreError
from .models import SORTABLE_FIELDS, TodoEntity, TodoStatus
from .query import SortSpec
from .repositories import Repository
from .utils import format_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    status: str = "status"
    deadline: str = "deadline"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, Enum):
        return value.value
    return value


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.

    Timestamps are stored as fixed-width UTC ISO strings so text ordering
    matches time ordering. Missing sort values compare as '' and so sort first.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise StoreError(f"cannot open database: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("SQLite operation failed: %s", e)
            raise StoreError(f"database error: {e}") from e
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.status} TEXT NOT NULL DEFAULT 'pending',
                    {_COLS.deadline} TEXT NULL,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_status ON {_COLS.table}({_COLS.status})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_at ON {_COLS.table}({_COLS.created_at})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        def parse_dt(s: Optional[str]) -> Optional[datetime]:
            if s is None:
                return None
            return datetime.fromisoformat(s)

        return {
            "id": int(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description],
            "status": TodoStatus(row[_COLS.status]),
            "deadline": parse_dt(row[_COLS.deadline]),
            "created_at": parse_dt(row[_COLS.created_at]),  # type: ignore
            "updated_at": parse_dt(row[_COLS.updated_at]),  # type: ignore
        }

    def _select_one(self, conn: sqlite3.Connection, todo_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()

    def insert(self, record: Mapping[str, Any]) -> int:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.title}, {_COLS.description}, {_COLS.status},
                    {_COLS.deadline}, {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record["title"],
                    record.get("description"),
                    _to_db(TodoStatus(record["status"])),
                    _to_db(record.get("deadline")),
                    _to_db(record["created_at"]),
                    _to_db(record["updated_at"]),
                ),
            )
            return int(cur.lastrowid)  # type: ignore[arg-type]

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._select_one(conn, todo_id)
            return self._row_to_entity(row) if row else None

    def update(self, todo_id: int, record: Mapping[str, Any]) -> TodoEntity:
        fields = [f for f in ("title", "description", "status", "deadline", "updated_at") if f in record]
        with self._conn() as conn:
            if self._select_one(conn, todo_id) is None:
                raise NotFoundError(todo_id)
            if fields:
                assignments = ", ".join(f"{getattr(_COLS, f)} = ?" for f in fields)
                conn.execute(
                    f"UPDATE {_COLS.table} SET {assignments} WHERE {_COLS.id} = ?",
                    [*(_to_db(record[f]) for f in fields), todo_id],
                )
            row = self._select_one(conn, todo_id)
            assert row is not None
            return self._row_to_entity(row)

    def delete(self, todo_id: int) -> None:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,))
            if cur.rowcount == 0:
                raise NotFoundError(todo_id)

    def _where(self, status: Optional[TodoStatus]) -> Tuple[List[str], List[Any]]:
        if status is None:
            return [], []
        return [f"{_COLS.status} = ?"], [status.value]

    def query(
        self,
        status: Optional[TodoStatus],
        sort: SortSpec,
        limit: int,
        resume_after: Optional[Mapping[str, Any]] = None,
    ) -> List[TodoEntity]:
        if sort.field not in SORTABLE_FIELDS:
            raise ValueError(f"unsupported sort field: {sort.field}")
        clauses, params = self._where(status)

        key_expr = f"COALESCE({sort.field}, '')"
        direction = "DESC" if sort.descending else "ASC"

        if resume_after is not None:
            op = "<" if sort.descending else ">"
            clauses.append(f"({key_expr}, {_COLS.id}) {op} (?, ?)")
            marker = _to_db(resume_after.get(sort.field))
            params.extend([marker if marker is not None else "", resume_after["id"]])

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_COLS.table}
                {where_sql}
                ORDER BY {key_expr} {direction}, {_COLS.id} {direction}
                LIMIT ?
                """,
                [*params, max(limit, 0)],
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def count(self, status: Optional[TodoStatus] = None) -> int:
        clauses, params = self._where(status)
        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._conn() as conn:
            count_row = conn.execute(
                f"SELECT COUNT(*) as cnt FROM {_COLS.table} {where_sql}", params
            ).fetchone()
            return int(count_row["cnt"]) if count_row else 0

    def scan_all(self) -> Iterator[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT * FROM {_COLS.table}").fetchall()
        return iter([self._row_to_entity(r) for r in rows])
