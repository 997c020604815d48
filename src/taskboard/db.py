from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List

from .models import TaskEntity
from .repositories import Repository, StoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    id: str = "id"
    title: str = "title"
    completed: str = "completed"
    created_at: str = "created_at"


_COLS = _Cols()


class Database:
    """
    Owns the sqlite file and hands out short-lived connections.

    Every ``connection()`` block commits on success, rolls back on failure and
    always closes the connection. sqlite errors leave the block as StoreError.
    """

    def __init__(self, db_path: str, timeout: float = 5.0) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._timeout = timeout

    @property
    def path(self) -> str:
        return self._db_path

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path, timeout=self._timeout)
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except (sqlite3.Error, OverflowError) as exc:
            # OverflowError: an int parameter outside the 64-bit INTEGER range
            conn.rollback()
            raise StoreError(str(exc)) from exc
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self) -> None:
        with self.connection() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.created_at} TEXT NOT NULL
                        DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_at ON {_COLS.table}({_COLS.created_at})"
            )
        logger.info("Task table ready in %s", self._db_path)


class SQLiteRepository(Repository):
    """
    Repository over the ``tasks`` table. Every statement is parameterized.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": int(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "completed": bool(row[_COLS.completed]),
            "created_at": datetime.fromisoformat(row[_COLS.created_at]),
        }

    def list_all(self) -> List[TaskEntity]:
        with self._db.connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} ORDER BY {_COLS.created_at} ASC, {_COLS.id} ASC"
            ).fetchall()
        logger.debug("%d items fetched from DB", len(rows))
        return [self._row_to_entity(r) for r in rows]

    def create(self, title: str) -> TaskEntity:
        with self._db.connection() as conn:
            cur = conn.execute(f"INSERT INTO {_COLS.table} ({_COLS.title}) VALUES (?)", (title,))
            row = conn.execute(
                f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (cur.lastrowid,)
            ).fetchone()
            if row is None:
                raise StoreError("inserted task could not be read back")
            return self._row_to_entity(row)

    def delete(self, task_id: int) -> int:
        with self._db.connection() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,))
            return cur.rowcount

    def edit_title(self, task_id: int, title: str) -> int:
        with self._db.connection() as conn:
            cur = conn.execute(
                f"UPDATE {_COLS.table} SET {_COLS.title} = ? WHERE {_COLS.id} = ?",
                (title, task_id),
            )
            return cur.rowcount

    def set_completed(self, task_id: int, completed: bool) -> int:
        with self._db.connection() as conn:
            cur = conn.execute(
                f"UPDATE {_COLS.table} SET {_COLS.completed} = ? WHERE {_COLS.id} = ?",
                (1 if completed else 0, task_id),
            )
            return cur.rowcount
