"""SQLite data store implementation.

Used for local development and tests. Implements the DataStore interface
over a single SQLite file.

Booleans come back as INTEGER 0/1 and timestamps as ISO TEXT; callers
convert on read. Upserts need SQLite 3.24+ for ON CONFLICT. Each operation
opens its own connection.
"""

import os
import re
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from . import DataStore, Filters, Row
from ...exceptions import DatabaseError


_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def get_default_db_path() -> Path:
    """BRIDGE_DB_PATH if set, else trainerroad_bridge.db at the project root."""
    override = os.environ.get("BRIDGE_DB_PATH")
    if override:
        return Path(override)
    return Path(__file__).parent.parent.parent.parent.parent / "trainerroad_bridge.db"


def _ident(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def _where(filters: Optional[Filters]) -> Tuple[str, List[Any]]:
    if not filters:
        return "", []
    clauses = []
    params: List[Any] = []
    for column, value in filters.items():
        if value is None:
            clauses.append(f"{_ident(column)} IS NULL")
        else:
            clauses.append(f"{_ident(column)} = ?")
            params.append(value)
    return " WHERE " + " AND ".join(clauses), params


class SQLiteStore(DataStore):
    """SQLite implementation of the DataStore interface.

    Usage:
        store = SQLiteStore()  # Uses default path
        store = SQLiteStore(db_path="custom.db")
        store.initialize()

        store.upsert("trainerroad_sessions", row, on_conflict="local_user_id")
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = Path(db_path) if db_path else get_default_db_path()

    def initialize(self) -> None:
        """Create the schema if it does not exist."""
        from ..schema import SCHEMA

        with self._get_connection() as conn:
            conn.executescript(SCHEMA)

    def close(self) -> None:
        """Connections are per-operation; nothing to release."""

    @contextmanager
    def _get_connection(self):
        """Get a database connection with context manager."""
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _operation(self, name: str, table: str):
        """Run a statement, converting sqlite errors to DatabaseError."""
        try:
            with self._get_connection() as conn:
                yield conn
        except sqlite3.Error as e:
            raise DatabaseError(
                f"SQLite {name} on {table} failed: {e}",
                operation=name,
                details={"table": table},
            ) from e

    # =========================================================================
    # Row operations
    # =========================================================================

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        where, params = _where(filters)
        sql = f"SELECT * FROM {_ident(table)}{where}"
        if order_by:
            sql += f" ORDER BY {_ident(order_by)} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with self._operation("select", table) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [dict(row) for row in rows]

    def insert(self, table: str, row: Row) -> Row:
        columns = [_ident(column) for column in row]
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {_ident(table)} ({', '.join(columns)}) VALUES ({placeholders})"

        with self._operation("insert", table) as conn:
            cursor = conn.execute(sql, list(row.values()))
            stored = conn.execute(
                f"SELECT * FROM {_ident(table)} WHERE rowid = ?",
                (cursor.lastrowid,),
            ).fetchone()
        return dict(stored) if stored else dict(row)

    def update(self, table: str, values: Row, filters: Filters) -> int:
        if not values:
            return 0
        assignments = ", ".join(f"{_ident(column)} = ?" for column in values)
        where, params = _where(filters)
        sql = f"UPDATE {_ident(table)} SET {assignments}{where}"

        with self._operation("update", table) as conn:
            cursor = conn.execute(sql, list(values.values()) + params)
        return cursor.rowcount

    def upsert(self, table: str, row: Row, on_conflict: str) -> Row:
        columns = [_ident(column) for column in row]
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(
            f"{column} = excluded.{column}" for column in columns if column != on_conflict
        )
        sql = (
            f"INSERT INTO {_ident(table)} ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT({_ident(on_conflict)}) DO UPDATE SET {updates}"
        )

        with self._operation("upsert", table) as conn:
            conn.execute(sql, list(row.values()))
            stored = conn.execute(
                f"SELECT * FROM {_ident(table)} WHERE {_ident(on_conflict)} = ?",
                (row[on_conflict],),
            ).fetchone()
        return dict(stored) if stored else dict(row)

    def delete(self, table: str, filters: Filters) -> int:
        where, params = _where(filters)
        if not where:
            raise ValueError("Refusing to delete without filters")

        with self._operation("delete", table) as conn:
            cursor = conn.execute(f"DELETE FROM {_ident(table)}{where}", params)
        return cursor.rowcount

    # =========================================================================
    # Health Check
    # =========================================================================

    def health_check(self) -> Dict[str, Any]:
        """Check database health and connectivity."""
        start_time = time.time()
        try:
            with self._get_connection() as conn:
                version = conn.execute("SELECT sqlite_version()").fetchone()[0]

            latency_ms = (time.time() - start_time) * 1000
            return {
                "healthy": True,
                "backend": "sqlite",
                "version": version,
                "latency_ms": round(latency_ms, 2),
                "details": {"db_path": str(self.db_path)},
            }

        except sqlite3.Error as e:
            latency_ms = (time.time() - start_time) * 1000
            return {
                "healthy": False,
                "backend": "sqlite",
                "version": None,
                "latency_ms": round(latency_ms, 2),
                "details": {"error": str(e), "db_path": str(self.db_path)},
            }
