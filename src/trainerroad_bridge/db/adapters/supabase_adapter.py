"""Supabase/PostgreSQL data store implementation.

Production backend for the DataStore interface, going through the Supabase
REST client. The schema (users, programs, workouts, trainerroad_sessions)
is owned by Supabase migrations, so ``initialize`` only verifies that the
project is reachable.

Credentials come from SUPABASE_URL and SUPABASE_SERVICE_KEY unless passed
explicitly. The bridge writes other users' session rows, so it normally runs
with the service role key; SUPABASE_ANON_KEY is read when
``use_service_key=False``.
"""

import os
import time
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from . import DataStore, Filters, Row
from ...exceptions import DatabaseError


def _apply_filters(query, filters: Optional[Filters]):
    for column, value in (filters or {}).items():
        if value is None:
            query = query.is_(column, "null")
        else:
            query = query.eq(column, value)
    return query


class SupabaseStore(DataStore):
    """DataStore over the Supabase query builder.

    Usage:
        store = SupabaseStore(url=settings.supabase_url, key=settings.supabase_service_key)
        store.select_one("users", {"id": user_id})
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        use_service_key: bool = True,
        client: Optional[Client] = None,
    ):
        """
        Raises:
            ValueError: If no URL or key is available and no ``client`` was given.
        """
        self._client: Optional[Client] = client
        self.url = url or os.environ.get("SUPABASE_URL", "")

        if key:
            self.key = key
        elif use_service_key:
            self.key = os.environ.get("SUPABASE_SERVICE_KEY", "")
        else:
            self.key = os.environ.get("SUPABASE_ANON_KEY", "")

        if client is None:
            missing = [name for name, value in (("project URL", self.url), ("API key", self.key)) if not value]
            if missing:
                raise ValueError(f"Supabase store is missing {' and '.join(missing)}")

    @property
    def client(self) -> Client:
        """Created on first use so construction never touches the network."""
        if self._client is None:
            self._client = create_client(self.url, self.key)
        return self._client

    def initialize(self) -> None:
        """Verify the Supabase project is reachable."""
        try:
            self.client.table("users").select("id").limit(1).execute()
        except Exception as e:
            raise ConnectionError(f"Failed to connect to Supabase: {e}")

    def close(self) -> None:
        self._client = None

    def _execute(self, operation: str, table: str, query) -> List[Row]:
        try:
            response = query.execute()
        except Exception as e:
            raise DatabaseError(
                f"Supabase {operation} on {table} failed: {e}",
                operation=operation,
                details={"table": table},
            ) from e
        return list(response.data or [])

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
        query = _apply_filters(self.client.table(table).select("*"), filters)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        return self._execute("select", table, query)

    def insert(self, table: str, row: Row) -> Row:
        data = self._execute("insert", table, self.client.table(table).insert(row))
        return data[0] if data else dict(row)

    def update(self, table: str, values: Row, filters: Filters) -> int:
        query = _apply_filters(self.client.table(table).update(values), filters)
        return len(self._execute("update", table, query))

    def upsert(self, table: str, row: Row, on_conflict: str) -> Row:
        query = self.client.table(table).upsert(row, on_conflict=on_conflict)
        data = self._execute("upsert", table, query)
        return data[0] if data else dict(row)

    def delete(self, table: str, filters: Filters) -> int:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        query = _apply_filters(self.client.table(table).delete(), filters)
        return len(self._execute("delete", table, query))

    # =========================================================================
    # Health Check
    # =========================================================================

    def health_check(self) -> Dict[str, Any]:
        """Check Supabase connectivity with a one-row query."""
        start_time = time.time()
        try:
            self.client.table("trainerroad_sessions").select("id").limit(1).execute()
            latency_ms = (time.time() - start_time) * 1000
            return {
                "healthy": True,
                "backend": "supabase",
                "latency_ms": round(latency_ms, 2),
                "details": {"url": self.url},
            }

        except Exception as e:
            latency_ms = (time.time() - start_time) * 1000
            return {
                "healthy": False,
                "backend": "supabase",
                "latency_ms": round(latency_ms, 2),
                "details": {"error": str(e), "url": self.url},
            }
