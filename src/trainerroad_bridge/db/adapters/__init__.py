"""Database adapters for the coaching app's persistence store.

The bridge only needs a handful of generic row operations against a few
tables (sessions, users, programs, workouts). ``DataStore`` captures those
operations so the same code runs on SQLite in development and tests and on
Supabase in production.

Usage:
    # SQLite (development)
    from trainerroad_bridge.db.adapters import SQLiteStore
    store = SQLiteStore(db_path="trainerroad_bridge.db")

    # Supabase (production)
    from trainerroad_bridge.db.adapters import SupabaseStore
    store = SupabaseStore(url=SUPABASE_URL, key=SUPABASE_SERVICE_KEY)

    rows = store.select("programs", {"coach_id": coach_id, "user_id": client_id})
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


Row = Dict[str, Any]
Filters = Dict[str, Any]


class DataStore(ABC):
    """Abstract row store with column-equality filters."""

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the backend (create schema or verify connectivity)."""

    @abstractmethod
    def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    def health_check(self) -> Dict[str, Any]:
        """Return a small status dict describing backend health."""

    # =========================================================================
    # Row operations
    # =========================================================================

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        """Return rows whose columns equal every value in ``filters``."""

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        """Insert a row and return it as stored."""

    @abstractmethod
    def update(self, table: str, values: Row, filters: Filters) -> int:
        """Update matching rows; returns the number of rows changed."""

    @abstractmethod
    def upsert(self, table: str, row: Row, on_conflict: str) -> Row:
        """Insert or update keyed on the unique column ``on_conflict``."""

    @abstractmethod
    def delete(self, table: str, filters: Filters) -> int:
        """Delete matching rows; returns the number of rows removed."""

    def select_one(self, table: str, filters: Filters) -> Optional[Row]:
        """Return the first matching row or None."""
        rows = self.select(table, filters, limit=1)
        return rows[0] if rows else None


from .sqlite_adapter import SQLiteStore  # noqa: E402
from .supabase_adapter import SupabaseStore  # noqa: E402

__all__ = ["DataStore", "Filters", "Row", "SQLiteStore", "SupabaseStore"]
