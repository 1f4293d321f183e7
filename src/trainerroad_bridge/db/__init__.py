"""Persistence layer for the TrainerRoad bridge."""

from .adapters import DataStore, SQLiteStore, SupabaseStore
from .schema import SCHEMA

__all__ = ["DataStore", "SQLiteStore", "SupabaseStore", "SCHEMA"]
