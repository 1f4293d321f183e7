"""Repositories over the DataStore."""

from .session_repository import SessionRepository, StoredSession

__all__ = ["SessionRepository", "StoredSession"]
