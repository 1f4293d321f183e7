"""Dependency injection for API routes."""

from functools import lru_cache
from typing import AsyncIterator

import httpx
from fastapi import Depends

from ..config import Settings, get_settings
from ..db.adapters import DataStore, SQLiteStore, SupabaseStore
from ..db.repositories.session_repository import SessionRepository
from ..integrations.http import build_http_client
from ..services.encryption import CookieEncryption


@lru_cache
def get_data_store() -> DataStore:
    """Get the configured data store instance."""
    settings = get_settings()
    if settings.database_backend == "supabase":
        return SupabaseStore(url=settings.supabase_url, key=settings.supabase_service_key)

    store = SQLiteStore(str(settings.bridge_db_path))
    store.initialize()
    return store


def get_session_repository(
    store: DataStore = Depends(get_data_store),
    settings: Settings = Depends(get_settings),
) -> SessionRepository:
    """Get a session repository over the data store."""
    encryption = CookieEncryption.optional(settings.cookie_encryption_key)
    return SessionRepository(
        store,
        table=settings.sessions_table,
        encryption=encryption,
        marker_cookie=settings.trainerroad_marker_cookie,
    )


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[httpx.AsyncClient]:
    """Request-scoped HTTP client for upstream calls."""
    async with build_http_client(settings) as client:
        yield client
