"""Repository for persisted TrainerRoad session bundles.

One row per local user in ``trainerroad_sessions``:
``{local_user_id (unique), cookie_bundle, is_active, updated_at}``.

When a cookie encryption key is configured the ``cookie_bundle`` column
holds Fernet ciphertext; otherwise it holds the plain
``name=value; name=value`` form.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..adapters import DataStore, Row
from ...integrations.cookies import DEFAULT_MARKER_COOKIE, SessionBundle
from ...models.trainerroad import parse_timestamp
from ...services.encryption import CookieEncryption, CookieEncryptionError


logger = logging.getLogger(__name__)

DEFAULT_SESSIONS_TABLE = "trainerroad_sessions"


@dataclass
class StoredSession:
    """A persisted session bundle for one local user."""

    local_user_id: str
    bundle: SessionBundle
    is_active: bool = True
    updated_at: Optional[datetime] = None
    marker_cookie: str = DEFAULT_MARKER_COOKIE

    @property
    def is_authenticated(self) -> bool:
        """False for placeholder bundles that lack the marker cookie."""
        return self.bundle.is_authenticated(self.marker_cookie)

    def to_dict(self) -> dict:
        return {
            "local_user_id": self.local_user_id,
            "is_active": self.is_active,
            "is_authenticated": self.is_authenticated,
            "cookie_count": len(self.bundle),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class SessionRepository:
    """
    Session store over a DataStore.

    ``get`` returns None when the user has no active row, and a
    StoredSession whose ``is_authenticated`` is False when the row exists
    but only holds placeholder cookies.
    """

    def __init__(
        self,
        store: DataStore,
        table: str = DEFAULT_SESSIONS_TABLE,
        encryption: Optional[CookieEncryption] = None,
        marker_cookie: str = DEFAULT_MARKER_COOKIE,
    ):
        self._store = store
        self._table = table
        self._encryption = encryption
        self._marker_cookie = marker_cookie

    def _encode(self, bundle: SessionBundle) -> str:
        raw = bundle.serialize()
        if self._encryption is None or not raw:
            return raw
        return self._encryption.encrypt(raw)

    def _decode(self, local_user_id: str, stored: Optional[str]) -> SessionBundle:
        if not stored:
            return SessionBundle()
        if self._encryption is None:
            return SessionBundle.from_string(stored)
        try:
            return SessionBundle.from_string(self._encryption.decrypt(stored))
        except CookieEncryptionError as e:
            logger.error(f"Failed to decrypt TrainerRoad cookies for user {local_user_id}: {e}")
            return SessionBundle()

    def _row_to_session(self, row: Row) -> StoredSession:
        updated_at = row.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = parse_timestamp(updated_at)
        return StoredSession(
            local_user_id=str(row["local_user_id"]),
            bundle=self._decode(str(row["local_user_id"]), row.get("cookie_bundle")),
            is_active=bool(row.get("is_active")),
            updated_at=updated_at,
            marker_cookie=self._marker_cookie,
        )

    def get(self, local_user_id: str) -> Optional[StoredSession]:
        """Return the user's active session, or None when there is none."""
        row = self._store.select_one(
            self._table,
            {"local_user_id": local_user_id, "is_active": True},
        )
        if row is None:
            return None
        return self._row_to_session(row)

    def upsert(self, local_user_id: str, bundle: SessionBundle) -> StoredSession:
        """Store ``bundle`` as the user's active session, replacing any previous one."""
        now = datetime.now(timezone.utc)
        row = {
            "local_user_id": local_user_id,
            "cookie_bundle": self._encode(bundle),
            "is_active": True,
            "updated_at": now.isoformat(),
        }
        self._store.upsert(self._table, row, on_conflict="local_user_id")
        logger.info(f"Stored TrainerRoad session for user {local_user_id} ({len(bundle)} cookies)")
        return StoredSession(
            local_user_id=local_user_id,
            bundle=bundle,
            is_active=True,
            updated_at=now,
            marker_cookie=self._marker_cookie,
        )

    def deactivate(self, local_user_id: str) -> bool:
        """Mark the user's session inactive. Returns True if a row changed."""
        changed = self._store.update(
            self._table,
            {
                "is_active": False,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            {"local_user_id": local_user_id},
        )
        return changed > 0
