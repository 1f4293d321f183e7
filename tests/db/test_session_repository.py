"""Tests for the TrainerRoad session repository."""

from trainerroad_bridge.db.repositories.session_repository import SessionRepository
from trainerroad_bridge.integrations.cookies import SessionBundle
from trainerroad_bridge.services.encryption import CookieEncryption

from conftest import AUTH_COOKIES


class TestSessionRepository:
    """Tests for plaintext session storage."""

    def test_get_missing_returns_none(self, sessions):
        assert sessions.get("nobody") is None

    def test_upsert_then_get(self, sessions, store):
        sessions.upsert("u1", SessionBundle.from_string(AUTH_COOKIES))

        stored = sessions.get("u1")

        assert stored.is_active is True
        assert stored.is_authenticated is True
        assert stored.bundle.serialize() == AUTH_COOKIES
        assert stored.updated_at is not None
        assert store.select_one("trainerroad_sessions", {"local_user_id": "u1"})["cookie_bundle"] == AUTH_COOKIES

    def test_upsert_keeps_one_row_per_user(self, sessions, store):
        sessions.upsert("u1", SessionBundle.from_string("SharedTrainerRoadAuth=first"))
        sessions.upsert("u1", SessionBundle.from_string("SharedTrainerRoadAuth=second"))

        assert len(store.select("trainerroad_sessions", {"local_user_id": "u1"})) == 1
        assert sessions.get("u1").bundle.get("SharedTrainerRoadAuth") == "second"

    def test_placeholder_row_is_not_authenticated(self, sessions):
        sessions.upsert("u1", SessionBundle.from_string("dummy_session=test_value; authenticated=true"))

        stored = sessions.get("u1")

        assert stored is not None
        assert stored.is_authenticated is False

    def test_deactivate_hides_session(self, sessions, store):
        sessions.upsert("u1", SessionBundle.from_string(AUTH_COOKIES))

        assert sessions.deactivate("u1") is True
        assert sessions.get("u1") is None
        assert store.select_one("trainerroad_sessions", {"local_user_id": "u1"})["is_active"] == 0

    def test_deactivate_missing_user(self, sessions):
        assert sessions.deactivate("nobody") is False

    def test_upsert_reactivates(self, sessions):
        sessions.upsert("u1", SessionBundle.from_string(AUTH_COOKIES))
        sessions.deactivate("u1")

        sessions.upsert("u1", SessionBundle.from_string(AUTH_COOKIES))

        assert sessions.get("u1") is not None

    def test_to_dict_omits_cookie_values(self, sessions):
        stored = sessions.upsert("u1", SessionBundle.from_string(AUTH_COOKIES))

        payload = stored.to_dict()

        assert payload["cookie_count"] == 2
        assert "auth-value" not in str(payload)


class TestEncryptedSessionRepository:
    """Tests for sessions encrypted at rest."""

    def test_bundle_encrypted_in_store(self, store):
        encryption = CookieEncryption(CookieEncryption.generate_key())
        repository = SessionRepository(store, encryption=encryption)

        repository.upsert("u1", SessionBundle.from_string(AUTH_COOKIES))

        raw = store.select_one("trainerroad_sessions", {"local_user_id": "u1"})["cookie_bundle"]
        assert "SharedTrainerRoadAuth" not in raw
        assert repository.get("u1").bundle.serialize() == AUTH_COOKIES

    def test_wrong_key_yields_empty_bundle(self, store):
        SessionRepository(store, encryption=CookieEncryption(CookieEncryption.generate_key())).upsert(
            "u1", SessionBundle.from_string(AUTH_COOKIES)
        )
        other = SessionRepository(store, encryption=CookieEncryption(CookieEncryption.generate_key()))

        stored = other.get("u1")

        assert stored is not None
        assert len(stored.bundle) == 0
        assert stored.is_authenticated is False
