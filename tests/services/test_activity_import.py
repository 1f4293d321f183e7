"""Tests for importing TrainerRoad rides as local workouts."""

from unittest.mock import patch

import httpx
import pytest

from trainerroad_bridge.exceptions import DatabaseError, IntegrationError
from trainerroad_bridge.integrations.cookies import SessionBundle
from trainerroad_bridge.integrations.trainerroad import TrainerRoadClient
from trainerroad_bridge.services.activity_import import ActivityImportService

from conftest import AUTH_COOKIES, make_activity

RECENT = "/app/api/career/self/recent-activities"
USER_ID = "client-1"


def serve_recent(upstream, activities):
    upstream.add("GET", RECENT, lambda request: httpx.Response(200, json=activities))


class TestActivityImportService:
    """Tests for import_recent."""

    @pytest.mark.asyncio
    async def test_imports_rides_as_completed_workouts(self, settings, upstream, store, sessions):
        sessions.upsert(USER_ID, SessionBundle.from_string(AUTH_COOKIES))
        program = store.insert("programs", {"coach_id": "coach-1", "user_id": USER_ID, "name": "Base"})
        serve_recent(upstream, [
            make_activity(11, "2026-01-02T08:00:00", Duration=5430),
            make_activity(10, "2026-01-01T08:00:00", SurveyOptionText=None),
        ])

        async with upstream.client() as http:
            client = TrainerRoadClient(USER_ID, sessions, settings, http_client=http)
            result = await ActivityImportService(client, store).import_recent(program["id"])

        assert result.imported == 2
        assert result.skipped == 0
        assert len(result.workout_ids) == 2
        assert result.duration_seconds is not None

        rows = store.select("workouts", {"user_id": USER_ID}, order_by="id")
        assert rows[0]["name"] == "Ride 11 (TrainerRoad)"
        assert rows[0]["workout_type"] == "cardio"
        assert rows[0]["duration_minutes"] == 90
        assert rows[0]["completed"] == 1
        assert rows[0]["external_activity_id"] == "11"
        assert rows[0]["actual_tss"] == 58
        assert rows[0]["target_tss"] == 60
        assert rows[0]["notes"] == "Survey: Moderate"
        assert rows[1]["notes"] is None
        assert rows[0]["program_id"] == program["id"]

    @pytest.mark.asyncio
    async def test_second_import_skips_existing(self, settings, upstream, store, sessions):
        sessions.upsert(USER_ID, SessionBundle.from_string(AUTH_COOKIES))
        serve_recent(upstream, [make_activity(1, "2026-01-01T08:00:00")])

        async with upstream.client() as http:
            client = TrainerRoadClient(USER_ID, sessions, settings, http_client=http)
            service = ActivityImportService(client, store)
            await service.import_recent(1)
            result = await service.import_recent(1)

        assert result.imported == 0
        assert result.skipped == 1
        assert len(store.select("workouts")) == 1

    @pytest.mark.asyncio
    async def test_not_connected_propagates(self, settings, upstream, store, sessions):
        async with upstream.client() as http:
            client = TrainerRoadClient(USER_ID, sessions, settings, http_client=http)
            with pytest.raises(IntegrationError) as exc_info:
                await ActivityImportService(client, store).import_recent(1)

        assert exc_info.value.status_code == 401
        assert store.select("workouts") == []

    @pytest.mark.asyncio
    async def test_storage_failure_is_500(self, settings, upstream, store, sessions):
        sessions.upsert(USER_ID, SessionBundle.from_string(AUTH_COOKIES))
        serve_recent(upstream, [make_activity(1, "2026-01-01T08:00:00")])

        async with upstream.client() as http:
            client = TrainerRoadClient(USER_ID, sessions, settings, http_client=http)
            service = ActivityImportService(client, store)
            with patch.object(store, "insert", side_effect=DatabaseError("disk full", operation="insert")):
                with pytest.raises(IntegrationError) as exc_info:
                    await service.import_recent(1)

        assert exc_info.value.status_code == 500
