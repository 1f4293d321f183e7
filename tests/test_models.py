"""Tests for TrainerRoad record types."""

from datetime import datetime, timezone

from trainerroad_bridge.models.trainerroad import (
    ExternalActivity,
    ExternalWorkoutTemplate,
    WorkoutCatalogPage,
    activity_to_workout_row,
    build_catalog_predicate,
    parse_seconds,
    parse_timestamp,
)

from conftest import make_activity, make_workout


class TestParseTimestamp:
    """Tests for tolerant timestamp parsing."""

    def test_naive(self):
        assert parse_timestamp("2026-01-05T06:30:00") == datetime(2026, 1, 5, 6, 30)

    def test_zulu(self):
        assert parse_timestamp("2026-01-05T06:30:00Z") == datetime(2026, 1, 5, 6, 30, tzinfo=timezone.utc)

    def test_short_fraction_padded(self):
        assert parse_timestamp("2026-01-05T06:30:00.5").microsecond == 500000

    def test_garbage(self):
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(None) is None
        assert parse_timestamp(12345) is None


class TestExternalActivity:
    """Tests for activity parsing."""

    def test_missing_fields_default(self):
        activity = ExternalActivity.from_api_response({"Id": 9})

        assert activity.id == 9
        assert activity.name == ""
        assert activity.duration_seconds == 0
        assert activity.started is None
        assert activity.progression is None
        assert activity.is_cut_short is False

    def test_to_dict(self):
        payload = ExternalActivity.from_api_response(make_activity(3, "2026-01-05T06:30:00")).to_dict()

        assert payload["id"] == 3
        assert payload["started"] == "2026-01-05T06:30:00"
        assert payload["progression"] == {"id": 3, "delta": 0.2, "level": 4.1}


class TestExternalWorkoutTemplate:
    """Tests for catalog workout parsing."""

    def test_progression_from_id_only(self):
        workout = ExternalWorkoutTemplate.from_api_response(make_workout(1, Progression=None, ProgressionId=8))

        assert workout.progression.id == 8
        assert workout.progression.text is None

    def test_no_progression(self):
        workout = ExternalWorkoutTemplate.from_api_response({"Id": 1, "Name": "Fallback"})

        assert workout.name == "Fallback"
        assert workout.progression is None

    def test_catalog_page_to_dict(self):
        page = WorkoutCatalogPage(items=[ExternalWorkoutTemplate.from_api_response(make_workout(1))], total_count=7)

        payload = page.to_dict()

        assert payload["totalCount"] == 7
        assert payload["items"][0]["name"] == "Workout 1"


class TestCatalogPredicate:
    """Tests for the catalog request body."""

    def test_paging_and_search(self):
        predicate = build_catalog_predicate(25, 2, "Pettit")

        assert predicate["PageSize"] == 25
        assert predicate["PageNumber"] == 2
        assert predicate["SearchText"] == "Pettit"
        assert predicate["SortProperty"] == "progressionLevel"

    def test_empty_search(self):
        assert build_catalog_predicate(10, 0)["SearchText"] == ""


class TestActivityToWorkoutRow:
    """Tests for mapping rides onto local workouts."""

    def test_mapping(self):
        activity = ExternalActivity.from_api_response(make_activity(42, "2026-01-05T06:30:00", Duration=2700))

        row = activity_to_workout_row(activity, "client-1", 7)

        assert row["name"] == "Ride 42 (TrainerRoad)"
        assert row["workout_type"] == "cardio"
        assert row["duration_minutes"] == 45
        assert row["completed"] is True
        assert row["completed_at"] == "2026-01-05T06:30:00"
        assert row["external_activity_id"] == "42"
        assert row["target_ftp"] is None
        assert row["notes"] == "Survey: Moderate"
        assert row["program_id"] == 7


class TestParseSeconds:
    """Tests for duration coercion."""

    def test_numeric_forms(self):
        assert parse_seconds(3600) == 3600
        assert parse_seconds(3600.7) == 3600
        assert parse_seconds("3600.5") == 3600
        assert parse_seconds(" 42 ") == 42

    def test_garbage_is_zero(self):
        assert parse_seconds("") == 0
        assert parse_seconds("soon") == 0
        assert parse_seconds({"Seconds": 5}) == 0
        assert parse_seconds(True) == 0
        assert parse_seconds(float("inf")) == 0
