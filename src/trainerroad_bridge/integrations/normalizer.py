"""
Normalization of TrainerRoad JSON payloads.

TrainerRoad endpoints answer with either a bare array or an object wrapping
the array under one of several keys. Each shape is handled by a small pure
matcher; matchers are tried in a fixed order and the first one that returns
a list wins.
"""

from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence

from ..exceptions import InvalidUpstreamShape
from ..models.trainerroad import ExternalActivity, ExternalWorkoutTemplate


# Hard cap on activities returned from any single call.
MAX_ACTIVITIES = 50

ShapeMatcher = Callable[[Any], Optional[list]]

WRAPPER_KEYS: Sequence[str] = (
    "Workouts",
    "data",
    "workouts",
    "results",
    "activities",
    "items",
    "records",
    "list",
    "entries",
    "content",
)


def match_bare_array(raw: Any) -> Optional[list]:
    return raw if isinstance(raw, list) else None


def match_wrapped(key: str) -> ShapeMatcher:
    """Matcher for an object carrying the records under ``key``."""

    def matcher(raw: Any) -> Optional[list]:
        if isinstance(raw, dict) and isinstance(raw.get(key), list):
            return raw[key]
        return None

    matcher.__name__ = f"match_wrapped_{key}"
    return matcher


SHAPE_MATCHERS: tuple[ShapeMatcher, ...] = (match_bare_array,) + tuple(
    match_wrapped(key) for key in WRAPPER_KEYS
)


def extract_records(raw: Any, matchers: Sequence[ShapeMatcher] = SHAPE_MATCHERS) -> List[dict]:
    """Return the record list from ``raw`` or raise InvalidUpstreamShape."""
    for matcher in matchers:
        records = matcher(raw)
        if records is None:
            continue
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise InvalidUpstreamShape(
                    "TrainerRoad returned a list with non-object entries",
                    details={"index": index, "type": type(record).__name__},
                )
        return records

    shape = sorted(raw.keys()) if isinstance(raw, dict) else type(raw).__name__
    raise InvalidUpstreamShape(
        "TrainerRoad response did not contain a recognizable list",
        details={"shape": shape},
    )


def _start_key(activity: ExternalActivity) -> datetime:
    started = activity.started
    if started is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if started.tzinfo is None:
        return started.replace(tzinfo=timezone.utc)
    return started


def normalize_activities(raw: Any, limit: Optional[int] = MAX_ACTIVITIES) -> List[ExternalActivity]:
    """
    Normalize a completed-activities payload.

    Activities are sorted newest first. ``limit`` is clamped to
    MAX_ACTIVITIES; pass None to keep every record (date-range listings).
    """
    activities = [ExternalActivity.from_api_response(record) for record in extract_records(raw)]
    activities.sort(key=_start_key, reverse=True)
    if limit is None:
        return activities
    return activities[: max(0, min(limit, MAX_ACTIVITIES))]


def normalize_workouts(raw: Any) -> List[ExternalWorkoutTemplate]:
    """Normalize a catalog or workout-information payload."""
    return [ExternalWorkoutTemplate.from_api_response(record) for record in extract_records(raw)]


def extract_total_count(raw: Any, default: int = 0) -> int:
    """Upstream pagination total from ``Predicate.TotalCount``."""
    if isinstance(raw, dict):
        predicate = raw.get("Predicate")
        if isinstance(predicate, dict) and isinstance(predicate.get("TotalCount"), int):
            return predicate["TotalCount"]
        if isinstance(raw.get("TotalCount"), int):
            return raw["TotalCount"]
    return default
