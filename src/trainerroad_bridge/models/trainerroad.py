"""
TrainerRoad record types.

Upstream payloads use PascalCase keys; each record has a
``from_api_response`` that reads them and a ``to_dict`` with the snake_case
form this app exposes. Completed activities and catalog workouts come from
different endpoints and are kept as separate types.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an upstream ISO timestamp, returning None when unparseable."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip().replace("Z", "+00:00")
    # Python < 3.11 only accepts 3 or 6 fractional digits
    if "." in text:
        head, _, tail = text.partition(".")
        digits = ""
        rest = ""
        for index, char in enumerate(tail):
            if not char.isdigit():
                rest = tail[index:]
                break
            digits += char
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}" if digits else f"{head}{rest}"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_seconds(value: Any) -> int:
    """Whole seconds from an int, float or numeric string; 0 when missing or garbled."""
    if isinstance(value, bool) or value in (None, ""):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


@dataclass
class ActivityProgression:
    """Progression level change attached to a completed activity."""
    id: Optional[int] = None
    delta: Optional[float] = None
    level: Optional[float] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "delta": self.delta, "level": self.level}

    @classmethod
    def from_api_response(cls, data: Optional[dict]) -> Optional["ActivityProgression"]:
        if not isinstance(data, dict):
            return None
        return cls(id=data.get("Id"), delta=data.get("Delta"), level=data.get("Level"))


@dataclass
class ExternalActivity:
    """A completed TrainerRoad ride."""
    id: int
    name: str
    duration_seconds: int
    started: Optional[datetime] = None
    processed: Optional[datetime] = None
    guid: Optional[str] = None
    workout_id: Optional[int] = None

    # Load metrics
    expected_tss: Optional[float] = None
    tss: Optional[float] = None
    expected_kj: Optional[float] = None
    kj: Optional[float] = None
    intensity_factor: Optional[float] = None
    expected_intensity_factor: Optional[float] = None

    # Flags
    is_cut_short: bool = False
    has_gps_data: bool = False
    is_indoor_swim: bool = False
    is_external: bool = False
    can_estimate_tss: bool = False

    survey_option_text: Optional[str] = None
    classification_type: Optional[int] = None
    open_type: Optional[int] = None
    activity_type: Optional[int] = None  # 1 = cardio workout
    source: Optional[str] = None
    progression: Optional[ActivityProgression] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "guid": self.guid,
            "workout_id": self.workout_id,
            "name": self.name,
            "duration_seconds": self.duration_seconds,
            "expected_tss": self.expected_tss,
            "tss": self.tss,
            "expected_kj": self.expected_kj,
            "kj": self.kj,
            "intensity_factor": self.intensity_factor,
            "expected_intensity_factor": self.expected_intensity_factor,
            "is_cut_short": self.is_cut_short,
            "has_gps_data": self.has_gps_data,
            "is_indoor_swim": self.is_indoor_swim,
            "is_external": self.is_external,
            "can_estimate_tss": self.can_estimate_tss,
            "survey_option_text": self.survey_option_text,
            "classification_type": self.classification_type,
            "open_type": self.open_type,
            "activity_type": self.activity_type,
            "source": self.source,
            "progression": self.progression.to_dict() if self.progression else None,
            "started": _iso(self.started),
            "processed": _iso(self.processed),
        }

    @classmethod
    def from_api_response(cls, data: dict) -> "ExternalActivity":
        """Parse from a TrainerRoad activity payload."""
        return cls(
            id=data.get("Id"),
            name=data.get("Name") or "",
            duration_seconds=parse_seconds(data.get("Duration")),
            started=parse_timestamp(data.get("Started")),
            processed=parse_timestamp(data.get("Processed")),
            guid=data.get("Guid"),
            workout_id=data.get("WorkoutId"),
            expected_tss=data.get("ExpectedTss"),
            tss=data.get("Tss"),
            expected_kj=data.get("ExpectedKj"),
            kj=data.get("Kj"),
            intensity_factor=data.get("IntensityFactor"),
            expected_intensity_factor=data.get("ExpectedIntensityFactor"),
            is_cut_short=bool(data.get("IsCutShort", False)),
            has_gps_data=bool(data.get("HasGpsData", False)),
            is_indoor_swim=bool(data.get("IsIndoorSwim", False)),
            is_external=bool(data.get("IsExternal", False)),
            can_estimate_tss=bool(data.get("CanEstimateTss", False)),
            survey_option_text=data.get("SurveyOptionText"),
            classification_type=data.get("ClassificationType"),
            open_type=data.get("OpenType"),
            activity_type=data.get("Type"),
            source=data.get("Source"),
            progression=ActivityProgression.from_api_response(data.get("Progression")),
        )


@dataclass
class WorkoutProgression:
    """Progression a catalog workout belongs to (e.g. Threshold, VO2 Max)."""
    id: Optional[int] = None
    text: Optional[str] = None
    level: Optional[float] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "level": self.level}


@dataclass
class ExternalWorkoutTemplate:
    """A TrainerRoad catalog workout (not a completed ride)."""
    id: int
    name: str
    duration_minutes: Optional[float] = None
    description: Optional[str] = None  # HTML fragment
    goal_description: Optional[str] = None  # HTML fragment
    tss: Optional[float] = None
    kj: Optional[float] = None
    intensity_factor: Optional[float] = None  # percent, e.g. 82 for 0.82
    average_ftp_percent: Optional[float] = None
    pic_url: Optional[str] = None
    is_outside: bool = False
    workout_type_id: Optional[int] = None
    workout_label_id: Optional[int] = None
    progression: Optional[WorkoutProgression] = None
    first_publish_date: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "duration_minutes": self.duration_minutes,
            "description": self.description,
            "goal_description": self.goal_description,
            "tss": self.tss,
            "kj": self.kj,
            "intensity_factor": self.intensity_factor,
            "average_ftp_percent": self.average_ftp_percent,
            "pic_url": self.pic_url,
            "is_outside": self.is_outside,
            "workout_type_id": self.workout_type_id,
            "workout_label_id": self.workout_label_id,
            "progression": self.progression.to_dict() if self.progression else None,
            "first_publish_date": _iso(self.first_publish_date),
        }

    @classmethod
    def from_api_response(cls, data: dict) -> "ExternalWorkoutTemplate":
        """Parse from a TrainerRoad workout payload."""
        raw_progression = data.get("Progression")
        progression = None
        if isinstance(raw_progression, dict) or data.get("ProgressionId") is not None:
            raw_progression = raw_progression if isinstance(raw_progression, dict) else {}
            progression = WorkoutProgression(
                id=raw_progression.get("Id", data.get("ProgressionId")),
                text=raw_progression.get("Text"),
                level=data.get("ProgressionLevel"),
            )

        return cls(
            id=data.get("Id"),
            name=data.get("WorkoutName") or data.get("Name") or "",
            duration_minutes=data.get("Duration"),
            description=data.get("WorkoutDescription"),
            goal_description=data.get("GoalDescription"),
            tss=data.get("Tss"),
            kj=data.get("Kj"),
            intensity_factor=data.get("IntensityFactor"),
            average_ftp_percent=data.get("AverageFtpPercent"),
            pic_url=data.get("PicUrl"),
            is_outside=bool(data.get("IsOutside", False)),
            workout_type_id=data.get("WorkoutTypeId"),
            workout_label_id=data.get("WorkoutLabelId"),
            progression=progression,
            first_publish_date=parse_timestamp(data.get("FirstPublishDate")),
        )


@dataclass
class WorkoutCatalogPage:
    """One page of catalog results; ``total_count`` is passed through from upstream."""
    items: List[ExternalWorkoutTemplate] = field(default_factory=list)
    total_count: int = 0

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "totalCount": self.total_count,
        }


# ============================================================================
# Request bodies
# ============================================================================

def build_catalog_predicate(
    page_size: int,
    page_number: int,
    search_text: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the filter predicate the workout catalog endpoint expects.

    The endpoint rejects partial predicates, so every facet is sent with its
    default value even when unused.
    """
    return {
        "IsDescending": False,
        "PageSize": page_size,
        "PageNumber": page_number,
        "TotalCount": 0,
        "SearchText": search_text or "",
        "TeamIds": [],
        "RestrictToTeams": False,
        "SortProperty": "progressionLevel",
        "TeamOptions": [],
        "ZoneOptions": [],
        "Durations": {
            "LessThanFortyFive": False,
            "FortyFive": False,
            "OneHour": False,
            "OneHourFifteen": False,
            "OneHourThirty": False,
            "OneHourFortyFive": False,
            "TwoHours": False,
            "TwoHoursFifteen": False,
            "TwoHoursThirty": False,
            "MoreThanTwoHoursThirty": False,
        },
        "WorkoutInstructions": {"Yup": False, "Nope": False},
        "Custom": {"Yup": False, "Nope": False, "MemberAccessId": 0},
        "Favorite": {"Yup": False, "Nope": False, "FavoriteWorkoutIds": []},
        "WorkoutTags": {"WorkoutTagIds": []},
        "WorkoutLabels": {"WorkoutLabelIds": []},
        "Progressions": {
            "ProgressionIds": [],
            "ProgressionLevels": [],
            "ProfileIds": [],
            "WorkoutTypeIds": [],
            "AdaptiveTrainingVersion": 1000,
        },
        "WorkoutTypes": {
            "Standard": False,
            "Test": False,
            "Warmup": False,
            "RaceSimulation": False,
            "Video": False,
            "Outside": False,
        },
        "WorkoutDifficultyRatings": {
            "Productive": False,
            "Stretch": False,
            "Breakthrough": False,
            "NotRecommended": False,
            "Achievable": False,
            "Recovery": False,
            "AdaptiveTrainingVersion": 1000,
        },
        "AllProfiles": {"ProfileIds": []},
    }


# ============================================================================
# Local workout mapping
# ============================================================================

def activity_to_workout_row(activity: ExternalActivity, user_id: str, program_id: Any) -> Dict[str, Any]:
    """Map a completed activity onto a row of the local ``workouts`` table."""
    return {
        "program_id": program_id,
        "user_id": user_id,
        "name": f"{activity.name} (TrainerRoad)",
        "workout_type": "cardio",
        "duration_minutes": round(activity.duration_seconds / 60),
        "target_tss": activity.expected_tss,
        "target_ftp": None,
        "completed": True,
        "completed_at": _iso(activity.started),
        "external_activity_id": str(activity.id),
        "actual_tss": activity.tss,
        "energy_kj": activity.kj,
        "intensity_factor": activity.intensity_factor,
        "notes": f"Survey: {activity.survey_option_text}" if activity.survey_option_text else None,
    }
