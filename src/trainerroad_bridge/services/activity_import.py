"""Import completed TrainerRoad rides into a client's program.

Each ride becomes a completed ``cardio`` workout row. Rides already
imported for the user (matched on ``external_activity_id``) are skipped, so
running the import twice is safe.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

from ..db.adapters import DataStore
from ..exceptions import DatabaseError, ErrorCode, IntegrationError
from ..integrations.trainerroad import TrainerRoadClient
from ..models.trainerroad import activity_to_workout_row


logger = logging.getLogger(__name__)

WORKOUTS_TABLE = "workouts"


@dataclass
class ImportResult:
    """Result of an activity import."""
    imported: int = 0
    skipped: int = 0
    workout_ids: List[Any] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[int]:
        """Calculate import duration in seconds."""
        if self.started_at and self.completed_at:
            return int((self.completed_at - self.started_at).total_seconds())
        return None

    def to_dict(self) -> dict:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "workout_ids": self.workout_ids,
        }


class ActivityImportService:
    """Copies recent TrainerRoad activities into the local workouts table."""

    def __init__(self, client: TrainerRoadClient, store: DataStore):
        self._client = client
        self._store = store

    async def import_recent(self, program_id: Any, limit: int = 20) -> ImportResult:
        """Import up to ``limit`` recent activities into ``program_id``."""
        user_id = self._client.local_user_id
        result = ImportResult(started_at=datetime.now(timezone.utc))

        activities = await self._client.get_recent_activities(limit=limit)

        try:
            existing = {
                str(row.get("external_activity_id"))
                for row in self._store.select(WORKOUTS_TABLE, {"user_id": user_id})
                if row.get("external_activity_id") is not None
            }

            for activity in activities:
                if str(activity.id) in existing:
                    result.skipped += 1
                    continue
                stored = self._store.insert(
                    WORKOUTS_TABLE,
                    activity_to_workout_row(activity, user_id, program_id),
                )
                existing.add(str(activity.id))
                result.workout_ids.append(stored.get("id"))
                result.imported += 1
        except DatabaseError as e:
            logger.error(f"TrainerRoad import failed for user {user_id}: {e.message}")
            raise IntegrationError(
                500,
                "Failed to save imported TrainerRoad activities",
                code=ErrorCode.DATABASE_ERROR,
                details={"imported": result.imported},
            )

        result.completed_at = datetime.now(timezone.utc)
        logger.info(
            f"Imported {result.imported} TrainerRoad activities for user {user_id} "
            f"({result.skipped} already present) in {result.duration_seconds}s"
        )
        return result
