"""Data models for the TrainerRoad bridge."""

from .trainerroad import (
    ActivityProgression,
    ExternalActivity,
    ExternalWorkoutTemplate,
    WorkoutCatalogPage,
    WorkoutProgression,
    activity_to_workout_row,
    build_catalog_predicate,
)

__all__ = [
    "ActivityProgression",
    "ExternalActivity",
    "ExternalWorkoutTemplate",
    "WorkoutCatalogPage",
    "WorkoutProgression",
    "activity_to_workout_row",
    "build_catalog_predicate",
]
