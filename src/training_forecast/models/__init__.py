"""Data models for training-forecast."""

from .narrative import NARRATIVE_SOURCE_AI, NARRATIVE_SOURCE_RULES, Narrative
from .load import (
    DailyStress,
    PlannedSession,
    ProjectionPoint,
    TrainingLoadState,
    validate_load_value,
)

__all__ = [
    "NARRATIVE_SOURCE_AI",
    "NARRATIVE_SOURCE_RULES",
    "Narrative",
    "DailyStress",
    "PlannedSession",
    "ProjectionPoint",
    "TrainingLoadState",
    "validate_load_value",
]
