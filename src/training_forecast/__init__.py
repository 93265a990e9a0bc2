"""Forward projection of training load, workout impact and taper planning."""

from .metrics.fitness import (
    DEFAULT_PROJECTION_CONFIG,
    ProjectionConfig,
    project_load,
)
from .analysis import (
    ImpactComparison,
    TaperRecommendation,
    WeeklyImpactSummary,
    compare_workout_impact,
    optimize_taper,
    summarize_week,
)
from .models import PlannedSession, ProjectionPoint, TrainingLoadState
from .services import ForecastService, build_forecast_service

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Projection
    "DEFAULT_PROJECTION_CONFIG",
    "ProjectionConfig",
    "project_load",
    # Analyses
    "ImpactComparison",
    "TaperRecommendation",
    "WeeklyImpactSummary",
    "compare_workout_impact",
    "optimize_taper",
    "summarize_week",
    # Models
    "PlannedSession",
    "ProjectionPoint",
    "TrainingLoadState",
    # Service
    "ForecastService",
    "build_forecast_service",
]
