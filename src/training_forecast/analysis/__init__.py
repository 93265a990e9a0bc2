"""Decision-support analyses built on the load projection."""

from .impact import ImpactComparison, compare_workout_impact, format_impact_preview, format_projection_rows
from .taper import (
    TaperRecommendation,
    TaperScenario,
    estimate_recent_stress,
    format_taper_recommendation,
    optimize_taper,
    race_date_problem,
    simulate_taper,
)
from .weekly_impact import WeeklyImpactSummary, format_weekly_impact, summarize_week

__all__ = [
    "ImpactComparison",
    "compare_workout_impact",
    "format_impact_preview",
    "format_projection_rows",
    "TaperRecommendation",
    "TaperScenario",
    "estimate_recent_stress",
    "format_taper_recommendation",
    "optimize_taper",
    "race_date_problem",
    "simulate_taper",
    "WeeklyImpactSummary",
    "format_weekly_impact",
    "summarize_week",
]
