"""Training load metrics."""

from .fitness import (
    DEFAULT_PROJECTION_CONFIG,
    ProjectionConfig,
    calculate_ewma,
    classify_form,
    format_day_label,
    project_load,
    stress_by_date,
)

__all__ = [
    "DEFAULT_PROJECTION_CONFIG",
    "ProjectionConfig",
    "calculate_ewma",
    "classify_form",
    "format_day_label",
    "project_load",
    "stress_by_date",
]
