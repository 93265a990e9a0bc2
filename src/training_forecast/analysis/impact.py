"""
Workout Impact Preview

Compares the projected trajectory with today's candidate session against
the same schedule with a rest day, over a two-week horizon.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from ..metrics.fitness import (
    DEFAULT_PROJECTION_CONFIG,
    ProjectionConfig,
    project_load,
)
from ..models.load import ProjectionPoint, TrainingLoadState, validate_load_value
from ..models.narrative import Narrative


@dataclass
class ImpactComparison:
    """Two projections differing only in today's session, plus derived metrics."""

    start_date: date
    candidate_stress: float
    with_session: List[ProjectionPoint]
    without_session: List[ProjectionPoint]

    tomorrow_form_delta: float
    two_week_load_delta: float
    lowest_form_next_week: float
    days_to_non_negative_form: Optional[int]
    peak_form_dates: List[date] = field(default_factory=list)
    narrative: Optional[Narrative] = None

    @property
    def tomorrow_form(self) -> float:
        """Projected form tomorrow with the session (today's if horizon is one day)."""
        if not self.with_session:
            return self.lowest_form_next_week
        index = 1 if len(self.with_session) > 1 else 0
        return self.with_session[index].form

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "start_date": self.start_date.isoformat(),
            "candidate_tss": self.candidate_stress,
            "tomorrow_form_delta": self.tomorrow_form_delta,
            "two_week_load_delta": self.two_week_load_delta,
            "lowest_form_next_week": self.lowest_form_next_week,
            "days_to_non_negative_form": self.days_to_non_negative_form,
            "peak_form_dates": [d.isoformat() for d in self.peak_form_dates],
            "with_session": [p.to_dict() for p in self.with_session],
            "without_session": [p.to_dict() for p in self.without_session],
            "narrative": self.narrative.to_dict() if self.narrative else None,
        }

    def narrative_summary(self) -> Dict[str, Any]:
        """Numbers-only summary handed to the narrative generator."""
        return {
            "candidate_tss": self.candidate_stress,
            "today_form_before": round(self.without_session[0].form, 1) if self.without_session else None,
            "tomorrow_form_with_session": self.tomorrow_form,
            "tomorrow_form_delta": self.tomorrow_form_delta,
            "two_week_ctl_delta": self.two_week_load_delta,
            "lowest_form_next_week": self.lowest_form_next_week,
            "days_to_non_negative_form": self.days_to_non_negative_form,
            "peak_form_days": len(self.peak_form_dates),
        }


def compare_workout_impact(
    candidate_stress: float,
    state: TrainingLoadState,
    schedule: Mapping[date, float],
    start_date: Optional[date] = None,
    config: ProjectionConfig = DEFAULT_PROJECTION_CONFIG,
    horizon_days: Optional[int] = None,
) -> ImpactComparison:
    """
    Quantify doing the candidate session today versus resting.

    Today's schedule entry is replaced by the candidate stress in one run
    and by zero in the other; all later days are shared.

    Args:
        candidate_stress: Estimated TSS of the session being considered
        state: Load state before today
        schedule: Already-planned future stress by date
        start_date: Today (default: date.today())
        config: Projection constants
        horizon_days: Override of config.impact_horizon_days

    Returns:
        ImpactComparison with both trajectories and derived metrics
    """
    candidate_stress = validate_load_value(candidate_stress, "candidate_stress")
    if start_date is None:
        start_date = date.today()
    if horizon_days is None:
        horizon_days = config.impact_horizon_days

    with_schedule = dict(schedule)
    with_schedule[start_date] = candidate_stress
    without_schedule = dict(schedule)
    without_schedule[start_date] = 0.0

    with_session = project_load(state, with_schedule, horizon_days, start_date, config)
    without_session = project_load(state, without_schedule, horizon_days, start_date, config)

    if not with_session:
        return ImpactComparison(
            start_date=start_date,
            candidate_stress=round(candidate_stress, 1),
            with_session=[],
            without_session=[],
            tomorrow_form_delta=0.0,
            two_week_load_delta=0.0,
            lowest_form_next_week=round(state.form, 1),
            days_to_non_negative_form=None,
        )

    tomorrow = 1 if len(with_session) > 1 else 0
    tomorrow_form_delta = with_session[tomorrow].form - without_session[tomorrow].form
    two_week_load_delta = with_session[-1].chronic_load - without_session[-1].chronic_load

    next_week = with_session[: config.impact_week_days]
    lowest_form_next_week = min(point.form for point in next_week)

    days_to_non_negative_form = next(
        (i for i, point in enumerate(with_session) if point.form >= 0),
        None,
    )

    peak_form_dates = [p.date for p in with_session if config.is_peak_form(p.form)]

    return ImpactComparison(
        start_date=start_date,
        candidate_stress=round(candidate_stress, 1),
        with_session=with_session,
        without_session=without_session,
        tomorrow_form_delta=round(tomorrow_form_delta, 1),
        two_week_load_delta=round(two_week_load_delta, 1),
        lowest_form_next_week=lowest_form_next_week,
        days_to_non_negative_form=days_to_non_negative_form,
        peak_form_dates=peak_form_dates,
    )


def format_projection_rows(points: List[ProjectionPoint]) -> List[str]:
    """Day-by-day projection table as plain-text lines."""
    lines = ["  Day           TSS    CTL    ATL    TSB"]
    for point in points:
        lines.append(
            f"  {point.day_label:<12} {point.training_stress:>4.0f} {point.chronic_load:>6.1f} "
            f"{point.acute_load:>6.1f} {point.form:>+6.1f}"
        )
    return lines


def format_impact_preview(comparison: ImpactComparison) -> str:
    """
    Format an impact comparison as a plain-text report section.

    Args:
        comparison: ImpactComparison object

    Returns:
        Formatted summary string
    """
    lines = []

    lines.append(f"Workout Impact ({comparison.candidate_stress:.0f} TSS today)")
    lines.append("=" * 50)

    if not comparison.with_session:
        lines.append("No projection available.")
        return "\n".join(lines)

    lines.append(f"  Tomorrow's form:     {comparison.tomorrow_form:+.1f} ({comparison.tomorrow_form_delta:+.1f} vs rest)")
    lines.append(f"  Fitness in 2 weeks:  {comparison.with_session[-1].chronic_load:.1f} CTL ({comparison.two_week_load_delta:+.1f})")
    lines.append(f"  Lowest form (7d):    {comparison.lowest_form_next_week:+.1f}")

    if comparison.days_to_non_negative_form is None:
        lines.append("  Recovery:            form stays negative for the whole horizon")
    elif comparison.days_to_non_negative_form == 0:
        lines.append("  Recovery:            form stays positive")
    else:
        lines.append(f"  Recovery:            form positive again in {comparison.days_to_non_negative_form} days")

    if comparison.peak_form_dates:
        first = comparison.peak_form_dates[0].strftime("%a %d %b")
        lines.append(f"  Peak form window:    {len(comparison.peak_form_dates)} days, from {first}")
    lines.append("")

    lines.extend(format_projection_rows(comparison.with_session))

    return "\n".join(lines)
