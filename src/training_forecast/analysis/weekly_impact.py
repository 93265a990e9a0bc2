"""
Weekly Impact Summary

Projects a week of already-decided sessions and classifies whether the
resulting fatigue is sustainable.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Sequence

from ..exceptions import InvalidLoadInputError
from ..metrics.fitness import (
    DEFAULT_PROJECTION_CONFIG,
    ProjectionConfig,
    project_load,
)
from ..models.load import PlannedSession, ProjectionPoint, TrainingLoadState


@dataclass
class WeeklyImpactSummary:
    """Projection of a planned week with its load and form envelope."""

    week_start: date
    week_end: date
    total_stress: float
    start_ctl: float
    end_ctl: float
    ctl_delta: float
    min_form: float
    max_form: float
    sustainable: bool
    peak_form_days: List[date] = field(default_factory=list)
    fatigue_warning_days: List[date] = field(default_factory=list)
    projection: List[ProjectionPoint] = field(default_factory=list)
    sessions: List[PlannedSession] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "total_tss": self.total_stress,
            "start_ctl": self.start_ctl,
            "end_ctl": self.end_ctl,
            "ctl_delta": self.ctl_delta,
            "min_form": self.min_form,
            "max_form": self.max_form,
            "sustainable": self.sustainable,
            "peak_form_days": [d.isoformat() for d in self.peak_form_days],
            "fatigue_warning_days": [d.isoformat() for d in self.fatigue_warning_days],
            "projection": [p.to_dict() for p in self.projection],
            "sessions": [s.to_dict() for s in self.sessions],
        }


def summarize_week(
    sessions: Sequence[PlannedSession],
    state: TrainingLoadState,
    config: ProjectionConfig = DEFAULT_PROJECTION_CONFIG,
) -> WeeklyImpactSummary:
    """
    Project a day-ordered list of planned sessions and summarize it.

    The projection starts on the first session's date and runs for one
    day per session. Rest days must be present as zero-stress sessions.

    Args:
        sessions: One planned session per consecutive day
        state: Load state before the first day
        config: Projection constants and form thresholds

    Returns:
        WeeklyImpactSummary

    Raises:
        InvalidLoadInputError: If the list is empty or its dates are not consecutive days
    """
    if not sessions:
        raise InvalidLoadInputError("a week needs at least one session", field="sessions")
    for previous, current in zip(sessions, sessions[1:]):
        if current.date != previous.date + timedelta(days=1):
            raise InvalidLoadInputError(
                "sessions must cover consecutive days in date order",
                field="sessions",
                value=current.date.isoformat(),
            )

    week_start = sessions[0].date
    schedule = {session.date: session.training_stress for session in sessions}
    projection = project_load(state, schedule, len(sessions), week_start, config)

    forms = [point.form for point in projection]
    min_form = min(forms)
    start_ctl = round(state.chronic_load, 1)
    end_ctl = projection[-1].chronic_load

    return WeeklyImpactSummary(
        week_start=week_start,
        week_end=projection[-1].date,
        total_stress=round(sum(session.training_stress for session in sessions), 1),
        start_ctl=start_ctl,
        end_ctl=end_ctl,
        ctl_delta=round(end_ctl - start_ctl, 1),
        min_form=min_form,
        max_form=max(forms),
        sustainable=min_form >= config.sustainable_form_floor,
        peak_form_days=[p.date for p in projection if config.is_peak_form(p.form)],
        fatigue_warning_days=[
            p.date for p in projection if p.form < config.fatigue_warning_form
        ],
        projection=projection,
        sessions=list(sessions),
    )


def format_weekly_impact(summary: WeeklyImpactSummary) -> str:
    """
    Format a weekly impact summary as a plain-text report section.

    Args:
        summary: WeeklyImpactSummary object

    Returns:
        Formatted summary string
    """
    lines = []

    lines.append(
        f"Week Ahead: {summary.week_start.strftime('%b %d')} - {summary.week_end.strftime('%b %d')}"
    )
    lines.append("=" * 50)
    lines.append("")

    lines.append("Load:")
    lines.append(f"  Planned TSS:   {summary.total_stress:.0f}")
    lines.append(f"  CTL:           {summary.start_ctl:.1f} -> {summary.end_ctl:.1f} ({summary.ctl_delta:+.1f})")
    lines.append(f"  Form range:    {summary.min_form:+.1f} to {summary.max_form:+.1f}")
    lines.append("")

    labels = {s.date: s.label for s in summary.sessions}
    lines.append("Days:")
    for point in summary.projection:
        flag = ""
        if point.date in summary.fatigue_warning_days:
            flag = "  ! fatigue"
        elif point.date in summary.peak_form_days:
            flag = "  * peak form"
        label = labels.get(point.date) or ("Rest" if point.training_stress == 0 else "")
        lines.append(
            f"  {point.date.strftime('%a %d')}  {label[:24]:<24} {point.training_stress:>4.0f} TSS  "
            f"TSB {point.form:+.1f}{flag}"
        )
    lines.append("")

    if summary.sustainable:
        lines.append("Verdict: sustainable week")
    else:
        lines.append(f"Verdict: NOT sustainable - form bottoms out at {summary.min_form:+.1f}")

    return "\n".join(lines)
