"""
Taper Planning

Searches a fixed grid of taper lengths and intensities for the plan that
lands race-day form closest to a target, losing as little fitness as
possible.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..metrics.fitness import (
    DEFAULT_PROJECTION_CONFIG,
    ProjectionConfig,
    project_load,
    stress_by_date,
)
from ..models.load import DailyStress, ProjectionPoint, TrainingLoadState
from ..models.narrative import Narrative


STRESS_SOURCE_HISTORY = "recent_average"
STRESS_SOURCE_CHRONIC_LOAD = "chronic_load"


def intensity_label(fraction: float) -> str:
    """Name a taper intensity: aggressive (~30%), moderate (~50%) or light (~70%)."""
    if fraction <= 0.4:
        return "aggressive"
    if fraction <= 0.6:
        return "moderate"
    return "light"


@dataclass
class TaperScenario:
    """One evaluated (length, intensity) combination."""

    length_days: int
    intensity_fraction: float
    start_date: date
    race_day_ctl: float
    race_day_atl: float
    race_day_form: float
    ctl_loss: float  # vs. continuing normal training to race day, unrounded
    form_gap: float  # |race_day_form - target|, unrounded

    @property
    def intensity(self) -> str:
        return intensity_label(self.intensity_fraction)

    def selection_key(self) -> Tuple[float, float, int]:
        """Closest to target first, then least fitness lost, then shortest."""
        return (self.form_gap, self.ctl_loss, self.length_days)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "length_days": self.length_days,
            "intensity_fraction": self.intensity_fraction,
            "intensity": self.intensity,
            "start_date": self.start_date.isoformat(),
            "race_day_ctl": self.race_day_ctl,
            "race_day_atl": self.race_day_atl,
            "race_day_form": self.race_day_form,
            "ctl_loss": round(self.ctl_loss, 1),
            "form_gap": round(self.form_gap, 1),
        }


@dataclass
class TaperRecommendation:
    """
    Outcome of a taper search.

    When ``available`` is False, ``reason`` explains why and no scenario
    was simulated. Otherwise ``recommended`` is exactly one of
    ``alternatives``, which lists every evaluated scenario.
    """

    available: bool
    race_date: date
    today: date
    target_form: float
    reason: str = ""
    days_to_race: int = 0
    stress_estimate: float = 0.0
    stress_estimate_source: str = STRESS_SOURCE_HISTORY
    recommended: Optional[TaperScenario] = None
    alternatives: List[TaperScenario] = field(default_factory=list)
    narrative: Optional[Narrative] = None

    @classmethod
    def unavailable(
        cls,
        race_date: date,
        today: date,
        target_form: float,
        reason: str,
    ) -> "TaperRecommendation":
        return cls(
            available=False,
            race_date=race_date,
            today=today,
            target_form=target_form,
            reason=reason,
            days_to_race=(race_date - today).days,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "reason": self.reason,
            "race_date": self.race_date.isoformat(),
            "today": self.today.isoformat(),
            "days_to_race": self.days_to_race,
            "target_form": self.target_form,
            "stress_estimate": round(self.stress_estimate, 1),
            "stress_estimate_source": self.stress_estimate_source,
            "recommended": self.recommended.to_dict() if self.recommended else None,
            "alternatives": [s.to_dict() for s in self.alternatives],
            "narrative": self.narrative.to_dict() if self.narrative else None,
        }

    def narrative_summary(self) -> Dict[str, Any]:
        """Numbers-only summary handed to the narrative generator."""
        summary: Dict[str, Any] = {
            "days_to_race": self.days_to_race,
            "target_form": self.target_form,
            "normal_daily_tss": round(self.stress_estimate, 1),
        }
        if self.recommended:
            summary.update({
                "taper_length_days": self.recommended.length_days,
                "taper_intensity_fraction": self.recommended.intensity_fraction,
                "taper_start_date": self.recommended.start_date.isoformat(),
                "race_day_form": self.recommended.race_day_form,
                "race_day_ctl": self.recommended.race_day_ctl,
                "ctl_loss": round(self.recommended.ctl_loss, 1),
            })
        return summary


def race_date_problem(race_date: date, today: date) -> Optional[str]:
    """Reason a taper can't be planned for this race date, or None if it can."""
    days_to_race = (race_date - today).days
    if days_to_race < 0:
        return f"Race date {race_date.isoformat()} is in the past"
    if days_to_race == 0:
        return "Race is today; too late to taper"
    return None


def estimate_recent_stress(
    state: TrainingLoadState,
    history: Iterable[DailyStress],
    today: date,
    config: ProjectionConfig = DEFAULT_PROJECTION_CONFIG,
) -> Tuple[float, str]:
    """
    Average daily TSS over the lookback window before today.

    Falls back to the current CTL when fewer than ``min_lookback_days``
    days of history fall inside the window.

    Returns:
        (stress estimate, source) where source is "recent_average" or "chronic_load"
    """
    window_start = today - timedelta(days=config.stress_lookback_days)
    daily = stress_by_date(
        entry for entry in history if window_start <= entry.date < today
    )
    if len(daily) < config.min_lookback_days:
        return state.chronic_load, STRESS_SOURCE_CHRONIC_LOAD
    return sum(daily.values()) / len(daily), STRESS_SOURCE_HISTORY


def simulate_taper(
    state: TrainingLoadState,
    today: date,
    race_date: date,
    normal_stress: float,
    length_days: int,
    intensity_fraction: float,
    config: ProjectionConfig = DEFAULT_PROJECTION_CONFIG,
) -> Tuple[date, ProjectionPoint]:
    """
    Project today..race day with a taper of the given shape.

    The taper starts ``length_days`` before the race, or today when the
    race is closer than that. Stress is ``normal_stress`` before the start
    and ``intensity_fraction * normal_stress`` from the start through race
    day.

    Returns:
        (effective start date, race-day ProjectionPoint)
    """
    start_date = max(today, race_date - timedelta(days=length_days))
    horizon = (race_date - today).days + 1
    taper_stress = normal_stress * intensity_fraction

    schedule = {}
    for offset in range(horizon):
        day = today + timedelta(days=offset)
        schedule[day] = taper_stress if day >= start_date else normal_stress

    projection = project_load(state, schedule, horizon, today, config)
    return start_date, projection[-1]


def optimize_taper(
    state: TrainingLoadState,
    race_date: date,
    today: Optional[date] = None,
    target_form: Optional[float] = None,
    history: Iterable[DailyStress] = (),
    config: ProjectionConfig = DEFAULT_PROJECTION_CONFIG,
) -> TaperRecommendation:
    """
    Pick the taper plan whose race-day form is closest to the target.

    Args:
        state: Current load state (before today)
        race_date: Day of the race
        today: Current date (default: date.today())
        target_form: Desired race-day TSB (default: config.taper_target_form)
        history: Recent daily stress used to estimate normal training load
        config: Projection constants and taper grid

    Returns:
        TaperRecommendation, unavailable when the race is today or past
    """
    if today is None:
        today = date.today()
    if target_form is None:
        target_form = config.taper_target_form

    not_applicable = race_date_problem(race_date, today)
    if not_applicable:
        return TaperRecommendation.unavailable(race_date, today, target_form, reason=not_applicable)
    days_to_race = (race_date - today).days

    normal_stress, source = estimate_recent_stress(state, history, today, config)

    # Race-day CTL if training continued unchanged
    _, baseline = simulate_taper(
        state, today, race_date, normal_stress, 0, 1.0, config
    )

    scenarios = []
    for length in config.taper_lengths:
        for fraction in config.taper_intensities:
            start_date, race_day = simulate_taper(
                state, today, race_date, normal_stress, length, fraction, config
            )
            scenarios.append(
                TaperScenario(
                    length_days=length,
                    intensity_fraction=fraction,
                    start_date=start_date,
                    race_day_ctl=race_day.chronic_load,
                    race_day_atl=race_day.acute_load,
                    race_day_form=race_day.form,
                    ctl_loss=baseline.chronic_load - race_day.chronic_load,
                    form_gap=abs(race_day.form - target_form),
                )
            )

    recommended = min(scenarios, key=TaperScenario.selection_key)

    return TaperRecommendation(
        available=True,
        race_date=race_date,
        today=today,
        target_form=target_form,
        days_to_race=days_to_race,
        stress_estimate=normal_stress,
        stress_estimate_source=source,
        recommended=recommended,
        alternatives=scenarios,
    )


def format_taper_recommendation(recommendation: TaperRecommendation) -> str:
    """Format a taper recommendation as a plain-text report section."""
    lines = [f"Taper Plan - race on {recommendation.race_date.strftime('%a %d %b %Y')}"]
    lines.append("=" * 50)

    if not recommendation.available:
        lines.append(f"  Not applicable: {recommendation.reason}")
        return "\n".join(lines)

    best = recommendation.recommended
    lines.append(f"  Days to race:   {recommendation.days_to_race}")
    lines.append(f"  Normal load:    {recommendation.stress_estimate:.0f} TSS/day")
    lines.append(f"  Target form:    {recommendation.target_form:+.0f}")
    lines.append("")
    lines.append(
        f"  Recommended: {best.length_days}-day {best.intensity} taper "
        f"({best.intensity_fraction:.0%} load) from {best.start_date.strftime('%a %d %b')}"
    )
    lines.append(
        f"  Race day:    CTL {best.race_day_ctl:.1f}, TSB {best.race_day_form:+.1f} "
        f"(fitness cost {best.ctl_loss:.1f})"
    )
    lines.append("")
    lines.append("  Length  Load   Start       CTL    TSB")
    for scenario in sorted(recommendation.alternatives, key=TaperScenario.selection_key):
        marker = "*" if scenario is best else " "
        lines.append(
            f" {marker}{scenario.length_days:>4}d  {scenario.intensity_fraction:>4.0%}  "
            f"{scenario.start_date.strftime('%d %b'):<10} {scenario.race_day_ctl:>5.1f} "
            f"{scenario.race_day_form:>+6.1f}"
        )

    return "\n".join(lines)
