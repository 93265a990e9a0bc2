"""Fitness-Fatigue projection (CTL, ATL, TSB) over a planned stress schedule."""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..exceptions import InvalidLoadInputError
from ..models.load import (
    DailyStress,
    ProjectionPoint,
    TrainingLoadState,
    validate_load_value,
)


@dataclass(frozen=True)
class ProjectionConfig:
    """
    Tunable constants of the projection and its reports.

    The taper grid and form bands are empirical values carried over from
    the coaching scripts; treat them as configuration.
    """

    chronic_tau: float = 42.0
    acute_tau: float = 7.0

    # Form (TSB) bands
    peak_form_min: float = 0.0
    peak_form_max: float = 20.0
    fatigue_warning_form: float = -20.0  # below: fatigue warning / "fatigued"
    sustainable_form_floor: float = -30.0  # week is sustainable if min form >= this
    well_rested_form: float = 10.0  # above: "well-rested"

    # Workout impact preview
    impact_horizon_days: int = 14
    impact_week_days: int = 7

    # Taper search
    taper_lengths: Tuple[int, ...] = (7, 10, 14, 17, 21)
    taper_intensities: Tuple[float, ...] = (0.30, 0.50, 0.70)
    taper_target_form: float = 10.0
    stress_lookback_days: int = 14
    min_lookback_days: int = 7

    def __post_init__(self) -> None:
        if self.chronic_tau <= 0 or self.acute_tau <= 0:
            raise InvalidLoadInputError("time constants must be positive", field="tau")
        if self.peak_form_min > self.peak_form_max:
            raise InvalidLoadInputError("peak form band is inverted", field="peak_form_min")
        if not self.taper_lengths or any(length < 1 for length in self.taper_lengths):
            raise InvalidLoadInputError("taper lengths must be positive", field="taper_lengths")
        if not self.taper_intensities or any(
            not 0 <= fraction <= 1 for fraction in self.taper_intensities
        ):
            raise InvalidLoadInputError(
                "taper intensities must be fractions in [0, 1]", field="taper_intensities"
            )
        if self.min_lookback_days < 1 or self.stress_lookback_days < self.min_lookback_days:
            raise InvalidLoadInputError(
                "stress lookback must cover the minimum lookback", field="stress_lookback_days"
            )

    def is_peak_form(self, form: float) -> bool:
        return self.peak_form_min <= form <= self.peak_form_max


DEFAULT_PROJECTION_CONFIG = ProjectionConfig()


def calculate_ewma(current_value: float, previous_ewma: float, time_constant: float) -> float:
    """
    Advance an exponentially weighted moving average by one day.

    Uses the formula: EWMA_n = EWMA_{n-1} + (value - EWMA_{n-1}) / time_constant

    Args:
        current_value: Today's training stress
        previous_ewma: Yesterday's EWMA value
        time_constant: Time constant in days (42 for CTL, 7 for ATL)

    Returns:
        New EWMA value
    """
    return previous_ewma + (current_value - previous_ewma) / time_constant


def format_day_label(day: date, start_date: date) -> str:
    """Human label for a projected day: Today, Tomorrow, then 'Wed 21 Oct'."""
    offset = (day - start_date).days
    if offset == 0:
        return "Today"
    if offset == 1:
        return "Tomorrow"
    return day.strftime("%a %d %b")


def stress_by_date(entries: Iterable[DailyStress]) -> Dict[date, float]:
    """Collapse stress records into a date -> TSS mapping, summing same-day entries."""
    schedule: Dict[date, float] = {}
    for entry in entries:
        schedule[entry.date] = schedule.get(entry.date, 0.0) + entry.training_stress
    return schedule


def project_load(
    state: TrainingLoadState,
    schedule: Mapping[date, float],
    horizon_days: int,
    start_date: Optional[date] = None,
    config: ProjectionConfig = DEFAULT_PROJECTION_CONFIG,
) -> List[ProjectionPoint]:
    """
    Simulate CTL/ATL/TSB forward from a starting state.

    Day 0 is ``start_date`` and already includes that day's stress. Dates
    missing from the schedule are rest days. Accumulation runs at full
    precision; only the emitted points are rounded.

    Args:
        state: Load state before ``start_date``
        schedule: Mapping of date to training stress (TSS)
        horizon_days: Number of days to simulate (0 yields an empty list)
        start_date: First simulated day (default: today)
        config: Time constants

    Returns:
        List of ProjectionPoint, one per simulated day

    Raises:
        InvalidLoadInputError: On a negative horizon or malformed stress
    """
    if isinstance(horizon_days, bool) or not isinstance(horizon_days, int):
        raise InvalidLoadInputError("horizon_days must be an integer", field="horizon_days", value=horizon_days)
    if horizon_days < 0:
        raise InvalidLoadInputError("horizon_days must not be negative", field="horizon_days", value=horizon_days)

    if start_date is None:
        start_date = date.today()

    ctl = state.chronic_load
    atl = state.acute_load
    points = []

    for offset in range(horizon_days):
        day = start_date + timedelta(days=offset)
        stress = validate_load_value(schedule.get(day, 0.0), f"training_stress[{day.isoformat()}]")

        ctl = calculate_ewma(stress, ctl, config.chronic_tau)
        atl = calculate_ewma(stress, atl, config.acute_tau)

        points.append(
            ProjectionPoint(
                date=day,
                day_label=format_day_label(day, start_date),
                chronic_load=round(ctl, 1),
                acute_load=round(atl, 1),
                form=round(ctl - atl, 1),
                training_stress=round(stress, 1),
            )
        )

    return points


def classify_form(form: float, config: ProjectionConfig = DEFAULT_PROJECTION_CONFIG) -> str:
    """
    Classify form into the coaching states used by the fallback narrative.

    - < fatigue_warning_form (-20): fatigued
    - > well_rested_form (10): well-rested
    - otherwise: building
    """
    if form < config.fatigue_warning_form:
        return "fatigued"
    if form > config.well_rested_form:
        return "well-rested"
    return "building"
