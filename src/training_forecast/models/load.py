"""Training-load records shared by the projection, analysis and integration layers."""

import math
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..exceptions import InvalidLoadInputError


def validate_load_value(value: Any, field: str) -> float:
    """
    Coerce a load or stress value to float, rejecting garbage.

    Args:
        value: Raw numeric value
        field: Field name used in the error

    Returns:
        The value as a float

    Raises:
        InvalidLoadInputError: If the value is not a finite, non-negative number
    """
    if isinstance(value, bool):
        raise InvalidLoadInputError(f"{field} must be a number", field=field, value=value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidLoadInputError(f"{field} must be a number", field=field, value=value)
    if not math.isfinite(number):
        raise InvalidLoadInputError(f"{field} must be finite", field=field, value=value)
    if number < 0:
        raise InvalidLoadInputError(f"{field} must not be negative", field=field, value=value)
    return number


@dataclass
class TrainingLoadState:
    """Current fitness (CTL) and fatigue (ATL) of the athlete."""

    chronic_load: float  # CTL, 42-day EWMA
    acute_load: float  # ATL, 7-day EWMA

    def __post_init__(self) -> None:
        self.chronic_load = validate_load_value(self.chronic_load, "chronic_load")
        self.acute_load = validate_load_value(self.acute_load, "acute_load")

    @property
    def form(self) -> float:
        """Training Stress Balance (TSB) = CTL - ATL."""
        return self.chronic_load - self.acute_load

    def to_dict(self) -> dict:
        return {
            "ctl": round(self.chronic_load, 1),
            "atl": round(self.acute_load, 1),
            "tsb": round(self.form, 1),
        }


@dataclass
class DailyStress:
    """One day's planned or actual training stress (TSS)."""

    date: date
    training_stress: float

    def __post_init__(self) -> None:
        if not isinstance(self.date, date):
            raise InvalidLoadInputError("date must be a date", field="date", value=self.date)
        self.training_stress = validate_load_value(self.training_stress, "training_stress")

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "tss": round(self.training_stress, 1),
        }


@dataclass
class PlannedSession:
    """
    A workout on the calendar.

    Sessions without a TSS annotation carry zero stress and
    ``has_stress_estimate=False`` so reports can flag them.
    """

    date: date
    training_stress: float = 0.0
    label: str = ""
    has_stress_estimate: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.date, date):
            raise InvalidLoadInputError("date must be a date", field="date", value=self.date)
        self.training_stress = validate_load_value(self.training_stress, "training_stress")

    @property
    def is_rest(self) -> bool:
        return self.training_stress == 0

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "tss": round(self.training_stress, 1),
            "label": self.label,
            "has_stress_estimate": self.has_stress_estimate,
        }


@dataclass
class ProjectionPoint:
    """A single simulated day. Loads and form are rounded to one decimal."""

    date: date
    day_label: str
    chronic_load: float
    acute_load: float
    form: float
    training_stress: float

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "day": self.day_label,
            "ctl": self.chronic_load,
            "atl": self.acute_load,
            "tsb": self.form,
            "tss": self.training_stress,
        }
