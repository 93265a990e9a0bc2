"""
Interfaces for the external data sources the forecast consumes.

Any object with these methods can feed ForecastService; the intervals.icu
client is the production implementation.
"""

from datetime import date
from typing import List, Protocol, runtime_checkable

from ..models.load import DailyStress, PlannedSession, TrainingLoadState


@runtime_checkable
class ActivityDataSource(Protocol):
    """Completed training: load snapshots and per-day stress."""

    def get_load_state(self, on: date) -> TrainingLoadState:
        """CTL/ATL as of the start of ``on``."""
        ...

    def get_daily_stress(self, oldest: date, newest: date) -> List[DailyStress]:
        """
        Daily stress in [oldest, newest], one entry per day with training
        history.

        Days without training carry 0. Days before the athlete's first logged
        activity are omitted, so a short history yields fewer entries.
        """
        ...


@runtime_checkable
class ScheduleDataSource(Protocol):
    """Planned workouts on the calendar."""

    def get_planned_sessions(self, oldest: date, newest: date) -> List[PlannedSession]:
        """Planned sessions in [oldest, newest] with TSS already parsed."""
        ...
