"""Shared fixtures for training-forecast tests."""

from datetime import date, timedelta
from typing import List, Optional

import pytest

from training_forecast.config import Settings
from training_forecast.exceptions import DataSourceError
from training_forecast.metrics.fitness import ProjectionConfig
from training_forecast.models.load import DailyStress, PlannedSession, TrainingLoadState


TODAY = date(2025, 3, 3)  # a Monday


class FakeActivitySource:
    """In-memory ActivityDataSource that records its calls."""

    def __init__(
        self,
        state: TrainingLoadState,
        history: Optional[List[DailyStress]] = None,
        error: Optional[DataSourceError] = None,
    ) -> None:
        self.state = state
        self.history = history or []
        self.error = error
        self.calls: List[str] = []

    def get_load_state(self, on: date) -> TrainingLoadState:
        self.calls.append("get_load_state")
        if self.error:
            raise self.error
        return self.state

    def get_daily_stress(self, oldest: date, newest: date) -> List[DailyStress]:
        self.calls.append("get_daily_stress")
        if self.error:
            raise self.error
        return [entry for entry in self.history if oldest <= entry.date <= newest]


class FakeScheduleSource:
    """In-memory ScheduleDataSource."""

    def __init__(self, sessions: Optional[List[PlannedSession]] = None) -> None:
        self.sessions = sessions or []
        self.requested: List[tuple] = []

    def get_planned_sessions(self, oldest: date, newest: date) -> List[PlannedSession]:
        self.requested.append((oldest, newest))
        return [s for s in self.sessions if oldest <= s.date <= newest]


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def config() -> ProjectionConfig:
    return ProjectionConfig()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the developer's .env and environment keys."""
    return Settings(
        _env_file=None,
        intervals_api_key="test-key",
        intervals_athlete_id="i12345",
        openai_api_key="",
        retry_delay_seconds=0.0,
    )


@pytest.fixture
def fresh_state() -> TrainingLoadState:
    """CTL 50 / ATL 40, form +10."""
    return TrainingLoadState(chronic_load=50.0, acute_load=40.0)


@pytest.fixture
def steady_history() -> List[DailyStress]:
    """Two weeks at 60 TSS/day ending yesterday."""
    return [
        DailyStress(date=TODAY - timedelta(days=offset), training_stress=60.0)
        for offset in range(1, 15)
    ]



@pytest.fixture
def activity_source_cls():
    return FakeActivitySource


@pytest.fixture
def schedule_source_cls():
    return FakeScheduleSource
