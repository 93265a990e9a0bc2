"""
Forecast service.

Fetches fresh snapshots from the data sources, runs the pure projection
analyses and attaches narratives. Each call is independent; nothing is
cached between calls.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

from ..analysis.impact import ImpactComparison, compare_workout_impact
from ..analysis.taper import TaperRecommendation, optimize_taper, race_date_problem
from ..analysis.weekly_impact import WeeklyImpactSummary, summarize_week
from ..config import Settings, get_settings
from ..exceptions import DataSourceError
from ..integrations.base import ActivityDataSource, ScheduleDataSource
from ..integrations.intervals import IntervalsClient
from ..llm.narrative import NarrativeGenerator, RuleBasedNarrativeGenerator, build_narrative_generator
from ..metrics.fitness import DEFAULT_PROJECTION_CONFIG, ProjectionConfig, project_load
from ..models.load import PlannedSession, ProjectionPoint

logger = logging.getLogger(__name__)


def merge_sessions_by_day(
    sessions: List[PlannedSession],
    start: date,
    days: int,
) -> List[PlannedSession]:
    """
    One PlannedSession per day in [start, start + days), rest days included.

    Multiple workouts on a day are combined: stress is summed and labels
    joined.
    """
    by_day: Dict[date, List[PlannedSession]] = {}
    for session in sessions:
        by_day.setdefault(session.date, []).append(session)

    merged = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        planned = by_day.get(day, [])
        if not planned:
            merged.append(PlannedSession(date=day, training_stress=0.0, label="Rest"))
            continue
        merged.append(
            PlannedSession(
                date=day,
                training_stress=sum(s.training_stress for s in planned),
                label=" + ".join(s.label for s in planned if s.label),
                has_stress_estimate=all(s.has_stress_estimate for s in planned),
            )
        )
    return merged


class ForecastService:
    """Orchestrates data fetching, projection analyses and narratives."""

    def __init__(
        self,
        activity_source: ActivityDataSource,
        schedule_source: ScheduleDataSource,
        narrative_generator: Optional[NarrativeGenerator] = None,
        config: ProjectionConfig = DEFAULT_PROJECTION_CONFIG,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.activity_source = activity_source
        self.schedule_source = schedule_source
        self.config = config
        self.narrative_generator = narrative_generator or RuleBasedNarrativeGenerator(config)
        self._clock = clock

    def close(self) -> None:
        """Close data sources that hold connections (each source once)."""
        closed = []
        for source in (self.activity_source, self.schedule_source):
            close = getattr(source, "close", None)
            if close is None or any(source is c for c in closed):
                continue
            close()
            closed.append(source)

    def __enter__(self) -> "ForecastService":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _resolve_today(self, today: Optional[date]) -> date:
        return today or self._clock()

    def _unavailable_taper(
        self, race_date: date, today: date, target_form: float, reason: str
    ) -> TaperRecommendation:
        recommendation = TaperRecommendation.unavailable(race_date, today, target_form, reason=reason)
        recommendation.narrative = RuleBasedNarrativeGenerator(self.config).describe_taper(recommendation)
        return recommendation

    def _planned_schedule(self, start: date, days: int) -> Dict[date, float]:
        if days <= 0:
            return {}
        sessions = self.schedule_source.get_planned_sessions(start, start + timedelta(days=days - 1))
        return {
            s.date: s.training_stress
            for s in merge_sessions_by_day(sessions, start, days)
        }

    def project(self, days: int = 14, today: Optional[date] = None) -> List[ProjectionPoint]:
        """
        Project the planned calendar forward from today.

        Raises:
            DataSourceError: If current load or the calendar can't be fetched
        """
        today = self._resolve_today(today)
        state = self.activity_source.get_load_state(today)
        schedule = self._planned_schedule(today, days)
        return project_load(state, schedule, days, today, self.config)

    def impact_preview(self, candidate_stress: float, today: Optional[date] = None) -> ImpactComparison:
        """
        Compare doing a session of ``candidate_stress`` TSS today with resting.

        Raises:
            DataSourceError: If current load or the calendar can't be fetched
        """
        today = self._resolve_today(today)
        horizon = self.config.impact_horizon_days

        state = self.activity_source.get_load_state(today)
        schedule = self._planned_schedule(today, horizon)

        comparison = compare_workout_impact(
            candidate_stress, state, schedule, today, self.config, horizon
        )
        comparison.narrative = self.narrative_generator.describe_impact(comparison)
        logger.info(
            f"Impact preview: {candidate_stress:.0f} TSS -> tomorrow TSB delta "
            f"{comparison.tomorrow_form_delta:+.1f}, 2-week CTL delta {comparison.two_week_load_delta:+.1f}"
        )
        return comparison

    def taper_recommendation(
        self,
        race_date: date,
        target_form: Optional[float] = None,
        today: Optional[date] = None,
    ) -> TaperRecommendation:
        """
        Recommend a taper for ``race_date``.

        Never raises for missing data: a past race or an unreachable data
        source yields an unavailable recommendation with a reason.
        """
        today = self._resolve_today(today)
        if target_form is None:
            target_form = self.config.taper_target_form

        not_applicable = race_date_problem(race_date, today)
        if not_applicable:
            return self._unavailable_taper(race_date, today, target_form, not_applicable)

        try:
            state = self.activity_source.get_load_state(today)
            history = self.activity_source.get_daily_stress(
                today - timedelta(days=self.config.stress_lookback_days),
                today - timedelta(days=1),
            )
        except DataSourceError as e:
            logger.warning(f"Taper recommendation unavailable: {e.message}")
            return self._unavailable_taper(
                race_date, today, target_form, f"Training data unavailable: {e.message}"
            )

        recommendation = optimize_taper(
            state, race_date, today, target_form, history, self.config
        )
        recommendation.narrative = self.narrative_generator.describe_taper(recommendation)
        return recommendation

    def week_impact(self, start: Optional[date] = None, days: int = 7) -> WeeklyImpactSummary:
        """
        Summarize the planned week starting at ``start`` (default today).

        Raises:
            DataSourceError: If current load or the calendar can't be fetched
        """
        start = self._resolve_today(start)
        state = self.activity_source.get_load_state(start)
        planned = self.schedule_source.get_planned_sessions(start, start + timedelta(days=days - 1))
        sessions = merge_sessions_by_day(planned, start, days)
        return summarize_week(sessions, state, self.config)


def build_forecast_service(settings: Optional[Settings] = None) -> ForecastService:
    """Wire the intervals.icu client and narrative generator from settings."""
    settings = settings or get_settings()
    client = IntervalsClient.from_settings(settings)
    config = settings.projection_config()
    return ForecastService(
        activity_source=client,
        schedule_source=client,
        narrative_generator=build_narrative_generator(settings, config),
        config=config,
    )
