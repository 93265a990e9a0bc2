"""
intervals.icu API client.

Implements ActivityDataSource and ScheduleDataSource on top of the
intervals.icu REST API (https://intervals.icu/api/v1):
- wellness records carry the platform's CTL/ATL
- activities carry icu_training_load (TSS)
- calendar events in the WORKOUT category are the planned sessions

Free-text TSS targets in placeholder workouts ("Endurance - TSS 80") are
parsed here, so the projection code only ever sees numbers.
"""

import logging
import re
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings
from ..exceptions import (
    ConfigurationError,
    DataSourceAuthError,
    DataSourceError,
    DataSourceUnavailableError,
    InvalidLoadInputError,
)
from ..models.load import DailyStress, PlannedSession, TrainingLoadState
from ..tools.retry import RetryPolicy

logger = logging.getLogger(__name__)

PROVIDER = "intervals.icu"

_TSS_AFTER = re.compile(r"\bTSS\s*[:=]?\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_TSS_BEFORE = re.compile(r"(\d+(?:\.\d+)?)\s*TSS\b", re.IGNORECASE)


def parse_tss_target(*texts: Optional[str]) -> Optional[float]:
    """
    Extract a TSS target from workout names or descriptions.

    Accepts "TSS 80", "TSS: 80", "tss=80" and "80 TSS". The first text
    containing a target wins.

    Returns:
        The target as a float, or None if no text mentions one
    """
    for text in texts:
        if not text:
            continue
        match = _TSS_AFTER.search(text) or _TSS_BEFORE.search(text)
        if match:
            return float(match.group(1))
    return None


def _event_date(raw: Dict[str, Any]) -> Optional[date]:
    value = raw.get("start_date_local") or raw.get("start_date")
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value)[:10]).date()
    except ValueError:
        return None


class IntervalsClient:
    """
    Synchronous intervals.icu client with bounded fixed-delay retries.

    Uses HTTP basic auth with the literal user name ``API_KEY`` and the
    athlete's personal API key as password.
    """

    def __init__(
        self,
        api_key: str,
        athlete_id: str,
        base_url: str = "https://intervals.icu/api/v1",
        timeout: float = 15.0,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not api_key or not athlete_id:
            raise ConfigurationError(
                "intervals.icu API key and athlete id are required",
                setting="intervals_api_key",
            )
        self.athlete_id = athlete_id
        self.retry_policy = retry_policy or RetryPolicy()
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            auth=("API_KEY", api_key),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "IntervalsClient":
        return cls(
            api_key=settings.intervals_api_key,
            athlete_id=settings.intervals_athlete_id,
            base_url=settings.intervals_base_url,
            timeout=settings.http_timeout_seconds,
            retry_policy=RetryPolicy(
                max_attempts=settings.retry_attempts,
                delay_seconds=settings.retry_delay_seconds,
            ),
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "IntervalsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _get_once(self, path: str, params: Optional[Dict[str, Any]]) -> Any:
        response = self._client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET an athlete endpoint, translating failures into DataSourceError."""
        url = f"/athlete/{self.athlete_id}/{path.lstrip('/')}"
        try:
            return self.retry_policy.call(self._get_once, url, params)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in (401, 403):
                raise DataSourceAuthError(
                    f"intervals.icu rejected the credentials ({status})", provider=PROVIDER
                ) from e
            raise DataSourceUnavailableError(
                f"intervals.icu returned {status} for {path}",
                provider=PROVIDER,
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            raise DataSourceUnavailableError(
                f"intervals.icu request failed: {e}", provider=PROVIDER
            ) from e
        except ValueError as e:
            raise DataSourceError(
                f"intervals.icu returned invalid JSON for {path}", provider=PROVIDER
            ) from e

    # ------------------------------------------------------------------
    # ActivityDataSource
    # ------------------------------------------------------------------

    def get_load_state(self, on: date) -> TrainingLoadState:
        """
        CTL/ATL at the start of ``on``.

        intervals.icu wellness values include that day's training, so the
        previous day's record is the state before ``on``.
        """
        previous = on - timedelta(days=1)
        data = self._get(f"wellness/{previous.isoformat()}")
        if not isinstance(data, dict) or data.get("ctl") is None or data.get("atl") is None:
            raise DataSourceError(
                f"No CTL/ATL in wellness record for {previous.isoformat()}", provider=PROVIDER
            )
        try:
            state = TrainingLoadState(chronic_load=data["ctl"], acute_load=data["atl"])
        except InvalidLoadInputError as e:
            raise DataSourceError(
                f"Invalid CTL/ATL in wellness record: {e.message}", provider=PROVIDER
            ) from e
        logger.debug(f"Load state for {on}: CTL={state.chronic_load:.1f} ATL={state.acute_load:.1f}")
        return state

    def get_daily_stress(self, oldest: date, newest: date) -> List[DailyStress]:
        """
        Sum icu_training_load per day.

        Days from the first returned activity through ``newest`` are
        zero-filled. Days before it are omitted, so an athlete with no
        logged history in the range gets an empty list rather than a run
        of zeros.
        """
        activities = self._get(
            "activities",
            {"oldest": oldest.isoformat(), "newest": newest.isoformat()},
        ) or []

        totals: Dict[date, float] = defaultdict(float)
        first_day: Optional[date] = None
        for activity in activities:
            day = _event_date(activity)
            if day is None or not oldest <= day <= newest:
                continue
            if first_day is None or day < first_day:
                first_day = day
            load = activity.get("icu_training_load")
            if load is None:
                continue
            if load < 0:
                logger.warning(f"Ignoring negative training load on activity {activity.get('id')}")
                continue
            totals[day] += float(load)

        if first_day is None:
            logger.debug(f"No activities logged {oldest} -> {newest}")
            return []

        days = (newest - first_day).days + 1
        return [
            DailyStress(date=first_day + timedelta(days=i), training_stress=totals.get(first_day + timedelta(days=i), 0.0))
            for i in range(days)
        ]

    # ------------------------------------------------------------------
    # ScheduleDataSource
    # ------------------------------------------------------------------

    def get_planned_sessions(self, oldest: date, newest: date) -> List[PlannedSession]:
        """Planned workouts with an explicit or parsed TSS where one exists."""
        events = self._get(
            "events",
            {
                "oldest": oldest.isoformat(),
                "newest": newest.isoformat(),
                "category": "WORKOUT",
            },
        ) or []

        sessions = []
        for event in events:
            day = _event_date(event)
            if day is None:
                continue
            name = event.get("name") or ""
            stress = event.get("icu_training_load")
            if stress is None:
                stress = parse_tss_target(name, event.get("description"))
            sessions.append(
                PlannedSession(
                    date=day,
                    training_stress=stress if stress is not None and stress >= 0 else 0.0,
                    label=name,
                    has_stress_estimate=stress is not None,
                )
            )

        sessions.sort(key=lambda s: s.date)
        logger.debug(f"Fetched {len(sessions)} planned sessions {oldest} -> {newest}")
        return sessions
