"""Tests for the intervals.icu integration."""

import base64
import httpx
import pytest
from datetime import date, timedelta

from training_forecast.exceptions import (
    ConfigurationError,
    DataSourceAuthError,
    DataSourceError,
    DataSourceUnavailableError,
)
from training_forecast.integrations.base import ActivityDataSource, ScheduleDataSource
from training_forecast.integrations.intervals import IntervalsClient, parse_tss_target
from training_forecast.tools.retry import RetryPolicy


ATHLETE = "i12345"


def make_client(handler, sleeps=None, max_attempts=3):
    """IntervalsClient wired to an in-process handler."""
    sleeps = sleeps if sleeps is not None else []
    return IntervalsClient(
        api_key="secret-key",
        athlete_id=ATHLETE,
        retry_policy=RetryPolicy(max_attempts=max_attempts, delay_seconds=2.0, sleep=sleeps.append),
        transport=httpx.MockTransport(handler),
    )


class TestParseTssTarget:
    """Tests for free-text TSS targets."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Endurance - TSS 80", 80.0),
            ("Tempo TSS: 65", 65.0),
            ("threshold tss=95.5", 95.5),
            ("Long ride 120 TSS", 120.0),
        ],
    )
    def test_formats(self, text, expected):
        assert parse_tss_target(text) == expected

    def test_no_target(self):
        assert parse_tss_target("Easy spin", None, "") is None

    def test_first_text_wins(self):
        assert parse_tss_target("Intervals", "TSS 70", "TSS 90") == 70.0


class TestIntervalsClient:
    """Tests for IntervalsClient."""

    def test_requires_credentials(self):
        with pytest.raises(ConfigurationError):
            IntervalsClient(api_key="", athlete_id=ATHLETE)

    def test_from_settings(self, settings):
        client = IntervalsClient.from_settings(settings)

        assert client.athlete_id == "i12345"
        assert client.retry_policy.max_attempts == settings.retry_attempts
        client.close()

    def test_implements_data_source_protocols(self):
        client = make_client(lambda request: httpx.Response(200, json={}))

        assert isinstance(client, ActivityDataSource)
        assert isinstance(client, ScheduleDataSource)

    def test_load_state_uses_previous_day_and_basic_auth(self, today):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json={"id": "2025-03-02", "ctl": 62.4, "atl": 70.1})

        state = make_client(handler).get_load_state(today)

        assert state.chronic_load == 62.4
        assert state.acute_load == 70.1
        assert seen["path"] == f"/api/v1/athlete/{ATHLETE}/wellness/2025-03-02"
        expected = base64.b64encode(b"API_KEY:secret-key").decode()
        assert seen["auth"] == f"Basic {expected}"

    def test_load_state_missing_values(self, today):
        client = make_client(lambda request: httpx.Response(200, json={"id": "2025-03-02"}))

        with pytest.raises(DataSourceError):
            client.get_load_state(today)

    def test_daily_stress_sums_and_fills_from_first_activity(self, today):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[
                {"id": 1, "start_date_local": "2025-02-25T07:00:00", "icu_training_load": 40},
                {"id": 2, "start_date_local": "2025-02-25T18:30:00", "icu_training_load": 35},
                {"id": 3, "start_date_local": "2025-02-27T09:00:00", "icu_training_load": 90},
                {"id": 4, "start_date_local": "2025-02-27T12:00:00"},
            ])

        oldest = today - timedelta(days=7)
        stress = make_client(handler).get_daily_stress(oldest, today - timedelta(days=1))

        assert seen["params"] == {"oldest": "2025-02-24", "newest": "2025-03-02"}
        # 2025-02-24 precedes the first activity and is omitted
        assert [entry.date for entry in stress] == [date(2025, 2, 25) + timedelta(days=i) for i in range(6)]
        by_date = {entry.date: entry.training_stress for entry in stress}
        assert by_date[date(2025, 2, 25)] == 75.0
        assert by_date[date(2025, 2, 26)] == 0.0
        assert by_date[date(2025, 2, 27)] == 90.0
        assert by_date[date(2025, 3, 2)] == 0.0

    def test_daily_stress_without_activities_is_empty(self, today):
        client = make_client(lambda request: httpx.Response(200, json=[]))

        assert client.get_daily_stress(today - timedelta(days=14), today - timedelta(days=1)) == []

    def test_planned_sessions(self, today):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["category"] = request.url.params["category"]
            return httpx.Response(200, json=[
                {"start_date_local": "2025-03-05T00:00:00", "name": "Easy spin", "category": "WORKOUT"},
                {"start_date_local": "2025-03-04T00:00:00", "name": "Endurance - TSS 80", "category": "WORKOUT"},
                {"start_date_local": "2025-03-03T00:00:00", "name": "Threshold", "icu_training_load": 95},
            ])

        sessions = make_client(handler).get_planned_sessions(today, today + timedelta(days=6))

        assert seen["path"].endswith("/events")
        assert seen["category"] == "WORKOUT"
        assert [s.date for s in sessions] == [today, today + timedelta(days=1), today + timedelta(days=2)]
        assert sessions[0].training_stress == 95
        assert sessions[1].training_stress == 80.0
        assert sessions[1].has_stress_estimate is True
        assert sessions[2].training_stress == 0.0
        assert sessions[2].has_stress_estimate is False
        assert sessions[2].label == "Easy spin"

    def test_auth_failure_not_retried(self, today):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, json={"error": "unauthorized"})

        with pytest.raises(DataSourceAuthError):
            make_client(handler).get_load_state(today)
        assert len(calls) == 1

    def test_server_error_retried_then_unavailable(self, today):
        calls = []
        sleeps = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        with pytest.raises(DataSourceUnavailableError) as exc_info:
            make_client(handler, sleeps).get_load_state(today)

        assert len(calls) == 3
        assert sleeps == [2.0, 2.0]
        assert exc_info.value.details["status_code"] == 503

    def test_transient_error_recovers(self, today):
        responses = [httpx.Response(502), httpx.Response(200, json={"ctl": 50, "atl": 45})]

        state = make_client(lambda request: responses.pop(0)).get_load_state(today)

        assert state.chronic_load == 50
        assert responses == []

    def test_connection_error_unavailable(self, today):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DataSourceUnavailableError):
            make_client(handler).get_load_state(today)

    def test_not_found_unavailable_without_retry(self, today):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        with pytest.raises(DataSourceUnavailableError):
            make_client(handler).get_planned_sessions(today, today)
        assert len(calls) == 1

    def test_invalid_json(self, today):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

        with pytest.raises(DataSourceError):
            client.get_load_state(today)
