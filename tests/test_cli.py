"""Tests for the command-line interface."""

import json
import pytest
from datetime import timedelta
from unittest.mock import patch

from training_forecast import cli
from training_forecast.exceptions import ConfigurationError, DataSourceUnavailableError
from training_forecast.models.load import PlannedSession, TrainingLoadState
from training_forecast.services.forecast_service import ForecastService


@pytest.fixture
def service(today, steady_history, activity_source_cls, schedule_source_cls):
    sessions = [PlannedSession(date=today + timedelta(days=1), training_stress=90, label="Threshold")]
    return ForecastService(
        activity_source_cls(TrainingLoadState(chronic_load=60.0, acute_load=55.0), steady_history),
        schedule_source_cls(sessions),
        clock=lambda: today,
    )


@pytest.fixture
def run_cli(service, settings):
    """Run main() against the in-memory service."""

    def run(*argv, build=None):
        with patch.object(cli, "get_settings", return_value=settings), \
                patch.object(cli, "configure_logging"), \
                patch.object(cli, "build_forecast_service", build or (lambda s: service)):
            cli.main(list(argv))

    return run


class TestCli:
    """Tests for training-forecast commands."""

    def test_project_json(self, run_cli, capsys, today):
        run_cli("--json", "--today", today.isoformat(), "project", "--days", "3")

        data = json.loads(capsys.readouterr().out)
        assert [p["tss"] for p in data["projection"]] == [0, 90, 0]
        assert data["projection"][0]["day"] == "Today"

    def test_impact_json(self, run_cli, capsys):
        run_cli("--json", "impact", "--tss", "80")

        data = json.loads(capsys.readouterr().out)
        assert data["candidate_tss"] == 80
        assert data["tomorrow_form_delta"] < 0
        assert data["narrative"]["source"] == "rule_based"

    def test_taper_json(self, run_cli, capsys, today):
        race = (today + timedelta(days=14)).isoformat()

        run_cli("--json", "taper", "--race-date", race, "--target-form", "15")

        data = json.loads(capsys.readouterr().out)
        assert data["available"] is True
        assert data["target_form"] == 15.0
        assert len(data["alternatives"]) == 15

    def test_taper_past_race_table(self, run_cli, capsys, today):
        run_cli("taper", "--race-date", (today - timedelta(days=2)).isoformat())

        out = capsys.readouterr().out
        assert "Taper not available" in out

    def test_week_table(self, run_cli, capsys):
        run_cli("week")

        out = capsys.readouterr().out
        assert "Week Ahead" in out
        assert "Sustainable week" in out

    def test_impact_table(self, run_cli, capsys):
        run_cli("impact", "--tss", "80")

        out = capsys.readouterr().out
        assert "Workout Impact" in out
        assert "Productive training load" in out

    def test_week_plain(self, run_cli, capsys):
        run_cli("--plain", "week")

        out = capsys.readouterr().out
        assert out.startswith("Week Ahead:")
        assert "Verdict: sustainable week" in out

    def test_impact_plain_includes_narrative(self, run_cli, capsys):
        run_cli("--plain", "impact", "--tss", "80")

        out = capsys.readouterr().out
        assert out.startswith("Workout Impact (80 TSS today)")
        assert "Productive training load" in out

    def test_taper_plain(self, run_cli, capsys, today):
        run_cli("--plain", "taper", "--race-date", (today + timedelta(days=14)).isoformat())

        out = capsys.readouterr().out
        assert "Recommended:" in out

    def test_project_plain(self, run_cli, capsys, today):
        run_cli("--plain", "--today", today.isoformat(), "project", "--days", "3")

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "Load Projection"
        assert lines[3].split()[0] == "Today"
        assert len(lines) == 6

    def test_json_and_plain_exclusive(self, run_cli):
        with pytest.raises(SystemExit):
            run_cli("--json", "--plain", "week")

    def test_closes_service_after_command(self, run_cli, service):
        closed = []
        service.activity_source.close = lambda: closed.append("activity")

        run_cli("--json", "week")

        assert closed == ["activity"]

    def test_closes_service_on_failure(self, run_cli, service):
        closed = []
        service.activity_source.close = lambda: closed.append("activity")
        service.activity_source.error = DataSourceUnavailableError("timed out", provider="intervals.icu")

        with pytest.raises(SystemExit):
            run_cli("impact", "--tss", "80")

        assert closed == ["activity"]

    def test_missing_configuration_exits(self, run_cli, capsys):
        def build(settings):
            raise ConfigurationError("intervals.icu API key and athlete id are required")

        with pytest.raises(SystemExit) as exc_info:
            run_cli("week", build=build)

        assert exc_info.value.code == 2
        assert "Configuration error" in capsys.readouterr().out

    def test_data_source_failure_exits(self, run_cli, capsys, service):
        service.activity_source.error = DataSourceUnavailableError("timed out", provider="intervals.icu")

        with pytest.raises(SystemExit) as exc_info:
            run_cli("impact", "--tss", "80")

        assert exc_info.value.code == 1
        assert "Could not fetch training data" in capsys.readouterr().out

    def test_invalid_tss_exits(self, run_cli, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run_cli("--json", "impact", "--tss", "-20")

        assert exc_info.value.code == 1
        data = json.loads(capsys.readouterr().out)
        assert data["error"]["code"] == "INVALID_LOAD_INPUT"

    def test_bad_date_rejected_by_parser(self, run_cli):
        with pytest.raises(SystemExit):
            run_cli("taper", "--race-date", "next sunday")

    def test_no_command_prints_help(self, run_cli, capsys):
        run_cli()

        assert "usage: training-forecast" in capsys.readouterr().out
