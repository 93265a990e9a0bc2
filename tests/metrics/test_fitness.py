"""Tests for the CTL/ATL/TSB projection."""

import math
import pytest
from datetime import date, timedelta

from training_forecast.exceptions import InvalidLoadInputError
from training_forecast.metrics.fitness import (
    ProjectionConfig,
    calculate_ewma,
    classify_form,
    format_day_label,
    project_load,
    stress_by_date,
)
from training_forecast.models.load import DailyStress, TrainingLoadState


class TestEWMA:
    """Tests for the single-day update rule."""

    def test_ewma_moves_toward_value(self):
        """EWMA should move 1/tau of the way toward today's value."""
        assert calculate_ewma(100, 58, 42) == pytest.approx(59.0)
        assert calculate_ewma(0, 70, 7) == pytest.approx(60.0)

    def test_ewma_fixed_point(self):
        """Stress equal to the current average leaves it unchanged."""
        assert calculate_ewma(50, 50, 42) == 50


class TestProjectLoad:
    """Tests for project_load."""

    def test_identical_inputs_identical_output(self, fresh_state, today):
        """Running the projection twice yields the same sequence."""
        schedule = {today + timedelta(days=i): float(i * 10) for i in range(10)}

        first = project_load(fresh_state, schedule, 10, today)
        second = project_load(fresh_state, schedule, 10, today)

        assert first == second

    def test_input_schedule_not_mutated(self, fresh_state, today):
        """The caller's schedule mapping is left untouched."""
        schedule = {today: 80.0}
        project_load(fresh_state, schedule, 5, today)
        assert schedule == {today: 80.0}

    def test_rest_decays_loads_and_raises_form(self, today):
        """All-rest schedule: loads strictly fall, form strictly rises, nothing hits zero."""
        state = TrainingLoadState(chronic_load=50.0, acute_load=80.0)

        points = project_load(state, {}, 14, today)

        previous_ctl, previous_atl = state.chronic_load, state.acute_load
        previous_form = state.form
        for point in points:
            assert point.chronic_load < previous_ctl
            assert point.acute_load < previous_atl
            assert point.form > previous_form
            assert point.chronic_load > 0
            assert point.acute_load > 0
            previous_ctl, previous_atl, previous_form = point.chronic_load, point.acute_load, point.form

    def test_steady_stress_converges(self, today):
        """Constant stress S drives CTL and ATL to S and form to 0."""
        state = TrainingLoadState(chronic_load=0.0, acute_load=0.0)
        schedule = {today + timedelta(days=i): 60.0 for i in range(420)}

        points = project_load(state, schedule, 420, today)

        assert points[-1].chronic_load == pytest.approx(60.0, abs=0.1)
        assert points[-1].acute_load == pytest.approx(60.0, abs=0.1)
        assert points[-1].form == pytest.approx(0.0, abs=0.1)

    def test_steady_state_is_a_fixed_point(self, today):
        """Starting at CTL = ATL = S with stress S stays put."""
        state = TrainingLoadState(chronic_load=50.0, acute_load=50.0)
        schedule = {today + timedelta(days=i): 50.0 for i in range(7)}

        points = project_load(state, schedule, 7, today)

        assert all(p.chronic_load == 50.0 and p.acute_load == 50.0 for p in points)
        assert all(p.form == 0.0 for p in points)

    def test_horizon_one_is_one_update(self, fresh_state, today):
        """Horizon 1 returns today's point after exactly one update step."""
        points = project_load(fresh_state, {today: 100.0}, 1, today)

        assert len(points) == 1
        point = points[0]
        assert point.date == today
        assert point.day_label == "Today"
        assert point.training_stress == 100.0
        assert point.chronic_load == round(50 + (100 - 50) / 42, 1)
        assert point.acute_load == round(40 + (100 - 40) / 7, 1)
        assert point.form == round((50 + 50 / 42) - (40 + 60 / 7), 1)

    def test_horizon_zero_is_empty(self, fresh_state, today):
        """Horizon 0 yields no points."""
        assert project_load(fresh_state, {today: 100.0}, 0, today) == []

    def test_basic_projection_scenario(self, fresh_state, today):
        """CTL 50 / ATL 40 and two weeks of rest: form above 10, loads below start."""
        points = project_load(fresh_state, {}, 14, today)

        assert len(points) == 14
        assert points[-1].form > 10
        assert points[-1].chronic_load < 50
        assert points[-1].acute_load < 40

    def test_points_are_consecutive_days(self, fresh_state, today):
        """Points start today and advance one day at a time."""
        points = project_load(fresh_state, {}, 5, today)
        assert [p.date for p in points] == [today + timedelta(days=i) for i in range(5)]

    def test_dates_outside_horizon_ignored(self, fresh_state, today):
        """Schedule entries before today or past the horizon don't count."""
        schedule = {today - timedelta(days=1): 500.0, today + timedelta(days=10): 500.0}

        points = project_load(fresh_state, schedule, 3, today)

        assert all(p.training_stress == 0 for p in points)
        assert points == project_load(fresh_state, {}, 3, today)

    def test_accumulates_at_full_precision(self, today):
        """Rounding applies to output only, not to the running state."""
        state = TrainingLoadState(chronic_load=0.0, acute_load=0.0)
        schedule = {today + timedelta(days=i): 1.0 for i in range(30)}

        points = project_load(state, schedule, 30, today)

        exact = 0.0
        for _ in range(30):
            exact += (1.0 - exact) / 42
        assert points[-1].chronic_load == round(exact, 1)

    def test_custom_time_constants(self, fresh_state, today):
        """Time constants come from the config."""
        config = ProjectionConfig(chronic_tau=28.0, acute_tau=5.0)
        point = project_load(fresh_state, {}, 1, today, config)[0]

        assert point.chronic_load == round(50 - 50 / 28, 1)
        assert point.acute_load == round(40 - 40 / 5, 1)


class TestProjectLoadValidation:
    """Malformed input aborts the projection."""

    def test_negative_horizon_rejected(self, fresh_state, today):
        with pytest.raises(InvalidLoadInputError):
            project_load(fresh_state, {}, -1, today)

    @pytest.mark.parametrize("horizon", [1.5, "7", None, True])
    def test_non_integer_horizon_rejected(self, fresh_state, today, horizon):
        with pytest.raises(InvalidLoadInputError):
            project_load(fresh_state, {}, horizon, today)

    @pytest.mark.parametrize("stress", [-10.0, math.nan, math.inf, "hard"])
    def test_bad_stress_rejected(self, fresh_state, today, stress):
        with pytest.raises(InvalidLoadInputError):
            project_load(fresh_state, {today: stress}, 3, today)

    @pytest.mark.parametrize(
        "chronic, acute",
        [
            (-1.0, 10.0),
            (math.nan, 10.0),
            (50.0, math.inf),
            (-math.inf, 10.0),
            ("fifty", 10.0),
        ],
    )
    def test_invalid_starting_load_rejected(self, chronic, acute):
        """Negative, non-finite and non-numeric starting loads are refused."""
        with pytest.raises(InvalidLoadInputError):
            TrainingLoadState(chronic_load=chronic, acute_load=acute)

    def test_invalid_config_rejected(self):
        """Time constants must be positive and the taper grid well formed."""
        with pytest.raises(InvalidLoadInputError):
            ProjectionConfig(chronic_tau=0)
        with pytest.raises(InvalidLoadInputError):
            ProjectionConfig(taper_intensities=(0.5, 1.5))
        with pytest.raises(InvalidLoadInputError):
            ProjectionConfig(stress_lookback_days=5, min_lookback_days=7)

    def test_error_serializes(self, fresh_state, today):
        """The error carries a code and the offending field."""
        with pytest.raises(InvalidLoadInputError) as exc_info:
            project_load(fresh_state, {today: -5}, 1, today)

        data = exc_info.value.to_dict()
        assert data["error"]["code"] == "INVALID_LOAD_INPUT"
        assert "training_stress" in data["error"]["details"]["field"]


class TestHelpers:
    """Tests for labels, classification and stress aggregation."""

    def test_day_labels(self, today):
        assert format_day_label(today, today) == "Today"
        assert format_day_label(today + timedelta(days=1), today) == "Tomorrow"
        assert format_day_label(date(2025, 3, 5), today) == "Wed 05 Mar"

    def test_classify_form(self):
        assert classify_form(-25) == "fatigued"
        assert classify_form(-20) == "building"
        assert classify_form(10) == "building"
        assert classify_form(12) == "well-rested"

    def test_stress_by_date_sums_same_day(self, today):
        entries = [
            DailyStress(date=today, training_stress=40),
            DailyStress(date=today, training_stress=25),
            DailyStress(date=today + timedelta(days=1), training_stress=10),
        ]
        assert stress_by_date(entries) == {today: 65.0, today + timedelta(days=1): 10.0}

    def test_peak_form_band(self, config):
        assert config.is_peak_form(0)
        assert config.is_peak_form(20)
        assert not config.is_peak_form(-0.1)
        assert not config.is_peak_form(20.1)
