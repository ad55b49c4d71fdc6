"""Tests for the glucose prediction engine."""

import math
from datetime import timedelta

import pytest

from glucopredict.core.prediction import (
    CarbEvent,
    DoseEvent,
    InvalidPredictionInputError,
    PredictionEngine,
    PredictionRequest,
    PredictionTrend,
    UserParameters,
)
from glucopredict.core.prediction.engine import (
    classify_trend,
    clamp_glucose,
    score_confidence,
)


@pytest.fixture
def engine() -> PredictionEngine:
    return PredictionEngine()


def dose(reference_time, minutes_ago: float, units: float) -> DoseEvent:
    return DoseEvent(timestamp=reference_time - timedelta(minutes=minutes_ago), units=units)


def meal(reference_time, minutes_ago: float, grams: float) -> CarbEvent:
    return CarbEvent(timestamp=reference_time - timedelta(minutes=minutes_ago), grams=grams)


class TestReferenceScenarios:
    def test_single_fresh_dose(self, engine, reference_time):
        result = engine.predict_glucose(
            current_glucose=10.9,
            reference_time=reference_time,
            dose_events=[dose(reference_time, 0, 2.0)],
            carb_events=[],
            user_parameters=UserParameters(insulin_sensitivity_factor=2.0, carb_ratio=2.0),
        )

        assert result.factors.insulin_contribution == -4.0
        assert result.factors.carb_contribution == 0.0
        assert result.factors.total_effect == pytest.approx(-4.0)
        assert result.predicted_glucose == 6.9
        assert result.trend == PredictionTrend.falling

    def test_no_events(self, engine, reference_time):
        result = engine.predict_glucose(current_glucose=7.0, reference_time=reference_time)

        assert result.factors.total_effect == 0.0
        assert result.predicted_glucose == 7.0
        assert result.trend == PredictionTrend.stable
        assert result.confidence == 0.5

    def test_dose_one_half_life_old(self, engine, reference_time):
        result = engine.predict_glucose(
            current_glucose=8.0,
            reference_time=reference_time,
            dose_events=[dose(reference_time, 42, 2.0)],
            user_parameters=UserParameters(insulin_sensitivity_factor=2.0),
        )

        assert result.active_insulin_on_board == pytest.approx(1.0, abs=1e-6)
        assert result.factors.insulin_contribution == -2.0

    def test_large_dose_clamps_to_floor(self, engine, reference_time):
        result = engine.predict_glucose(
            current_glucose=2.0,
            reference_time=reference_time,
            dose_events=[dose(reference_time, 0, 10.0)],
            user_parameters=UserParameters(insulin_sensitivity_factor=5.0),
        )

        assert result.factors.insulin_contribution == -50.0
        assert result.predicted_glucose == 1.0

    def test_many_events_give_high_confidence(self, engine, reference_time):
        result = engine.predict_glucose(
            current_glucose=7.0,
            reference_time=reference_time,
            dose_events=[dose(reference_time, 30 * i, 1.0) for i in range(5)],
            carb_events=[meal(reference_time, 30 * i, 20.0) for i in range(5)],
        )

        assert result.confidence == 0.9


class TestPredict:
    def test_large_meal_clamps_to_ceiling(self, engine, reference_time):
        result = engine.predict_glucose(
            current_glucose=20.0,
            reference_time=reference_time,
            carb_events=[meal(reference_time, 0, 200.0)],
        )
        assert result.factors.carb_contribution == 40.0
        assert result.predicted_glucose == 25.0
        assert result.trend == PredictionTrend.rising

    def test_defaults_used_without_parameters(self, reference_time):
        engine = PredictionEngine(
            default_parameters=UserParameters(insulin_sensitivity_factor=1.5)
        )
        result = engine.predict_glucose(
            current_glucose=9.0,
            reference_time=reference_time,
            dose_events=[dose(reference_time, 0, 2.0)],
        )
        assert result.factors.insulin_contribution == -3.0

    def test_horizon_aggregates_are_audit_only(self, engine, reference_time):
        events = [meal(reference_time, 0, 30.0)]
        short = engine.predict_glucose(
            current_glucose=6.0,
            reference_time=reference_time,
            horizon_minutes=30,
            carb_events=events,
        )
        long = engine.predict_glucose(
            current_glucose=6.0,
            reference_time=reference_time,
            horizon_minutes=180,
            carb_events=events,
        )

        assert short.predicted_glucose == long.predicted_glucose
        assert short.carbs_on_board_at_horizon > long.carbs_on_board_at_horizon
        assert long.carbs_on_board_at_horizon < long.active_carbs_on_board

    def test_expired_events_still_count_toward_confidence(self, engine, reference_time):
        result = engine.predict_glucose(
            current_glucose=7.0,
            reference_time=reference_time,
            dose_events=[dose(reference_time, 300, 2.0)],
        )
        assert result.factors.insulin_contribution == 0.0
        assert result.confidence == 0.7

    def test_trend_contribution(self, engine, reference_time):
        result = engine.predict_glucose(
            current_glucose=7.0,
            reference_time=reference_time,
            glucose_trend_per_minute=0.1,
        )
        assert result.factors.trend_contribution == 0.2
        assert result.predicted_glucose == 7.2

    def test_trend_is_per_hour_of_horizon(self, engine, reference_time):
        result = engine.predict_glucose(
            current_glucose=7.0,
            reference_time=reference_time,
            horizon_minutes=120,
            glucose_trend_per_minute=0.01,
        )
        assert result.factors.trend_contribution == 0.02

    def test_predict_accepts_request(self, engine, reference_time):
        request = PredictionRequest(
            current_glucose=5.5,
            reference_time=reference_time,
            dose_events=None,
            carb_events=None,
        )
        result = engine.predict(request)
        assert result.predicted_glucose == 5.5
        assert result.horizon_minutes == 120

    def test_engine_keeps_no_state(self, engine, reference_time):
        kwargs = {
            "current_glucose": 10.0,
            "reference_time": reference_time,
            "dose_events": [dose(reference_time, 20, 3.0)],
            "carb_events": [meal(reference_time, 10, 40.0)],
        }
        assert engine.predict_glucose(**kwargs) == engine.predict_glucose(**kwargs)

    @pytest.mark.parametrize("current", [1.5, 4.0, 9.0, 18.0, 30.0])
    @pytest.mark.parametrize("units", [0.5, 5.0, 40.0])
    @pytest.mark.parametrize("grams", [5.0, 80.0, 400.0])
    def test_output_bounds(self, engine, reference_time, current, units, grams):
        result = engine.predict_glucose(
            current_glucose=current,
            reference_time=reference_time,
            dose_events=[dose(reference_time, 15, units)],
            carb_events=[meal(reference_time, 5, grams)],
        )
        assert 1.0 <= result.predicted_glucose <= 25.0
        assert 0.5 <= result.confidence <= 0.9
        assert result.factors.carb_contribution >= 0
        assert result.factors.insulin_contribution <= 0


class TestInvalidInput:
    @pytest.mark.parametrize("current", [None, 0.0, -3.0, math.nan, math.inf])
    def test_rejects_unusable_glucose(self, engine, reference_time, current):
        with pytest.raises(InvalidPredictionInputError):
            engine.predict_glucose(current_glucose=current, reference_time=reference_time)

    def test_rejects_negative_horizon(self, engine, reference_time):
        with pytest.raises(InvalidPredictionInputError):
            engine.predict_glucose(
                current_glucose=7.0, reference_time=reference_time, horizon_minutes=-1
            )

    def test_rejects_naive_reference_time(self, engine, reference_time):
        with pytest.raises(InvalidPredictionInputError):
            engine.predict_glucose(
                current_glucose=7.0, reference_time=reference_time.replace(tzinfo=None)
            )

    def test_is_a_value_error(self):
        assert issubclass(InvalidPredictionInputError, ValueError)


class TestHelpers:
    @pytest.mark.parametrize(
        "effect,expected",
        [
            (0.51, PredictionTrend.rising),
            (0.5, PredictionTrend.stable),
            (-0.5, PredictionTrend.stable),
            (-0.51, PredictionTrend.falling),
        ],
    )
    def test_classify_trend(self, effect, expected):
        assert classify_trend(effect) == expected

    def test_clamp(self):
        assert clamp_glucose(-3.0) == 1.0
        assert clamp_glucose(40.0) == 25.0
        assert clamp_glucose(6.2) == 6.2

    def test_confidence_levels(self):
        assert score_confidence(0, 0, 7.0) == 0.5
        assert score_confidence(1, 0, 7.0) == 0.7
        assert score_confidence(3, 3, 7.0) == 0.7
        assert score_confidence(4, 0, 7.0) == 0.9
        assert score_confidence(0, 4, 7.0) == 0.9

    def test_extreme_glucose_penalty(self):
        assert score_confidence(4, 0, 16.0) == pytest.approx(0.72)
        assert score_confidence(1, 0, 2.5) == pytest.approx(0.56)
        # never below the floor
        assert score_confidence(0, 0, 2.5) == 0.5
