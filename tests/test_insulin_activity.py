"""Tests for the insulin activity (IOB) decay model."""

from datetime import timedelta

import pytest

from glucopredict.core.prediction import (
    DoseEvent,
    DoseType,
    InsulinActivityModel,
    InsulinActivityStatus,
    UserParameters,
)
from glucopredict.core.prediction.decay import half_life_remaining


@pytest.fixture
def model() -> InsulinActivityModel:
    return InsulinActivityModel.for_user(UserParameters())


def dose_at(reference_time, minutes_ago: float, units: float = 2.0) -> DoseEvent:
    return DoseEvent(
        timestamp=reference_time - timedelta(minutes=minutes_ago),
        units=units,
    )


class TestRemaining:
    def test_full_dose_at_injection_time(self, model, reference_time):
        assert model.remaining(dose_at(reference_time, 0), reference_time) == 2.0

    def test_half_remains_after_one_half_life(self, model, reference_time):
        dose = dose_at(reference_time, 42)
        assert model.remaining(dose, reference_time) == pytest.approx(1.0, abs=1e-6)

    def test_quarter_remains_after_two_half_lives(self, model, reference_time):
        dose = dose_at(reference_time, 84, units=4.0)
        assert model.remaining(dose, reference_time) == pytest.approx(1.0, abs=1e-6)

    def test_zero_past_duration_cap(self, model, reference_time):
        dose = dose_at(reference_time, 240)
        just_after = reference_time + timedelta(seconds=1)
        assert model.remaining(dose, just_after) == 0.0

    def test_still_active_at_cap(self, model, reference_time):
        assert model.remaining(dose_at(reference_time, 240), reference_time) > 0

    def test_future_dose_counts_in_full(self, model, reference_time):
        dose = dose_at(reference_time, -30, units=3.0)
        assert model.remaining(dose, reference_time) == 3.0

    def test_monotonic_non_increasing(self, model, reference_time):
        dose = dose_at(reference_time, 0, units=5.0)
        samples = [
            model.remaining(dose, reference_time + timedelta(minutes=m))
            for m in range(0, 300, 7)
        ]
        assert all(a >= b for a, b in zip(samples, samples[1:]))
        assert all(s >= 0 for s in samples)

    def test_fractional_minutes_are_continuous(self, model, reference_time):
        dose = dose_at(reference_time, 0)
        at_30 = model.remaining(dose, reference_time + timedelta(minutes=30))
        at_30_5 = model.remaining(dose, reference_time + timedelta(minutes=30.5))
        assert at_30 > at_30_5

    def test_negative_quantity_is_floored(self):
        assert half_life_remaining(-1.0, 10, 42, 240) == 0.0

    def test_custom_half_life(self, reference_time):
        model = InsulinActivityModel.for_user(
            UserParameters(insulin_half_life_minutes=60)
        )
        dose = dose_at(reference_time, 60)
        assert model.remaining(dose, reference_time) == pytest.approx(1.0, abs=1e-6)


class TestTotalActive:
    def test_sums_independent_doses(self, model, reference_time):
        doses = [dose_at(reference_time, 0), dose_at(reference_time, 42)]
        assert model.total_active(doses, reference_time) == pytest.approx(3.0)

    def test_no_doses_is_zero(self, model, reference_time):
        assert model.total_active([], reference_time) == 0.0

    def test_expired_doses_contribute_nothing(self, model, reference_time):
        doses = [dose_at(reference_time, 300), dose_at(reference_time, 500)]
        assert model.total_active(doses, reference_time) == 0.0


class TestActivityStatus:
    @pytest.mark.parametrize(
        "minutes_ago,expected",
        [
            (10, InsulinActivityStatus.rising),
            (59, InsulinActivityStatus.rising),
            (60, InsulinActivityStatus.peak),
            (75, InsulinActivityStatus.peak),
            (90, InsulinActivityStatus.falling),
            (180, InsulinActivityStatus.falling),
        ],
    )
    def test_status_follows_latest_dose(self, model, reference_time, minutes_ago, expected):
        doses = [dose_at(reference_time, 200), dose_at(reference_time, minutes_ago)]
        assert model.activity_status(doses, reference_time) == expected

    def test_no_doses(self, model, reference_time):
        assert model.activity_status([], reference_time) == InsulinActivityStatus.none

    def test_describe_active(self, model, reference_time):
        doses = [dose_at(reference_time, 75)]
        assert model.describe(doses, reference_time) == "Insulin at peak - 0.6u active"

    def test_describe_without_doses(self, model, reference_time):
        assert model.describe([], reference_time) == "No active insulin"

    def test_describe_expired(self, model, reference_time):
        doses = [dose_at(reference_time, 300)]
        assert model.describe(doses, reference_time) == "No active insulin"


class TestTimeline:
    def test_four_hours_in_fifteen_minute_steps(self, model, reference_time):
        dose = dose_at(reference_time, 0, units=4.0)
        points = model.timeline(dose)

        assert len(points) == 17
        assert points[0].timestamp == dose.timestamp
        assert points[-1].timestamp == dose.timestamp + timedelta(hours=4)
        assert points[0].remaining == 4.0
        assert points[0].percentage_remaining == 100.0

    def test_peak_flags_cover_sixty_to_ninety_minutes(self, model, reference_time):
        points = model.timeline(dose_at(reference_time, 0))
        peak_offsets = [i * 15 for i, p in enumerate(points) if p.is_peak]
        assert peak_offsets == [60, 75, 90]

    def test_custom_step(self, model, reference_time):
        points = model.timeline(dose_at(reference_time, 0), duration_hours=1, step_minutes=30)
        assert len(points) == 3


class TestConstruction:
    def test_rejects_non_positive_half_life(self):
        with pytest.raises(ValueError):
            InsulinActivityModel(0, 240)

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            InsulinActivityModel(42, 0)

    def test_for_user_reads_insulin_parameters(self):
        model = InsulinActivityModel.for_user(
            UserParameters(insulin_half_life_minutes=55, max_insulin_duration_minutes=300)
        )
        assert model.half_life_minutes == 55
        assert model.max_duration_minutes == 300

    def test_dose_type_defaults_to_bolus(self, reference_time):
        assert dose_at(reference_time, 0).dose_type == DoseType.bolus
