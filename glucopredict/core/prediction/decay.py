"""Half-life decay models for active insulin and active carbohydrate.

Both models share one law: a quantity halves every ``half_life_minutes``
and drops to zero once ``max_duration_minutes`` have elapsed. Elapsed
time is real-valued (not whole minutes), so evaluating the curve at
nearby times gives consistent, continuous results.

An event whose timestamp lies after the evaluation time has not started
to act yet; its full quantity is reported as remaining.

Events are independent and summed linearly. Callers filter out events
with non-positive quantities before they get here (the event models
reject them at construction).
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from glucopredict.core.prediction.constants import (
    COB_LOW_GRAMS,
    COB_MODERATE_GRAMS,
    INSULIN_PEAK_MINUTES,
    INSULIN_PEAK_WINDOW_MINUTES,
    TIMELINE_DURATION_HOURS,
    TIMELINE_STEP_MINUTES,
)
from glucopredict.core.prediction.enums import (
    CarbsOnBoardStatus,
    InsulinActivityStatus,
)
from glucopredict.core.prediction.models import (
    CarbEvent,
    DoseEvent,
    TimelinePoint,
    UserParameters,
)

_COB_DESCRIPTIONS: dict[CarbsOnBoardStatus, str] = {
    CarbsOnBoardStatus.none: "No carbs on board",
    CarbsOnBoardStatus.low: "Low carbs on board",
    CarbsOnBoardStatus.moderate: "Moderate carbs on board",
    CarbsOnBoardStatus.high: "High carbs on board",
}

_INSULIN_DESCRIPTIONS: dict[InsulinActivityStatus, str] = {
    InsulinActivityStatus.rising: "Insulin rising",
    InsulinActivityStatus.peak: "Insulin at peak",
    InsulinActivityStatus.falling: "Insulin falling",
}


def minutes_between(start: datetime, end: datetime) -> float:
    """Signed elapsed minutes from ``start`` to ``end``."""
    return (end - start).total_seconds() / 60


def half_life_remaining(
    quantity: float,
    elapsed_minutes: float,
    half_life_minutes: float,
    max_duration_minutes: float,
) -> float:
    """Apply the capped half-life decay law to a single quantity.

    Args:
        quantity: Initial amount (units or grams).
        elapsed_minutes: Minutes since the event. Negative means the
            event has not happened yet at the evaluation time.
        half_life_minutes: Time for the quantity to halve.
        max_duration_minutes: Past this, nothing remains.

    Returns:
        Remaining amount, never negative.
    """
    if elapsed_minutes < 0:
        return max(0.0, quantity)
    if elapsed_minutes > max_duration_minutes:
        return 0.0
    return max(0.0, quantity * 0.5 ** (elapsed_minutes / half_life_minutes))


class _HalfLifeModel:
    """Shared machinery for the insulin and carb models."""

    def __init__(self, half_life_minutes: float, max_duration_minutes: float):
        if half_life_minutes <= 0:
            raise ValueError("half_life_minutes must be positive")
        if max_duration_minutes <= 0:
            raise ValueError("max_duration_minutes must be positive")
        self.half_life_minutes = half_life_minutes
        self.max_duration_minutes = max_duration_minutes

    def _remaining(self, quantity: float, timestamp: datetime, at_time: datetime) -> float:
        return half_life_remaining(
            quantity,
            minutes_between(timestamp, at_time),
            self.half_life_minutes,
            self.max_duration_minutes,
        )

    def _timeline(
        self,
        quantity: float,
        timestamp: datetime,
        duration_hours: float,
        step_minutes: int,
    ) -> list[TimelinePoint]:
        if step_minutes <= 0:
            raise ValueError("step_minutes must be positive")
        steps = int(duration_hours * 60 // step_minutes)
        points: list[TimelinePoint] = []
        for i in range(steps + 1):
            elapsed = i * step_minutes
            at_time = timestamp + timedelta(minutes=elapsed)
            remaining = self._remaining(quantity, timestamp, at_time)
            points.append(
                TimelinePoint(
                    timestamp=at_time,
                    remaining=remaining,
                    percentage_remaining=min(100.0, remaining / quantity * 100),
                    is_peak=self._is_peak(elapsed),
                )
            )
        return points

    def _is_peak(self, elapsed_minutes: float) -> bool:
        return False


class InsulinActivityModel(_HalfLifeModel):
    """Active insulin (IOB) remaining from recorded doses."""

    @classmethod
    def for_user(cls, parameters: UserParameters) -> "InsulinActivityModel":
        return cls(
            parameters.insulin_half_life_minutes,
            parameters.max_insulin_duration_minutes,
        )

    def remaining(self, dose: DoseEvent, at_time: datetime) -> float:
        """Units of ``dose`` still active at ``at_time``."""
        return self._remaining(dose.units, dose.timestamp, at_time)

    def total_active(self, doses: Iterable[DoseEvent], at_time: datetime) -> float:
        """Insulin on board: sum of remaining units across all doses."""
        return sum((self.remaining(dose, at_time) for dose in doses), 0.0)

    def activity_status(
        self, doses: Sequence[DoseEvent], at_time: datetime
    ) -> InsulinActivityStatus:
        """Where the most recent dose sits on its activity curve."""
        if not doses:
            return InsulinActivityStatus.none

        latest = max(doses, key=lambda d: d.timestamp)
        minutes_since = minutes_between(latest.timestamp, at_time)

        if minutes_since < 0:
            return InsulinActivityStatus.none
        if minutes_since < INSULIN_PEAK_MINUTES - INSULIN_PEAK_WINDOW_MINUTES:
            return InsulinActivityStatus.rising
        if minutes_since < INSULIN_PEAK_MINUTES + INSULIN_PEAK_WINDOW_MINUTES:
            return InsulinActivityStatus.peak
        return InsulinActivityStatus.falling

    def describe(self, doses: Sequence[DoseEvent], at_time: datetime) -> str:
        """Human-readable activity summary, e.g. ``Insulin at peak - 1.5u active``."""
        status = self.activity_status(doses, at_time)
        total = self.total_active(doses, at_time)
        if status == InsulinActivityStatus.none or total == 0:
            return "No active insulin"
        return f"{_INSULIN_DESCRIPTIONS[status]} - {total:.1f}u active"

    def timeline(
        self,
        dose: DoseEvent,
        duration_hours: float = TIMELINE_DURATION_HOURS,
        step_minutes: int = TIMELINE_STEP_MINUTES,
    ) -> list[TimelinePoint]:
        """Sample the dose's decay curve from the dose time onward."""
        return self._timeline(dose.units, dose.timestamp, duration_hours, step_minutes)

    def _is_peak(self, elapsed_minutes: float) -> bool:
        return abs(elapsed_minutes - INSULIN_PEAK_MINUTES) <= INSULIN_PEAK_WINDOW_MINUTES


class CarbAbsorptionModel(_HalfLifeModel):
    """Unabsorbed carbohydrate (COB) remaining from recorded meals."""

    @classmethod
    def for_user(cls, parameters: UserParameters) -> "CarbAbsorptionModel":
        return cls(
            parameters.carb_half_life_minutes,
            parameters.max_carb_duration_minutes,
        )

    def remaining(self, entry: CarbEvent, at_time: datetime) -> float:
        """Grams of ``entry`` not yet absorbed at ``at_time``."""
        return self._remaining(entry.grams, entry.timestamp, at_time)

    def total_active(self, entries: Iterable[CarbEvent], at_time: datetime) -> float:
        """Carbs on board: sum of remaining grams across all entries."""
        return sum((self.remaining(entry, at_time) for entry in entries), 0.0)

    def status(
        self, entries: Iterable[CarbEvent], at_time: datetime
    ) -> CarbsOnBoardStatus:
        total = self.total_active(entries, at_time)
        if total <= 0:
            return CarbsOnBoardStatus.none
        if total < COB_LOW_GRAMS:
            return CarbsOnBoardStatus.low
        if total < COB_MODERATE_GRAMS:
            return CarbsOnBoardStatus.moderate
        return CarbsOnBoardStatus.high

    @staticmethod
    def describe_status(status: CarbsOnBoardStatus) -> str:
        return _COB_DESCRIPTIONS[status]

    def timeline(
        self,
        entry: CarbEvent,
        duration_hours: float = TIMELINE_DURATION_HOURS,
        step_minutes: int = TIMELINE_STEP_MINUTES,
    ) -> list[TimelinePoint]:
        """Sample the entry's absorption curve from the meal time onward."""
        return self._timeline(entry.grams, entry.timestamp, duration_hours, step_minutes)
