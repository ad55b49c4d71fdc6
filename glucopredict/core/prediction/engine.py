"""Glucose prediction engine.

Projects glucose forward from the current reading using the insulin
and carbohydrate decay models:

1. Resolve the user's parameter snapshot (defaults when absent)
2. Aggregate carbs on board at the reference time
3. Aggregate insulin on board at the reference time
4. Convert both into signed contributions
5. Sum, clamp to the physiological range, classify the trend
6. Score confidence from data density and glucose extremity

The engine performs no I/O and keeps no state between calls. It never
recommends a dose; it only projects the effect of what was recorded.
"""

import math
from collections.abc import Sequence
from datetime import datetime, timedelta

from pydantic import ValidationError

from glucopredict.core.prediction.constants import (
    CONFIDENCE_HIGH,
    CONFIDENCE_LOW,
    CONFIDENCE_MEDIUM,
    DEFAULT_HORIZON_MINUTES,
    EXTREME_GLUCOSE_PENALTY,
    EXTREME_HIGH_GLUCOSE,
    EXTREME_LOW_GLUCOSE,
    HIGH_CONFIDENCE_EVENT_COUNT,
    MAX_PREDICTED_GLUCOSE,
    MIN_PREDICTED_GLUCOSE,
    TREND_THRESHOLD,
)
from glucopredict.core.prediction.contributions import (
    ContributionCalculator,
    round_half_up,
)
from glucopredict.core.prediction.decay import (
    CarbAbsorptionModel,
    InsulinActivityModel,
)
from glucopredict.core.prediction.enums import PredictionTrend
from glucopredict.core.prediction.models import (
    CarbEvent,
    DoseEvent,
    PredictionRequest,
    PredictionResult,
    UserParameters,
)


class InvalidPredictionInputError(ValueError):
    """Raised when a prediction is requested with unusable input."""


def classify_trend(total_effect: float) -> PredictionTrend:
    """Label the net effect as rising, falling or stable."""
    if total_effect > TREND_THRESHOLD:
        return PredictionTrend.rising
    if total_effect < -TREND_THRESHOLD:
        return PredictionTrend.falling
    return PredictionTrend.stable


def score_confidence(
    dose_count: int, carb_count: int, current_glucose: float
) -> float:
    """Confidence in [0.5, 0.9] from event density and glucose level."""
    confidence = CONFIDENCE_MEDIUM
    if dose_count > HIGH_CONFIDENCE_EVENT_COUNT or carb_count > HIGH_CONFIDENCE_EVENT_COUNT:
        confidence = CONFIDENCE_HIGH
    elif dose_count == 0 and carb_count == 0:
        confidence = CONFIDENCE_LOW

    if current_glucose < EXTREME_LOW_GLUCOSE or current_glucose > EXTREME_HIGH_GLUCOSE:
        confidence *= EXTREME_GLUCOSE_PENALTY

    return max(CONFIDENCE_LOW, confidence)


def clamp_glucose(value: float) -> float:
    """Bound a predicted glucose to the physiological display range."""
    return max(MIN_PREDICTED_GLUCOSE, min(MAX_PREDICTED_GLUCOSE, value))


class PredictionEngine:
    """Stateless glucose predictor.

    ``default_parameters`` is the snapshot substituted when a request
    carries none. It is frozen, so one engine may serve any number of
    concurrent predictions.
    """

    def __init__(
        self,
        default_parameters: UserParameters | None = None,
        calculator: ContributionCalculator | None = None,
    ):
        self.default_parameters = default_parameters or UserParameters()
        self.calculator = calculator or ContributionCalculator()

    def predict(self, request: PredictionRequest) -> PredictionResult:
        """Run a prediction for a validated request."""
        parameters = request.user_parameters or self.default_parameters
        carb_model = CarbAbsorptionModel.for_user(parameters)
        insulin_model = InsulinActivityModel.for_user(parameters)

        now = request.reference_time
        active_carbs = carb_model.total_active(request.carb_events, now)
        active_insulin = insulin_model.total_active(request.dose_events, now)

        factors = self.calculator.compute_factors(
            active_carbs,
            active_insulin,
            request.horizon_minutes,
            parameters,
            glucose_trend_per_minute=request.glucose_trend_per_minute,
        )
        total_effect = factors.total_effect

        predicted = clamp_glucose(request.current_glucose + total_effect)
        confidence = score_confidence(
            len(request.dose_events),
            len(request.carb_events),
            request.current_glucose,
        )

        horizon_time = now + timedelta(minutes=request.horizon_minutes)

        return PredictionResult(
            predicted_glucose=round_half_up(predicted, 1),
            trend=classify_trend(total_effect),
            confidence=round_half_up(confidence, 2),
            factors=factors,
            reference_time=now,
            horizon_minutes=request.horizon_minutes,
            active_carbs_on_board=active_carbs,
            active_insulin_on_board=active_insulin,
            carbs_on_board_at_horizon=carb_model.total_active(
                request.carb_events, horizon_time
            ),
            insulin_on_board_at_horizon=insulin_model.total_active(
                request.dose_events, horizon_time
            ),
        )

    def predict_glucose(
        self,
        current_glucose: float | None,
        reference_time: datetime,
        horizon_minutes: int = DEFAULT_HORIZON_MINUTES,
        dose_events: Sequence[DoseEvent] | None = None,
        carb_events: Sequence[CarbEvent] | None = None,
        user_parameters: UserParameters | None = None,
        glucose_trend_per_minute: float = 0.0,
    ) -> PredictionResult:
        """Validate primitive inputs and run a prediction.

        Raises:
            InvalidPredictionInputError: current_glucose missing, non-positive
                or non-finite; horizon negative; or an aware reference_time
                was not supplied.
        """
        if current_glucose is None:
            raise InvalidPredictionInputError("Current glucose value is required")
        if not math.isfinite(current_glucose) or current_glucose <= 0:
            raise InvalidPredictionInputError(
                f"Current glucose must be a positive number, got {current_glucose}"
            )
        if horizon_minutes < 0:
            raise InvalidPredictionInputError(
                f"Prediction horizon must not be negative, got {horizon_minutes}"
            )

        try:
            request = PredictionRequest(
                current_glucose=current_glucose,
                reference_time=reference_time,
                horizon_minutes=horizon_minutes,
                dose_events=tuple(dose_events or ()),
                carb_events=tuple(carb_events or ()),
                user_parameters=user_parameters,
                glucose_trend_per_minute=glucose_trend_per_minute,
            )
        except ValidationError as e:
            raise InvalidPredictionInputError(str(e)) from e

        return self.predict(request)
