"""Glucose prediction Pydantic models.

Pure data models for the prediction engine. No database dependencies,
no SQLAlchemy. Every model is frozen: a snapshot handed to the engine
cannot be mutated by a concurrently running prediction.
"""

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

from glucopredict.core.prediction.constants import (
    DEFAULT_CARB_HALF_LIFE_MINUTES,
    DEFAULT_CARB_RATIO,
    DEFAULT_HORIZON_MINUTES,
    DEFAULT_INSULIN_HALF_LIFE_MINUTES,
    DEFAULT_ISF,
    DEFAULT_MAX_CARB_DURATION_MINUTES,
    DEFAULT_MAX_INSULIN_DURATION_MINUTES,
)
from glucopredict.core.prediction.enums import DoseType, PredictionTrend


class DoseEvent(BaseModel):
    """An insulin dose taken from the event log."""

    model_config = ConfigDict(frozen=True)

    timestamp: AwareDatetime
    units: float = Field(gt=0, allow_inf_nan=False)
    dose_type: DoseType = DoseType.bolus


class CarbEvent(BaseModel):
    """A carbohydrate intake taken from the event log."""

    model_config = ConfigDict(frozen=True)

    timestamp: AwareDatetime
    grams: float = Field(gt=0, allow_inf_nan=False)
    meal_type: str | None = None
    glucose_value: float | None = Field(
        default=None,
        gt=0,
        description="Glucose reading (mmol/L) logged alongside the meal.",
    )


class UserParameters(BaseModel):
    """Read-only per-user parameter snapshot.

    Constructing with no arguments yields the documented defaults, which
    is what the engine substitutes when no stored snapshot exists.
    """

    model_config = ConfigDict(frozen=True)

    carb_ratio: float = Field(
        default=DEFAULT_CARB_RATIO,
        gt=0,
        description="mmol/L rise per 10 g of carbohydrate.",
    )
    insulin_sensitivity_factor: float = Field(
        default=DEFAULT_ISF,
        gt=0,
        description="mmol/L drop per unit of insulin.",
    )
    carb_half_life_minutes: float = Field(
        default=DEFAULT_CARB_HALF_LIFE_MINUTES, gt=0
    )
    insulin_half_life_minutes: float = Field(
        default=DEFAULT_INSULIN_HALF_LIFE_MINUTES, gt=0
    )
    max_carb_duration_minutes: float = Field(
        default=DEFAULT_MAX_CARB_DURATION_MINUTES, gt=0
    )
    max_insulin_duration_minutes: float = Field(
        default=DEFAULT_MAX_INSULIN_DURATION_MINUTES, gt=0
    )


class PredictionRequest(BaseModel):
    """Everything the engine needs for one prediction."""

    model_config = ConfigDict(frozen=True)

    current_glucose: float = Field(
        gt=0,
        allow_inf_nan=False,
        description="Current glucose in mmol/L.",
    )
    reference_time: AwareDatetime
    horizon_minutes: int = Field(default=DEFAULT_HORIZON_MINUTES, ge=0)
    dose_events: tuple[DoseEvent, ...] = ()
    carb_events: tuple[CarbEvent, ...] = ()
    user_parameters: UserParameters | None = None
    glucose_trend_per_minute: float = Field(
        default=0.0,
        allow_inf_nan=False,
        description="Observed glucose trend (mmol/L per minute), if known.",
    )

    @field_validator("dose_events", "carb_events", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        # A missing event list means no recorded activity.
        return () if value is None else value


class PredictionFactors(BaseModel):
    """Signed mmol/L deltas that make up a prediction."""

    model_config = ConfigDict(frozen=True)

    carb_contribution: float = Field(ge=0)
    insulin_contribution: float = Field(le=0)
    baseline_contribution: float = 0.0
    trend_contribution: float = 0.0

    @property
    def total_effect(self) -> float:
        return (
            self.carb_contribution
            + self.insulin_contribution
            + self.baseline_contribution
            + self.trend_contribution
        )


class PredictionResult(BaseModel):
    """Outcome of a single prediction."""

    model_config = ConfigDict(frozen=True)

    predicted_glucose: float = Field(ge=1.0, le=25.0)
    trend: PredictionTrend
    confidence: float = Field(ge=0.5, le=0.9)
    factors: PredictionFactors
    reference_time: AwareDatetime
    horizon_minutes: int

    # Aggregates that fed the factors.
    active_carbs_on_board: float = Field(ge=0)
    active_insulin_on_board: float = Field(ge=0)

    # Audit only: the same aggregates evaluated at reference + horizon.
    # These do not feed the prediction.
    carbs_on_board_at_horizon: float = Field(ge=0)
    insulin_on_board_at_horizon: float = Field(ge=0)


class TimelinePoint(BaseModel):
    """Remaining quantity of one event at a sampled time."""

    model_config = ConfigDict(frozen=True)

    timestamp: AwareDatetime
    remaining: float = Field(ge=0)
    percentage_remaining: float = Field(ge=0, le=100)
    is_peak: bool = False
